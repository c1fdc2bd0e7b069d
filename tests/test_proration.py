"""Unit tests for budget_analytics.proration."""

from __future__ import annotations

import pytest

from budget_analytics.models import VendorData
from budget_analytics.proration import (
    by_finance_category,
    by_vendor_category,
    monthly_totals,
    monthly_totals_by,
    prorate_vendor,
    split_by_budget_status,
    start_month,
)


def _vendor(billing_type, budget, month="N/A", **kwargs):
    kwargs.setdefault("year", 2024)
    return VendorData("Acme", billing_type=billing_type, budget=budget, month=month, **kwargs)


def test_annual_vendor_lands_in_start_month() -> None:
    schedule = prorate_vendor(_vendor("annual", 1200.0, "March"))
    assert len(schedule) == 12
    assert schedule[2] == 1200.0
    assert sum(schedule) == 1200.0
    assert schedule.count(0.0) == 11


def test_one_time_without_start_month_lands_in_january() -> None:
    schedule = prorate_vendor(_vendor("one-time", 500.0))
    assert schedule[0] == 500.0
    assert sum(schedule[1:]) == 0.0


def test_monthly_full_year_sums_to_budget() -> None:
    schedule = prorate_vendor(_vendor("monthly", 1200.0))
    assert schedule == [100.0] * 12
    assert sum(schedule) == pytest.approx(1200.0)


def test_monthly_late_start_spreads_full_budget_over_remaining_months() -> None:
    schedule = prorate_vendor(_vendor("monthly", 1200.0, "October"))
    assert schedule[:9] == [0.0] * 9
    assert schedule[9:] == [400.0, 400.0, 400.0]
    assert sum(schedule) == pytest.approx(1200.0)


def test_quarterly_installments_step_from_start_month() -> None:
    schedule = prorate_vendor(_vendor("quarterly", 900.0, "February"))
    assert [i + 1 for i, value in enumerate(schedule) if value] == [2, 5, 8, 11]
    assert schedule[1] == pytest.approx(225.0)

    default_start = prorate_vendor(_vendor("quarterly", 1000.0))
    assert [i + 1 for i, value in enumerate(default_start) if value] == [1, 4, 7, 10]
    assert default_start[0] == pytest.approx(250.0)


def test_quarterly_start_in_november_gets_single_installment() -> None:
    schedule = prorate_vendor(_vendor("quarterly", 800.0, "November"))
    assert schedule[10] == 800.0
    assert sum(schedule) == 800.0


@pytest.mark.parametrize("billing_type", ["hourly", "project-based", ""])
def test_other_billing_types_split_evenly_ignoring_start(billing_type) -> None:
    schedule = prorate_vendor(_vendor(billing_type, 1200.0, "June"))
    assert schedule == [100.0] * 12


def test_unreadable_start_month_defaults_to_january() -> None:
    vendor = _vendor("annual", 300.0, "Smarch")
    assert start_month(vendor) == 1
    assert prorate_vendor(vendor)[0] == 300.0


def test_monthly_totals_filters_year() -> None:
    vendors = [
        _vendor("monthly", 1200.0),
        _vendor("annual", 600.0, "January"),
        _vendor("annual", 999.0, "January", year=2023),
    ]
    totals = monthly_totals(vendors, year=2024)
    assert totals[0] == pytest.approx(700.0)
    assert totals[1] == pytest.approx(100.0)
    assert monthly_totals([]) == [0.0] * 12


def test_monthly_totals_by_finance_category() -> None:
    vendors = [
        _vendor("annual", 100.0, "January", finance_mapped_category="Legal"),
        _vendor("annual", 50.0, "January", finance_mapped_category="Legal"),
        _vendor("annual", 10.0, "May", finance_mapped_category=""),
    ]
    grouped = monthly_totals_by(vendors, by_finance_category)
    assert list(grouped) == ["Legal", "Unknown"]
    assert grouped["Legal"][0] == 150.0
    assert grouped["Unknown"][4] == 10.0


def test_monthly_totals_by_vendor_category_with_year_filter() -> None:
    vendors = [
        _vendor("monthly", 1200.0, finance_mapped_category="Hosting", category="Cloud"),
        _vendor("annual", 300.0, "March", finance_mapped_category="Hosting", category="CDN"),
        _vendor("annual", 75.0, "March", finance_mapped_category="Hosting"),
        _vendor("annual", 999.0, "March", category="Cloud", year=2023),
    ]
    grouped = monthly_totals_by(vendors, by_vendor_category, year=2024)
    assert list(grouped) == ["Cloud", "CDN", "Unknown"]
    assert grouped["Cloud"] == [100.0] * 12
    assert grouped["CDN"][2] == 300.0
    assert sum(grouped["CDN"]) == 300.0
    assert grouped["Unknown"][2] == 75.0


def test_split_by_budget_status() -> None:
    vendors = [
        _vendor("annual", 100.0, "January", in_budget=True),
        _vendor("annual", 40.0, "January", in_budget=False),
    ]
    split = split_by_budget_status(vendors)
    assert split["in_budget"][0] == 100.0
    assert split["off_budget"][0] == 40.0
