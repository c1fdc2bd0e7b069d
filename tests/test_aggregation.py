"""Unit tests for budget_analytics.aggregation."""

from __future__ import annotations

import pytest

from budget_analytics.aggregation import (
    aggregate_month,
    aggregate_quarter,
    aggregate_ytd,
    budget_tracking,
    find_last_month_with_actuals,
    generate_alerts,
    monthly_series,
    summarize_category,
)
from budget_analytics.models import (
    COMP_AND_BENEFITS,
    COST_OF_SALES,
    OPEX,
    OTHER,
    UNCATEGORIZED,
    BudgetEntry,
    Category,
    Totals,
)

HOSTING = Category("cos-hosting", "Hosting", COST_OF_SALES)
BASE_PAY = Category("opex-base-pay", "Base Pay", OPEX)
MARKETING = Category("opex-marketing", "Marketing", OPEX)
RECRUITING = Category("opex-recruiting", "Recruiting", OPEX)
CATEGORIES = [HOSTING, BASE_PAY, MARKETING, RECRUITING]


def _entries():
    return [
        BudgetEntry("cos-hosting", 2024, 1, 1000.0, actual_amount=900.0, reforecast_amount=950.0),
        BudgetEntry("opex-base-pay", 2024, 1, 5000.0, reforecast_amount=5200.0, adjustment_amount=100.0),
        BudgetEntry("opex-marketing", 2024, 1, 2000.0, actual_amount=2500.0),
        BudgetEntry("mystery", 2024, 1, 300.0, actual_amount=100.0),
        BudgetEntry("cos-hosting", 2024, 2, 1000.0, reforecast_amount=1100.0),
        BudgetEntry("cos-hosting", 2023, 1, 9999.0, actual_amount=9999.0),
    ]


def test_aggregate_month_groups_and_net_total() -> None:
    result = aggregate_month(_entries(), CATEGORIES, 1, 2024)

    hosting = result.find_category("cos-hosting")
    assert hosting.variance == pytest.approx(100.0)
    assert hosting.variance_percent == pytest.approx(10.0)

    # no actual recorded, so variance comes from the reforecast
    base_pay = result.find_category("opex-base-pay")
    assert base_pay.actual == 0.0
    assert base_pay.variance == pytest.approx(-200.0)

    opex = result.groups[OPEX].total
    assert opex.budget == 7000.0
    assert opex.actual == 2500.0
    assert opex.reforecast == 5200.0
    assert opex.adjustments == 100.0
    assert opex.variance == pytest.approx(-700.0)

    net = result.net_total
    assert net.budget == 8300.0
    assert net.actual == 3500.0
    assert net.adjustments == 100.0
    assert net.variance == pytest.approx(-400.0)


def test_aggregate_month_builds_opex_subgroups() -> None:
    opex = aggregate_month(_entries(), CATEGORIES, 1, 2024).groups[OPEX]

    assert [sg.id for sg in opex.subgroups] == [COMP_AND_BENEFITS, OTHER]
    assert [c.category_id for c in opex.subgroups[0].categories] == ["opex-base-pay"]
    assert [c.category_id for c in opex.subgroups[1].categories] == ["opex-marketing"]
    assert [c.category_id for c in opex.categories] == ["opex-recruiting"]
    assert opex.subgroups[1].categories[0].budget_percent == pytest.approx(100.0)


def test_unknown_categories_land_in_uncategorized() -> None:
    result = aggregate_month(_entries(), CATEGORIES, 1, 2024)
    stray = result.groups[UNCATEGORIZED]
    assert [c.category_name for c in stray.categories] == ["mystery"]
    assert stray.total.budget == 300.0


def test_missing_actuals_sum_to_zero_not_none() -> None:
    result = aggregate_month(_entries(), CATEGORIES, 2, 2024)
    assert result.net_total.actual == 0.0
    assert result.net_total.budget == 1000.0


def test_empty_entries_give_zero_totals() -> None:
    result = aggregate_month([], CATEGORIES, 6, 2024)
    assert result.net_total == Totals()
    assert result.groups[COST_OF_SALES].total == Totals()


def test_aggregate_month_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        aggregate_month(_entries(), CATEGORIES, 13, 2024)
    with pytest.raises(TypeError):
        aggregate_month(None, CATEGORIES, 1, 2024)


def test_variance_modes_differ_over_multiple_months() -> None:
    entries = _entries()
    blended = summarize_category(entries, HOSTING, 2024, months=[1, 2, 3], mode="blended")
    standard = summarize_category(entries, HOSTING, 2024, months=[1, 2, 3], mode="standard")
    actuals = summarize_category(entries, HOSTING, 2024, months=[1, 2, 3], mode="actuals")

    assert blended.variance == pytest.approx(0.0)
    assert standard.variance == pytest.approx(1100.0)
    assert actuals.variance == pytest.approx(1100.0)


def test_aggregate_quarter_uses_blended_variance_in_forecast_view() -> None:
    forecast_view = aggregate_quarter(_entries(), CATEGORIES, 1, 2024)
    actuals_view = aggregate_quarter(_entries(), CATEGORIES, 1, 2024, forecast=False)
    assert forecast_view.find_category("cos-hosting").variance == pytest.approx(0.0)
    assert actuals_view.find_category("cos-hosting").variance == pytest.approx(1100.0)

    with pytest.raises(ValueError):
        aggregate_quarter(_entries(), CATEGORIES, 5, 2024)


def test_aggregate_ytd_zero_months_is_empty() -> None:
    result = aggregate_ytd(_entries(), CATEGORIES, 2024, 0)
    assert result.net_total.budget == 0.0


def test_budget_tracking_removes_adjustments() -> None:
    net = Totals(budget=100.0, actual=80.0, reforecast=90.0, adjustments=5.0)
    final = budget_tracking(net)
    assert final.actual == 75.0
    assert final.reforecast == 90.0
    assert final.variance == pytest.approx(25.0)
    assert budget_tracking(net, forecast_mode=True).variance == pytest.approx(10.0)

    no_actuals = budget_tracking(Totals(budget=100.0, reforecast=90.0, adjustments=5.0))
    assert no_actuals.reforecast == 85.0


def test_find_last_month_with_actuals() -> None:
    assert find_last_month_with_actuals(_entries(), 2024) == 1
    assert find_last_month_with_actuals(_entries(), 2022) == 0


def test_monthly_series_for_category() -> None:
    series = monthly_series(_entries(), 2024, "cos-hosting")
    assert len(series["budget"]) == 12
    assert series["budget"][:3] == [1000.0, 1000.0, 0.0]
    assert series["actual"][:2] == [900.0, 0.0]
    assert series["reforecast"][1] == 1100.0


def test_generate_alerts_sorted_by_severity() -> None:
    categories = [
        Category("a", "Travel", OPEX),
        Category("b", "Software", OPEX),
        Category("c", "Events", OPEX),
    ]
    entries = [
        BudgetEntry("a", 2024, 1, 400000.0, actual_amount=500000.0),
        BudgetEntry("b", 2024, 1, 100000.0, actual_amount=200000.0),
        BudgetEntry("c", 2024, 1, 5000.0),
    ]
    alerts = generate_alerts(entries, categories, 2024)

    assert [alert.type for alert in alerts] == ["danger", "warning", "info"]
    assert alerts[0].category == "Software"
    assert alerts[1].message == "25.0% variance from budget"
    assert alerts[2].message == "No actual expenses recorded yet"
    assert alerts[2].variance == 5000.0


def test_negative_flag_carries_into_category_summary() -> None:
    capitalized = Category("opex-capitalized-salaries", "Capitalized Salaries", OPEX, is_negative=True)
    entries = [BudgetEntry("opex-capitalized-salaries", 2024, 1, -500.0, actual_amount=-400.0)]

    result = aggregate_month(entries, [capitalized, BASE_PAY], 1, 2024)

    assert result.find_category("opex-capitalized-salaries").is_negative
    assert not result.find_category("opex-base-pay").is_negative
    assert summarize_category(entries, capitalized, 2024).is_negative
