"""Unit tests for budget_analytics.kpis."""

from __future__ import annotations

import logging

import pytest

from budget_analytics.kpis import derive_kpis, get_kpi_data, top_variance_categories, variance_trend
from budget_analytics.models import COST_OF_SALES, OPEX, BudgetEntry, BudgetState, Category


def _trend_entries(actuals):
    return [
        BudgetEntry("opex-marketing", 2024, month, 100.0, actual_amount=actual)
        for month, actual in enumerate(actuals, start=1)
    ]


def test_derive_kpis_reference_scenario() -> None:
    kpis = derive_kpis(
        ytd_actual=500000,
        ytd_budget=600000,
        annual_target=1200000,
        full_year_forecast=1100000,
        months_elapsed=6,
    )

    assert kpis.variance == 100000
    assert kpis.variance_pct == pytest.approx(16.6667, rel=1e-4)
    assert kpis.budget_utilization == pytest.approx(41.6667, rel=1e-4)
    assert kpis.expected_ytd_target == pytest.approx(600000)
    assert kpis.target_achievement == pytest.approx(83.3333, rel=1e-4)
    assert kpis.annual_variance == 700000
    assert kpis.forecast_vs_target_variance == 100000
    assert kpis.burn_rate == pytest.approx(83333.333, rel=1e-6)
    assert kpis.remaining_budget == 700000
    assert kpis.months_remaining == pytest.approx(8.4)


def test_derive_kpis_zero_denominators_fall_back_to_zero() -> None:
    kpis = derive_kpis(0, 0, 0, 0, 0)
    assert kpis.variance_pct == 0
    assert kpis.annual_variance_pct == 0
    assert kpis.budget_utilization == 0
    assert kpis.target_achievement == 0
    assert kpis.burn_rate == 0
    assert kpis.months_remaining == 0
    assert kpis.variance_trend == "Stable"


def test_derive_kpis_overspent_target_has_no_runway() -> None:
    kpis = derive_kpis(1300000, 1200000, 1200000, 1300000, 12)
    assert kpis.remaining_budget == -100000
    assert kpis.months_remaining == 0


def test_derive_kpis_is_pure() -> None:
    entries = _trend_entries([100.0, 80.0, 70.0])
    first = derive_kpis(250.0, 300.0, 1200.0, 1100.0, 3, entries, 2024)
    second = derive_kpis(250.0, 300.0, 1200.0, 1100.0, 3, entries, 2024)
    assert first == second


def test_variance_trend_improving_and_declining() -> None:
    assert variance_trend(_trend_entries([100.0, 80.0, 70.0]), 2024, 3, 0.0) == "Improving"
    assert variance_trend(_trend_entries([100.0, 130.0, 150.0]), 2024, 3, 0.0) == "Declining"
    assert variance_trend(_trend_entries([100.0, 100.0, 101.0]), 2024, 3, 0.0) == "Stable"


def test_variance_trend_single_month_uses_threshold() -> None:
    assert variance_trend([], 2024, 1, 3.0) == "Stable"
    assert variance_trend([], 2024, 1, 10.0) == "Under Budget"
    assert variance_trend([], 2024, 1, -10.0) == "Over Budget"


def test_variance_trend_malformed_entries_are_unknown(caplog) -> None:
    broken = [BudgetEntry("opex-marketing", 2024, 1, None)]
    with caplog.at_level(logging.ERROR, logger="budget_analytics.kpis"):
        assert variance_trend(broken, 2024, 3, 0.0) == "Unknown"
    assert "variance trend" in caplog.text


def test_get_kpi_data_composes_state() -> None:
    state = BudgetState(
        entries=[
            BudgetEntry("cos-hosting", 2024, 1, 100.0, actual_amount=90.0, adjustment_amount=10.0),
            BudgetEntry("cos-hosting", 2024, 2, 100.0, actual_amount=110.0),
            BudgetEntry("cos-hosting", 2024, 3, 100.0, reforecast_amount=120.0),
            BudgetEntry("cos-hosting", 2024, 4, 100.0),
        ],
        categories=[Category("cos-hosting", "Hosting", COST_OF_SALES)],
        monthly_forecast_modes={2024: {1: True, 2: True}},
        yearly_budget_targets={2024: 1200.0},
        selected_year=2024,
    )

    kpis = get_kpi_data(state, as_of_month=2)

    assert kpis.ytd_actual == pytest.approx(190.0)
    assert kpis.ytd_budget == pytest.approx(200.0)
    assert kpis.variance == pytest.approx(10.0)
    assert kpis.full_year_forecast == pytest.approx(420.0)
    assert kpis.forecast_vs_target_variance == pytest.approx(780.0)
    assert kpis.target_achievement == pytest.approx(95.0)
    assert kpis.burn_rate == pytest.approx(95.0)
    assert kpis.variance_trend == "Declining"


def test_get_kpi_data_without_target() -> None:
    state = BudgetState(selected_year=2024)
    kpis = get_kpi_data(state, as_of_month=6)
    assert kpis.annual_budget_target == 0
    assert kpis.budget_utilization == 0
    assert kpis.ytd_actual == 0


def test_top_variance_categories_sorted_by_absolute_gap() -> None:
    categories = [Category("a", "Travel", OPEX), Category("b", "Software", OPEX)]
    entries = [
        BudgetEntry("a", 2024, 1, 100.0, actual_amount=300.0),
        BudgetEntry("b", 2024, 1, 100.0, actual_amount=50.0),
        BudgetEntry("c-id", 2024, 1, 0.0, actual_amount=500.0),
        BudgetEntry("b", 2023, 1, 100000.0),
    ]

    top = top_variance_categories(entries, categories, 2, year=2024)

    assert [item.name for item in top] == ["c-id", "Travel"]
    assert top[1].variance == 200.0
