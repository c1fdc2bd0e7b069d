"""Unit tests for budget_analytics.summary and budget_analytics.resources."""

from __future__ import annotations

import pytest

from budget_analytics.kpis import derive_kpis
from budget_analytics.models import OPEX, BudgetEntry, BudgetState, Category
from budget_analytics.resources import get_resource_data
from budget_analytics.summary import (
    SECTIONS,
    SummaryContext,
    capitalized_salaries,
    default_toggles,
    enabled_sections,
    forecast_analysis,
    generate_summary,
    ytd_performance,
)

YTD_SENTENCE = "We are currently under our YTD budget by $3,000 (10.0%), indicating efficient spending control."


def _state(capitalized=-1000.0):
    entries = [
        BudgetEntry("opex-base-pay", 2024, month, 10000.0, actual_amount=10000.0 if month <= 3 else None)
        for month in range(1, 13)
    ]
    entries += [
        BudgetEntry("opex-capitalized-salaries", 2024, month, 0.0, actual_amount=capitalized)
        for month in range(1, 4)
    ]
    return BudgetState(
        entries=entries,
        categories=[
            Category("opex-base-pay", "Base Pay", OPEX),
            Category("opex-capitalized-salaries", "Capitalized Salaries", OPEX),
        ],
        monthly_forecast_modes={2024: {1: True, 2: True, 3: True}},
        yearly_budget_targets={2024: 120000.0},
        selected_year=2024,
    )


@pytest.fixture
def kpis():
    return derive_kpis(27000.0, 30000.0, 120000.0, 108000.0, 3)


def test_resource_data_projection() -> None:
    resources = get_resource_data(_state(), as_of_month=3)

    assert resources.total_comp_ytd == pytest.approx(27000.0)
    assert resources.total_comp_annual_budget == pytest.approx(120000.0)
    assert resources.net_compensation_available == pytest.approx(93000.0)
    assert resources.base_pay_utilization == pytest.approx(100.0)
    assert resources.capitalized_offset_rate == pytest.approx(10.0)
    assert resources.last_three_month_average == pytest.approx(9000.0)
    assert resources.remaining_months == 9
    assert resources.projected_total_spend == pytest.approx(108000.0)
    assert resources.budget_vs_projection == pytest.approx(12000.0)
    assert not resources.is_projected_over_budget
    assert resources.potential_new_hires == 0


def test_sections_are_ordered_and_enabled_by_default() -> None:
    assert [s.order for s in SECTIONS] == [1, 2, 3, 4, 5]
    assert all(default_toggles().values())
    assert [s.id for s in enabled_sections()] == [s.id for s in SECTIONS]


def test_enabled_sections_rejects_unknown_ids() -> None:
    with pytest.raises(KeyError):
        enabled_sections({"weather_report": True})


def test_single_section_summary(kpis) -> None:
    toggles = {section.id: False for section in SECTIONS}
    toggles["ytd_performance"] = True
    assert generate_summary(_state(), kpis, toggles, as_of_month=3) == YTD_SENTENCE


def test_all_sections_disabled_gives_empty_summary(kpis) -> None:
    toggles = {section.id: False for section in SECTIONS}
    assert generate_summary(_state(), kpis, toggles, as_of_month=3) == ""


def test_full_summary_follows_section_order(kpis) -> None:
    text = generate_summary(_state(), kpis, as_of_month=3)

    assert text.startswith(
        "Executive Summary for 2024:\n\nOur annual budget target is $120,000 for 2024. "
        "Year-to-date through March, we have spent $27,000, leaving $93,000 remaining"
    )
    markers = [
        "Executive Summary",
        YTD_SENTENCE,
        "slight projected under-spend of $12,000",
        "Our capitalized salaries offset is $3,000, representing 10.0% of base pay.",
        "As of March finalized, we have $93,000 remaining in our compensation budget.",
    ]
    positions = [text.index(marker) for marker in markers]
    assert positions == sorted(positions)
    assert "finish under our compensation budget by $12,000" in text


def test_capitalized_salaries_hidden_below_threshold(kpis) -> None:
    context = SummaryContext(as_of_month=3, last_month_name="March")
    assert capitalized_salaries(_state(capitalized=-200.0), kpis, context) == ""


def test_ytd_performance_over_and_on_budget() -> None:
    context = SummaryContext(as_of_month=3, last_month_name="March")
    over = derive_kpis(33000.0, 30000.0, 120000.0, 120000.0, 3)
    exact = derive_kpis(30000.0, 30000.0, 120000.0, 120000.0, 3)

    assert ytd_performance(_state(), over, context) == (
        "We are currently over our YTD budget by $3,000 (10.0%), requiring attention to spending patterns."
    )
    assert ytd_performance(_state(), exact, context) == "We are tracking exactly to our YTD budget."


def test_forecast_analysis_large_gaps() -> None:
    context = SummaryContext(as_of_month=3, last_month_name="March")
    under = derive_kpis(0.0, 0.0, 5000000.0, 3000000.0, 3)
    over = derive_kpis(0.0, 0.0, 1000000.0, 2500000.0, 3)

    assert "projected under-spend of $2,000,000" in forecast_analysis(_state(), under, context)
    assert "projected over-spend of $1,500,000" in forecast_analysis(_state(), over, context)
    assert forecast_analysis(_state(), derive_kpis(0, 0, 100.0, 100.0, 3), context).endswith(
        "This closely aligns with our annual target."
    )
