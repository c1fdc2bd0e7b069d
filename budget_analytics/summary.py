"""Narrative executive summary built from a fixed list of sections.

Each section is a pure generator ``(state, kpis, context) -> str``.  The
set of sections is closed: callers choose which ones appear through a
toggle mapping keyed by section id, and the output always follows the
order below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from . import config
from .forecast import last_final_month_name
from .formatting import format_currency_full
from .models import BudgetState, KPIData
from .resources import get_resource_data


@dataclass(frozen=True)
class SummaryContext:
    as_of_month: int
    last_month_name: str


SectionGenerator = Callable[[BudgetState, KPIData, SummaryContext], str]


@dataclass(frozen=True)
class SummarySection:
    id: str
    name: str
    description: str
    generator: SectionGenerator
    default_enabled: bool
    order: int


def strategic_context(state: BudgetState, kpis: KPIData, context: SummaryContext) -> str:
    return (
        f"Executive Summary for {state.selected_year}:\n\n"
        f"Our annual budget target is {format_currency_full(kpis.annual_budget_target)} "
        f"for {state.selected_year}. "
        f"Year-to-date through {context.last_month_name}, we have spent "
        f"{format_currency_full(kpis.ytd_actual)}, "
        f"leaving {format_currency_full(kpis.remaining_budget)} remaining in our budget allocation. "
    )


def ytd_performance(state: BudgetState, kpis: KPIData, context: SummaryContext) -> str:
    if kpis.variance > 0:
        return (
            f"We are currently under our YTD budget by {format_currency_full(kpis.variance)} "
            f"({kpis.variance_pct:.1f}%), indicating efficient spending control."
        )
    if kpis.variance < 0:
        return (
            f"We are currently over our YTD budget by {format_currency_full(abs(kpis.variance))} "
            f"({abs(kpis.variance_pct):.1f}%), requiring attention to spending patterns."
        )
    return "We are tracking exactly to our YTD budget."


def forecast_analysis(state: BudgetState, kpis: KPIData, context: SummaryContext) -> str:
    gap = kpis.forecast_vs_target_variance
    text = (
        "Based on our current forecast, we project a remaining spending total of "
        f"{format_currency_full(kpis.full_year_forecast)}. "
    )
    if gap > 1000000:
        text += (
            f"This represents a projected under-spend of {format_currency_full(gap)}, "
            "suggesting potential for strategic investment or accelerated initiatives."
        )
    elif gap < -1000000:
        text += (
            f"This represents a projected over-spend of {format_currency_full(abs(gap))}, "
            "requiring immediate budget rebalancing or scope adjustment."
        )
    elif gap > 0:
        text += (
            f"This indicates a slight projected under-spend of {format_currency_full(gap)}, "
            "providing modest budget flexibility."
        )
    else:
        text += "This closely aligns with our annual target."
    return text


def capitalized_salaries(state: BudgetState, kpis: KPIData, context: SummaryContext) -> str:
    """Only reported once the offset exceeds $1,000."""
    resources = get_resource_data(state, context.as_of_month)
    offset = resources.capitalized_salaries_ytd
    if abs(offset) <= 1000:
        return ""
    return (
        f" Our capitalized salaries offset is {format_currency_full(abs(offset))}, "
        f"representing {resources.capitalized_offset_rate:.1f}% of base pay."
    )


def resource_spend(state: BudgetState, kpis: KPIData, context: SummaryContext) -> str:
    resources = get_resource_data(state, context.as_of_month)
    text = (
        f"As of {context.last_month_name} finalized, we have "
        f"{format_currency_full(resources.net_compensation_available)} remaining in our compensation budget. "
        "Taking an average of the last three months of compensation spending at "
        f"{format_currency_full(resources.last_three_month_average)} per month and with "
        f"{resources.remaining_months} months left in the year, the projected spend for the remainder "
        f"of the year will be {format_currency_full(resources.projected_remaining_spend)}. "
        "This brings our annual total spend on compensation to "
        f"{format_currency_full(resources.projected_total_spend)}. "
    )
    if resources.budget_vs_projection > 0:
        text += (
            "We are projected to finish under our compensation budget by "
            f"{format_currency_full(resources.budget_vs_projection)}, "
            "providing capacity for strategic hiring or bonus allocations."
        )
    else:
        text += (
            "We are projected to exceed our compensation budget by "
            f"{format_currency_full(abs(resources.budget_vs_projection))}, "
            "requiring careful monitoring of new hires and discretionary compensation."
        )
    return text


SECTIONS: Tuple[SummarySection, ...] = (
    SummarySection(
        "strategic_context",
        "Strategic Context",
        "Annual target, YTD spend and remaining budget",
        strategic_context,
        True,
        1,
    ),
    SummarySection(
        "ytd_performance",
        "YTD Performance",
        "Under or over YTD budget",
        ytd_performance,
        True,
        2,
    ),
    SummarySection(
        "forecast_analysis",
        "Forecast Analysis",
        "Full-year forecast against the annual target",
        forecast_analysis,
        True,
        3,
    ),
    SummarySection(
        "capitalized_salaries",
        "Capitalized Salaries",
        "Capitalized salary offset against base pay",
        capitalized_salaries,
        True,
        4,
    ),
    SummarySection(
        "resource_spend",
        "Resource Spend",
        "Compensation budget remaining and year-end projection",
        resource_spend,
        True,
        5,
    ),
)
_SECTIONS_BY_ID: Dict[str, SummarySection] = {section.id: section for section in SECTIONS}


def default_toggles() -> Dict[str, bool]:
    return {section.id: section.default_enabled for section in SECTIONS}


def enabled_sections(toggles: Optional[Mapping[str, bool]] = None) -> List[SummarySection]:
    """Sections switched on by ``toggles``, in display order.

    Raises:
        KeyError: If ``toggles`` names a section that does not exist
    """
    selected = default_toggles()
    if toggles:
        unknown = set(toggles) - set(_SECTIONS_BY_ID)
        if unknown:
            raise KeyError(f"Unknown summary sections: {sorted(unknown)}")
        selected.update(toggles)
    return sorted((s for s in SECTIONS if selected[s.id]), key=lambda section: section.order)


def generate_summary(
    state: BudgetState,
    kpis: KPIData,
    toggles: Optional[Mapping[str, bool]] = None,
    as_of_month: Optional[int] = None,
) -> str:
    """Render the enabled sections separated by blank lines.

    Sections with nothing to say are left out; with no sections enabled
    the result is an empty string.
    """
    month = as_of_month if as_of_month is not None else config.as_of_month()
    context = SummaryContext(
        as_of_month=month,
        last_month_name=last_final_month_name(
            state.entries, state.selected_year, state.monthly_forecast_modes, month
        ),
    )
    texts = [section.generator(state, kpis, context) for section in enabled_sections(toggles)]
    return "\n\n".join(text for text in texts if text)
