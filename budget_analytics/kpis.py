"""Key performance indicators derived from YTD and forecast figures.

Sign convention: every variance is ``(spend - reference) * -1`` so a
positive number means under-spend.  All ratios guard their denominator
and fall back to ``0`` instead of raising.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from . import config
from .aggregation import budget_tracking, ensure_sequence
from .forecast import compose_full_year_forecast, compose_ytd
from .models import BudgetEntry, BudgetState, Category, KPIData, VarianceCategory

logger = logging.getLogger(__name__)

STABLE = "Stable"
IMPROVING = "Improving"
DECLINING = "Declining"
UNDER_BUDGET = "Under Budget"
OVER_BUDGET = "Over Budget"
UNKNOWN = "Unknown"


def _cumulative_variance_pct(entries: Sequence[BudgetEntry], year: Optional[int], through_month: int) -> float:
    window = [
        entry
        for entry in entries
        if (year is None or entry.year == year) and entry.month <= through_month
    ]
    budget = sum(entry.budget_amount for entry in window)
    actual = sum(entry.actual_amount or 0 for entry in window)
    return (actual - budget) / budget * 100 * -1 if budget > 0 else 0.0


def variance_trend(
    entries: Sequence[BudgetEntry],
    year: Optional[int],
    current_month: int,
    variance_pct: float,
) -> str:
    """Classify the direction of cumulative variance over recent months.

    Samples the cumulative variance % for up to three months ending at
    ``current_month``.  With fewer than two samples the label comes from
    ``variance_pct`` alone; otherwise the newest sample is compared to the
    oldest.

    Returns:
        One of ``"Stable"``, ``"Improving"``, ``"Declining"``,
        ``"Under Budget"``, ``"Over Budget"`` or ``"Unknown"`` when the
        entries could not be read
    """
    try:
        if min(3, current_month) < 2:
            if abs(variance_pct) < 5:
                return STABLE
            return UNDER_BUDGET if variance_pct > 0 else OVER_BUDGET

        samples = [
            _cumulative_variance_pct(entries, year, month)
            for month in range(max(1, current_month - 2), current_month + 1)
        ]
        difference = samples[-1] - samples[0]
        if abs(difference) < 2:
            return STABLE
        if difference > 2:
            return IMPROVING
        return DECLINING
    except Exception:
        logger.exception("Failed to classify variance trend")
        return UNKNOWN


def derive_kpis(
    ytd_actual: float,
    ytd_budget: float,
    annual_target: float,
    full_year_forecast: float,
    months_elapsed: int,
    entries: Sequence[BudgetEntry] = (),
    year: Optional[int] = None,
) -> KPIData:
    """Compute the KPI snapshot from composed figures.

    Args:
        ytd_actual: Year-to-date spend
        ytd_budget: Year-to-date budget
        annual_target: Yearly budget ceiling
        full_year_forecast: Twelve-month projection
        months_elapsed: Months of the year treated as elapsed (0-12)
        entries: Budget entries used for the variance trend
        year: Restrict the trend to this year's entries

    Returns:
        KPIData with variances, utilization, pacing, burn rate, runway
        and the trend label

    Example:
        >>> kpis = derive_kpis(500000, 600000, 1200000, 1100000, 6)
        >>> kpis.variance, round(kpis.target_achievement, 2)
        (100000, 83.33)
    """
    variance = (ytd_actual - ytd_budget) * -1
    variance_pct = variance / ytd_budget * 100 if ytd_budget else 0.0

    annual_variance = (ytd_actual - annual_target) * -1
    annual_variance_pct = annual_variance / annual_target * 100 if annual_target > 0 else 0.0
    budget_utilization = ytd_actual / annual_target * 100 if annual_target > 0 else 0.0

    expected_ytd_target = annual_target * (months_elapsed / 12)
    target_achievement = ytd_actual / expected_ytd_target * 100 if expected_ytd_target > 0 else 0.0

    forecast_vs_target_variance = (full_year_forecast - annual_target) * -1

    burn_rate = ytd_actual / months_elapsed if months_elapsed > 0 else 0.0
    remaining_budget = annual_target - ytd_actual
    # 0 stands for an unbounded runway
    months_remaining = remaining_budget / burn_rate if burn_rate > 0 and remaining_budget > 0 else 0.0

    return KPIData(
        annual_budget_target=annual_target,
        ytd_actual=ytd_actual,
        ytd_budget=ytd_budget,
        variance=variance,
        variance_pct=variance_pct,
        annual_variance=annual_variance,
        annual_variance_pct=annual_variance_pct,
        budget_utilization=budget_utilization,
        expected_ytd_target=expected_ytd_target,
        target_achievement=target_achievement,
        full_year_forecast=full_year_forecast,
        forecast_vs_target_variance=forecast_vs_target_variance,
        remaining_budget=remaining_budget,
        burn_rate=burn_rate,
        months_remaining=months_remaining,
        variance_trend=variance_trend(entries, year, months_elapsed, variance_pct),
    )


def get_kpi_data(state: BudgetState, as_of_month: Optional[int] = None) -> KPIData:
    """Compose YTD and forecast figures for ``state.selected_year`` and derive KPIs.

    The YTD actual has adjustments removed.  ``as_of_month`` defaults to
    :func:`budget_analytics.config.as_of_month`.
    """
    current_month = as_of_month if as_of_month is not None else config.as_of_month()
    year = state.selected_year
    ytd = compose_ytd(state.entries, state.categories, year, state.monthly_forecast_modes, current_month)
    tracking = budget_tracking(ytd.data.net_total)
    full_year = compose_full_year_forecast(state.entries, state.categories, year, state.monthly_forecast_modes)
    annual_target = float(state.yearly_budget_targets.get(year, 0) or 0)
    return derive_kpis(
        ytd_actual=tracking.actual,
        ytd_budget=ytd.data.net_total.budget,
        annual_target=annual_target,
        full_year_forecast=full_year,
        months_elapsed=min(current_month, 12),
        entries=state.entries,
        year=year,
    )


def top_variance_categories(
    entries: Sequence[BudgetEntry],
    categories: Sequence[Category],
    count: int,
    year: Optional[int] = None,
) -> List[VarianceCategory]:
    """Categories with the largest absolute ``actual - budget`` gap.

    Unknown category ids are reported under the id itself.
    """
    ensure_sequence(entries, "entries")
    names = {category.id: category.name for category in categories}
    totals: Dict[str, VarianceCategory] = {}
    for entry in entries:
        if year is not None and entry.year != year:
            continue
        item = totals.get(entry.category_id)
        if item is None:
            item = VarianceCategory(names.get(entry.category_id, entry.category_id), 0.0, 0.0, 0.0)
            totals[entry.category_id] = item
        item.actual += entry.actual_amount or 0
        item.budget += entry.budget_amount
        item.variance = item.actual - item.budget
    ranked = sorted(totals.values(), key=lambda item: abs(item.variance), reverse=True)
    return ranked[:count]
