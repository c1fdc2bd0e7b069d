"""Monthly, quarterly and year-to-date budget rollups.

Raw :class:`~budget_analytics.models.BudgetEntry` rows are reduced into
per-category summaries which are then rolled up into subgroups (the
opex "Comp and Benefits" and "Other" buckets), top-level groups and a
net total.  Three variance conventions are supported because different
views of the same data need different bases:

``standard``
    Single-month view.  Variance is taken from the actual when one was
    recorded, otherwise from the reforecast.
``blended``
    Multi-month forecast view.  Each month contributes its actual when
    non-zero, else its reforecast, to the variance base.
``actuals``
    Year-to-date and non-forecast views.  Variance uses actuals only.

In every convention variance is ``(base - budget) * -1`` so that
under-spend is positive.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence as _SequenceABC
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .models import (
    COMP_AND_BENEFITS,
    COST_OF_SALES,
    GROUP_NAMES,
    OPEX,
    OTHER,
    SUBGROUP_NAMES,
    UNCATEGORIZED,
    BudgetAlert,
    BudgetEntry,
    Category,
    CategorySummary,
    GroupSummary,
    PeriodSummary,
    SubgroupSummary,
    Totals,
)
from .parsing import entries_frame

logger = logging.getLogger(__name__)

VARIANCE_MODES = ("standard", "blended", "actuals")
ALERT_ORDER = {"danger": 3, "warning": 2, "info": 1}

_AMOUNT_COLUMNS = ["budget_amount", "actual_amount", "reforecast_amount", "adjustment_amount"]


def ensure_sequence(value, name: str) -> Sequence:
    """Reject inputs that are not list-like; this is a caller bug, not bad data."""
    if isinstance(value, (str, bytes)) or not isinstance(value, _SequenceABC):
        raise TypeError(f"{name} must be a sequence, got {type(value).__name__}")
    return value


def _check_month(month: int) -> int:
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise ValueError(f"month must be an integer between 1 and 12, got {month!r}")
    return month


def quarter_months(quarter: int) -> Tuple[int, int, int]:
    if not isinstance(quarter, int) or not 1 <= quarter <= 4:
        raise ValueError(f"quarter must be an integer between 1 and 4, got {quarter!r}")
    first = (quarter - 1) * 3 + 1
    return (first, first + 1, first + 2)


def _monthly_sums(entries: Sequence[BudgetEntry], year: int, months: Sequence[int]) -> pd.DataFrame:
    """Sum amounts per (category_id, month) for the requested window."""
    df = entries_frame(entries, year=year)
    df = df[df["month"].isin(list(months))]
    if df.empty:
        return pd.DataFrame(columns=["category_id", "month", *_AMOUNT_COLUMNS])
    return df.groupby(["category_id", "month"], as_index=False)[_AMOUNT_COLUMNS].sum()


def _summary_from_monthly(
    category_id: str,
    category_name: str,
    monthly: pd.DataFrame,
    mode: str,
    is_negative: bool = False,
) -> CategorySummary:
    budget = float(monthly["budget_amount"].sum()) if not monthly.empty else 0.0
    actual = float(monthly["actual_amount"].sum()) if not monthly.empty else 0.0
    reforecast = float(monthly["reforecast_amount"].sum()) if not monthly.empty else 0.0
    adjustments = float(monthly["adjustment_amount"].sum()) if not monthly.empty else 0.0

    if mode == "standard":
        base = actual if actual != 0 else reforecast
    elif mode == "blended":
        base = 0.0
        for row in monthly.itertuples(index=False):
            base += row.actual_amount if row.actual_amount != 0 else row.reforecast_amount
    elif mode == "actuals":
        base = actual
    else:
        raise ValueError(f"Unknown variance mode '{mode}'. Expected one of {VARIANCE_MODES}")

    variance = (base - budget) * -1
    variance_percent = variance / abs(budget) * 100 if budget != 0 else 0.0
    return CategorySummary(
        category_id=category_id,
        category_name=category_name,
        budget=budget,
        actual=actual,
        reforecast=reforecast,
        adjustments=adjustments,
        variance=variance,
        variance_percent=variance_percent,
        is_negative=is_negative,
    )


def summarize_category(
    entries: Sequence[BudgetEntry],
    category: Category,
    year: int,
    months: Sequence[int] = tuple(range(1, 13)),
    mode: str = "standard",
) -> CategorySummary:
    """Summarise one category over a set of months.

    Args:
        entries: All budget entries; other categories and years are ignored
        category: The category to summarise
        year: Budget year
        months: Months included in the window
        mode: ``"standard"``, ``"blended"`` or ``"actuals"``

    Returns:
        CategorySummary with summed amounts and variance

    Example:
        >>> summary = summarize_category(entries, marketing, 2024, months=[1, 2, 3], mode="blended")
        >>> summary.variance
        1500.0
    """
    ensure_sequence(entries, "entries")
    monthly = _monthly_sums(entries, year, months)
    monthly = monthly[monthly["category_id"] == category.id]
    return _summary_from_monthly(category.id, category.name, monthly, mode, category.is_negative)


def _sum_totals(summaries: Iterable[CategorySummary]) -> Totals:
    total = Totals()
    for summary in summaries:
        total = total + summary.totals
    return total


def category_percentages(summaries: List[CategorySummary], parent_total: Totals) -> List[CategorySummary]:
    """Fill the share-of-parent fields; adjustments count on both sides."""
    parent_budget = parent_total.budget + parent_total.adjustments
    parent_actual = parent_total.actual + parent_total.adjustments
    parent_reforecast = parent_total.reforecast + parent_total.adjustments
    for summary in summaries:
        summary.budget_percent = (
            (summary.budget + summary.adjustments) / parent_budget * 100 if parent_budget != 0 else 0.0
        )
        summary.actual_percent = (
            (summary.actual + summary.adjustments) / parent_actual * 100 if parent_actual != 0 else 0.0
        )
        summary.reforecast_percent = (
            (summary.reforecast + summary.adjustments) / parent_reforecast * 100 if parent_reforecast != 0 else 0.0
        )
    return summaries


def _group_order(categories: Sequence[Category]) -> List[str]:
    order = [COST_OF_SALES, OPEX]
    for category in categories:
        if category.group not in order:
            order.append(category.group)
    return order


def summarize_period(
    entries: Sequence[BudgetEntry],
    categories: Sequence[Category],
    year: int,
    months: Sequence[int],
    mode: str = "standard",
) -> PeriodSummary:
    """Roll entries for ``months`` of ``year`` up into groups and a net total."""
    ensure_sequence(entries, "entries")
    ensure_sequence(categories, "categories")
    monthly = _monthly_sums(entries, year, months)
    by_category: Dict[str, pd.DataFrame] = {
        str(category_id): frame for category_id, frame in monthly.groupby("category_id")
    }
    empty = monthly.iloc[0:0]

    groups: Dict[str, GroupSummary] = {}
    for group_id in _group_order(categories):
        group = GroupSummary(id=group_id, name=GROUP_NAMES.get(group_id, group_id))
        subgroups: Dict[str, SubgroupSummary] = {}
        for category in categories:
            if category.group != group_id:
                continue
            summary = _summary_from_monthly(
                category.id, category.name, by_category.get(category.id, empty), mode, category.is_negative
            )
            subgroup_id = category.resolved_subgroup
            if subgroup_id:
                if subgroup_id not in subgroups:
                    subgroups[subgroup_id] = SubgroupSummary(
                        id=subgroup_id, name=SUBGROUP_NAMES.get(subgroup_id, subgroup_id)
                    )
                subgroups[subgroup_id].categories.append(summary)
            else:
                group.categories.append(summary)

        # Comp and Benefits always precedes Other within opex
        ordered = sorted(
            subgroups.values(),
            key=lambda sg: (sg.id != COMP_AND_BENEFITS, sg.id != OTHER),
        )
        for subgroup in ordered:
            subgroup.total = _sum_totals(subgroup.categories)
            category_percentages(subgroup.categories, subgroup.total)
        group.subgroups = ordered
        group.total = _sum_totals(group.all_categories())
        category_percentages(group.categories, group.total)
        groups[group_id] = group

    known = {category.id for category in categories}
    unknown_ids = sorted(set(by_category) - known)
    if unknown_ids:
        logger.debug("Entries reference unknown categories: %s", unknown_ids)
        stray = GroupSummary(id=UNCATEGORIZED, name=GROUP_NAMES[UNCATEGORIZED])
        stray.categories = [
            _summary_from_monthly(category_id, category_id, by_category[category_id], mode)
            for category_id in unknown_ids
        ]
        stray.total = _sum_totals(stray.categories)
        category_percentages(stray.categories, stray.total)
        groups[UNCATEGORIZED] = stray

    net_total = _sum_group_totals(group.total for group in groups.values())
    return PeriodSummary(year=year, months=tuple(months), groups=groups, net_total=net_total)


def _sum_group_totals(totals: Iterable[Totals]) -> Totals:
    result = Totals()
    for total in totals:
        result = result + total
    return result


def aggregate_month(
    entries: Sequence[BudgetEntry],
    categories: Sequence[Category],
    month: int,
    year: int,
) -> PeriodSummary:
    """Reduce entries for a single month into grouped totals.

    Entries outside ``(month, year)`` are ignored, missing actuals count as
    zero and an empty entry list yields all-zero totals.

    Raises:
        ValueError: If ``month`` is outside 1-12
        TypeError: If ``entries`` or ``categories`` is not a sequence
    """
    return summarize_period(entries, categories, year, (_check_month(month),), mode="standard")


def aggregate_quarter(
    entries: Sequence[BudgetEntry],
    categories: Sequence[Category],
    quarter: int,
    year: int,
    forecast: bool = True,
) -> PeriodSummary:
    """Quarterly rollup, blended (forecast view) or actuals-only."""
    mode = "blended" if forecast else "actuals"
    return summarize_period(entries, categories, year, quarter_months(quarter), mode=mode)


def aggregate_ytd(
    entries: Sequence[BudgetEntry],
    categories: Sequence[Category],
    year: int,
    through_month: int,
) -> PeriodSummary:
    """Actuals-only rollup of January through ``through_month``.

    ``through_month`` of 0 produces an empty (all-zero) window.
    """
    if not 0 <= through_month <= 12:
        raise ValueError(f"through_month must be between 0 and 12, got {through_month!r}")
    return summarize_period(entries, categories, year, tuple(range(1, through_month + 1)), mode="actuals")


def budget_tracking(net_total: Totals, forecast_mode: bool = False) -> Totals:
    """Net totals with adjustments taken out of the spend figures.

    Adjustments are always removed from the actual and are removed from
    the reforecast only when no actual has been recorded.  Variance is
    measured from the reforecast in forecast mode, else from the actual.
    """
    actual = net_total.actual - net_total.adjustments
    reforecast = (
        net_total.reforecast - net_total.adjustments if net_total.actual == 0 else net_total.reforecast
    )
    base = reforecast if forecast_mode else actual
    return Totals(
        budget=net_total.budget,
        actual=actual,
        reforecast=reforecast,
        adjustments=net_total.adjustments,
        variance=(base - net_total.budget) * -1,
    )


def find_last_month_with_actuals(entries: Sequence[BudgetEntry], year: int) -> int:
    """Latest month of ``year`` with a positive actual, or 0."""
    months = [
        entry.month
        for entry in entries
        if entry.year == year and entry.actual_amount and entry.actual_amount > 0
    ]
    return max(months) if months else 0


def monthly_series(
    entries: Sequence[BudgetEntry],
    year: int,
    category_id: Optional[str] = None,
) -> Dict[str, List[float]]:
    """Twelve-slot budget, actual, reforecast and adjustment arrays.

    Restricted to ``category_id`` when given, otherwise summed across all
    categories.
    """
    ensure_sequence(entries, "entries")
    df = entries_frame(entries, year=year)
    if category_id is not None:
        df = df[df["category_id"] == category_id]
    by_month = df.groupby("month")[_AMOUNT_COLUMNS].sum().reindex(range(1, 13), fill_value=0.0)
    return {
        "budget": [float(v) for v in by_month["budget_amount"]],
        "actual": [float(v) for v in by_month["actual_amount"]],
        "reforecast": [float(v) for v in by_month["reforecast_amount"]],
        "adjustments": [float(v) for v in by_month["adjustment_amount"]],
    }


def generate_alerts(
    entries: Sequence[BudgetEntry],
    categories: Sequence[Category],
    year: int,
) -> List[BudgetAlert]:
    """Flag large full-year variances and budgeted categories with no actuals.

    A variance alert needs both ``|variance%| > 15`` and
    ``|variance| > 50,000``; it is ``danger`` above 25% and ``warning``
    otherwise.  Results are ordered danger, warning, info.
    """
    ensure_sequence(categories, "categories")
    alerts: List[BudgetAlert] = []
    for category in categories:
        summary = summarize_category(entries, category, year)
        if abs(summary.variance_percent) > 15 and abs(summary.variance) > 50000:
            alerts.append(
                BudgetAlert(
                    id=f"variance-{category.id}",
                    type="danger" if abs(summary.variance_percent) > 25 else "warning",
                    category=category.name,
                    message=f"{abs(summary.variance_percent):.1f}% variance from budget",
                    variance=summary.variance,
                )
            )
        if summary.budget != 0 and summary.actual == 0:
            alerts.append(
                BudgetAlert(
                    id=f"no-actuals-{category.id}",
                    type="info",
                    category=category.name,
                    message="No actual expenses recorded yet",
                    variance=summary.budget,
                )
            )
    return sorted(alerts, key=lambda alert: ALERT_ORDER[alert.type], reverse=True)
