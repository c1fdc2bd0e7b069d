"""Year-to-date and full-year forecast composition.

A month is *final* when its flag in the monthly forecast modes is
``True``; final months are represented by their actuals and every other
month by its reforecast.  These helpers sweep months 1..12 with that
rule to build YTD windows, full-year projections and cumulative trend
lines.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from . import config
from .aggregation import (
    aggregate_month,
    aggregate_ytd,
    ensure_sequence,
    find_last_month_with_actuals,
    monthly_series,
)
from .models import (
    MONTH_ABBREVIATIONS,
    MONTH_NAMES,
    BudgetEntry,
    Category,
    MonthlyForecastModes,
    TrendPoint,
    YTDResult,
)

logger = logging.getLogger(__name__)


def is_final_month(forecast_modes: Optional[MonthlyForecastModes], year: int, month: int) -> bool:
    """Whether ``month`` of ``year`` is final; absent flags mean forecast."""
    if not forecast_modes:
        return False
    return bool((forecast_modes.get(year) or {}).get(month, False))


def _latest_final_month(forecast_modes: Optional[MonthlyForecastModes], year: int) -> int:
    for month in range(12, 0, -1):
        if is_final_month(forecast_modes, year, month):
            return month
    return 0


def _latest_month_with_actuals(entries: Sequence[BudgetEntry], year: int) -> int:
    for month in range(12, 0, -1):
        if any(
            entry.year == year and entry.month == month and entry.actual_amount
            for entry in entries
        ):
            return month
    return 0


def last_final_month(
    entries: Sequence[BudgetEntry],
    year: int,
    forecast_modes: Optional[MonthlyForecastModes] = None,
    current_month: Optional[int] = None,
) -> int:
    """Month used for "as of <Month>" labels.

    The latest month flagged final wins.  Without one, the latest month
    holding a non-zero actual is used, and failing that the current
    calendar month.
    """
    ensure_sequence(entries, "entries")
    month = _latest_final_month(forecast_modes, year)
    if month:
        return month
    month = _latest_month_with_actuals(entries, year)
    if month:
        return month
    return current_month if current_month is not None else config.as_of_month()


def last_final_month_name(
    entries: Sequence[BudgetEntry],
    year: int,
    forecast_modes: Optional[MonthlyForecastModes] = None,
    current_month: Optional[int] = None,
) -> str:
    month = last_final_month(entries, year, forecast_modes, current_month)
    return MONTH_NAMES[month - 1]


def compose_ytd(
    entries: Sequence[BudgetEntry],
    categories: Sequence[Category],
    year: int,
    forecast_modes: Optional[MonthlyForecastModes] = None,
    current_month: Optional[int] = None,
) -> YTDResult:
    """Actuals-only rollup of January through the last settled month.

    The window ends at the latest final month, or at the latest month
    with positive actuals when nothing is flagged final.  With neither,
    the window is empty and every total is zero.

    Returns:
        YTDResult carrying the rollup, the window end (``through_month``)
        and the labeling month (``last_final_month``)
    """
    through = _latest_final_month(forecast_modes, year) or find_last_month_with_actuals(entries, year)
    data = aggregate_ytd(entries, categories, year, through)
    label_month = last_final_month(entries, year, forecast_modes, current_month)
    logger.debug("YTD for %s runs through month %s (labelled %s)", year, through, label_month)
    return YTDResult(data=data, through_month=through, last_final_month=label_month)


def compose_full_year_forecast(
    entries: Sequence[BudgetEntry],
    categories: Sequence[Category],
    year: int,
    forecast_modes: Optional[MonthlyForecastModes] = None,
) -> float:
    """Twelve-month projection mixing settled actuals with reforecasts.

    Final months contribute their net actual.  Forecast months contribute
    their net reforecast, or the net budget when no reforecast has been
    entered.  A year without entries projects to zero.

    Example:
        >>> compose_full_year_forecast(entries, categories, 2024, {2024: {1: True}})
        1185000.0
    """
    total = 0.0
    for month in range(1, 13):
        net = aggregate_month(entries, categories, month, year).net_total
        if is_final_month(forecast_modes, year, month):
            total += net.actual or 0.0
        else:
            total += net.reforecast or net.budget
    return total


def trend_points(
    entries: Sequence[BudgetEntry],
    year: int,
    forecast_modes: Optional[MonthlyForecastModes] = None,
) -> List[TrendPoint]:
    """Cumulative budget, actual and forecast lines for charting.

    The actual line only advances on final months, the forecast line
    takes actuals for final months and reforecasts otherwise, and the
    adjusted line does the same with adjustments removed.  Months with
    nothing to plot are dropped.
    """
    series = monthly_series(entries, year)
    points: List[TrendPoint] = []
    cumulative_budget = cumulative_actual = cumulative_forecast = 0.0
    cumulative_adjusted_forecast = 0.0

    for index in range(12):
        month = index + 1
        budget = series["budget"][index]
        actual = series["actual"][index]
        reforecast = series["reforecast"][index]
        adjustments = series["adjustments"][index]
        final = is_final_month(forecast_modes, year, month)

        cumulative_budget += budget
        if final:
            cumulative_actual += actual
            cumulative_forecast += actual
            cumulative_adjusted_forecast += actual - adjustments
        else:
            cumulative_forecast += reforecast
            cumulative_adjusted_forecast += reforecast - adjustments

        point = TrendPoint(
            period=MONTH_ABBREVIATIONS[index],
            month=month,
            budget=cumulative_budget,
            actual=cumulative_actual if final else None,
            forecast=None if final else cumulative_forecast,
            adjusted=cumulative_adjusted_forecast if cumulative_adjusted_forecast > 0 else None,
            adjusted_forecast=None if final else cumulative_adjusted_forecast,
            monthly_budget=budget,
            monthly_actual=actual if final else 0.0,
            monthly_reforecast=0.0 if final else reforecast,
            monthly_adjustments=adjustments,
            is_final_month=final,
        )
        has_data = (
            point.budget > 0
            or (point.actual or 0) > 0
            or (point.forecast or 0) > 0
            or (point.adjusted or 0) > 0
            or (point.adjusted_forecast or 0) > 0
        )
        if has_data:
            points.append(point)
    return points
