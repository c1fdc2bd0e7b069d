"""Compensation and hiring-capacity figures for the resource summary."""

from __future__ import annotations

import math
from typing import Optional

from . import config
from .aggregation import aggregate_ytd, find_last_month_with_actuals
from .models import COMP_AND_BENEFITS, COMP_AND_BENEFITS_CATEGORIES, OPEX, BudgetState, ResourceData

BASE_PAY = "opex-base-pay"
CAPITALIZED_SALARIES = "opex-capitalized-salaries"


def _last_three_month_average(state: BudgetState, current_month: int, fallback: float) -> float:
    """Mean compensation spend over recent months that recorded any spend."""
    total = 0.0
    months_with_spend = 0
    for month in range(max(1, current_month - 2), current_month + 1):
        spend = sum(
            entry.actual_amount or 0
            for entry in state.entries
            if entry.category_id in COMP_AND_BENEFITS_CATEGORIES
            and entry.year == state.selected_year
            and entry.month == month
        )
        if spend > 0:
            total += spend
            months_with_spend += 1
    return total / months_with_spend if months_with_spend else fallback


def get_resource_data(state: BudgetState, as_of_month: Optional[int] = None) -> ResourceData:
    """Summarise compensation spend and what it leaves for hiring.

    YTD figures run through the last month with positive actuals.  The
    projection extrapolates the average of the last three spending
    months over the months left in the year.
    """
    year = state.selected_year
    current_month = as_of_month if as_of_month is not None else config.as_of_month()
    months_elapsed = find_last_month_with_actuals(state.entries, year)
    ytd = aggregate_ytd(state.entries, state.categories, year, months_elapsed)

    comp = ytd.group(OPEX).find_subgroup(COMP_AND_BENEFITS)
    total_comp_ytd = comp.total.actual if comp else 0.0
    base_pay = ytd.find_category(BASE_PAY)
    capitalized = ytd.find_category(CAPITALIZED_SALARIES)
    base_pay_actual = base_pay.actual if base_pay else 0.0
    base_pay_budget = base_pay.budget if base_pay else 0.0
    capitalized_actual = capitalized.actual if capitalized else 0.0

    annual_budget = sum(
        entry.budget_amount
        for entry in state.entries
        if entry.category_id in COMP_AND_BENEFITS_CATEGORIES and entry.year == year
    )

    net_available = annual_budget - total_comp_ytd
    hiring_budget = net_available * config.HIRING_BUDGET_SHARE
    burn_rate = total_comp_ytd / months_elapsed if months_elapsed > 0 else 0.0
    last_three = _last_three_month_average(state, current_month, burn_rate)
    remaining_months = 12 - months_elapsed
    projected_remaining = last_three * remaining_months
    budget_vs_projection = (total_comp_ytd + projected_remaining - annual_budget) * -1

    return ResourceData(
        total_comp_ytd=total_comp_ytd,
        total_comp_annual_budget=annual_budget,
        base_pay_ytd=base_pay_actual,
        base_pay_monthly_average=base_pay_actual / months_elapsed if months_elapsed > 0 else 0.0,
        base_pay_utilization=base_pay_actual / base_pay_budget * 100 if base_pay_budget > 0 else 0.0,
        capitalized_salaries_ytd=capitalized_actual,
        capitalized_salaries_monthly_average=capitalized_actual / months_elapsed if months_elapsed > 0 else 0.0,
        capitalized_offset_rate=abs(capitalized_actual) / base_pay_actual * 100 if base_pay_actual > 0 else 0.0,
        net_compensation_available=net_available,
        estimated_hiring_budget=hiring_budget,
        potential_new_hires=math.floor(hiring_budget / config.AVERAGE_NEW_HIRE_COMPENSATION),
        months_of_runway=net_available / burn_rate if burn_rate > 0 else 12.0,
        last_three_month_average=last_three,
        remaining_months=remaining_months,
        projected_remaining_spend=projected_remaining,
        budget_vs_projection=budget_vs_projection,
    )
