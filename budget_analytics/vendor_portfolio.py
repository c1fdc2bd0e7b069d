"""Vendor portfolio metrics: spend velocity, billing mix and seasonality.

These are the aggregates the compliance and optimization scoring builds
on.  Budgets come from vendor data and spend from vendor tracking; each
function filters both to the requested year.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from . import config
from .aggregation import aggregate_month, ensure_sequence
from .forecast import is_final_month
from .models import (
    COST_OF_SALES,
    MONTH_ABBREVIATIONS,
    MONTH_KEYS,
    OPEX,
    OTHER,
    BillingAnalysis,
    BillingTypeShare,
    BudgetState,
    CategoryVelocity,
    MonthlySpendPattern,
    PeakSpendingPeriod,
    QuarterlyTrend,
    SeasonalPatterns,
    VendorData,
    VendorLedgerSpend,
    VendorSpendVelocity,
    VendorTracking,
)
from .parsing import parse_amount, tracking_frame


def _year_vendors(vendors: Sequence[VendorData], year: int) -> List[VendorData]:
    ensure_sequence(vendors, "vendors")
    return [vendor for vendor in vendors if vendor.year == year]


def total_vendor_spend(tracking: Sequence[VendorTracking], year: int) -> float:
    df = tracking_frame(ensure_sequence(tracking, "tracking"), year=year)
    return float(df["total"].sum()) if not df.empty else 0.0


def vendor_ledger_spend(state: BudgetState) -> VendorLedgerSpend:
    """Actual cost-of-sales and opex "Other" spend from the budget ledger.

    Only final months of ``state.selected_year`` count, so the figure can be
    set against tracked vendor spend (:func:`total_vendor_spend`) for the
    same settled period.
    """
    year = state.selected_year
    cost_of_sales = 0.0
    other = 0.0
    for month in range(1, 13):
        if not is_final_month(state.monthly_forecast_modes, year, month):
            continue
        summary = aggregate_month(state.entries, state.categories, month, year)
        cost_of_sales += summary.group(COST_OF_SALES).total.actual
        other_subgroup = summary.group(OPEX).find_subgroup(OTHER)
        if other_subgroup:
            other += other_subgroup.total.actual
    return VendorLedgerSpend(cost_of_sales=cost_of_sales, other=other, total=cost_of_sales + other)


def calculate_spend_velocity(
    vendors: Sequence[VendorData],
    tracking: Sequence[VendorTracking],
    year: int,
    months_elapsed: Optional[int] = None,
) -> VendorSpendVelocity:
    """Budget utilization and burn rate per finance category.

    Args:
        vendors: Vendor commitments
        tracking: Vendor tracking rows
        year: Year to analyse
        months_elapsed: Months treated as elapsed; defaults to
            :func:`budget_analytics.config.as_of_month`

    Returns:
        VendorSpendVelocity.  Runway is capped at
        :data:`budget_analytics.config.RUNWAY_CAP_MONTHS`, which is also
        reported when nothing has been spent.
    """
    ensure_sequence(tracking, "tracking")
    year_vendors = _year_vendors(vendors, year)
    elapsed = min(months_elapsed if months_elapsed is not None else config.as_of_month(), 12)

    budgets: Dict[str, float] = {}
    for vendor in year_vendors:
        category = vendor.finance_mapped_category or "Unknown"
        budgets[category] = budgets.get(category, 0.0) + parse_amount(vendor.budget)

    df = tracking_frame(tracking, year=year)
    actuals = df.groupby("finance_mapped_category")["total"].sum() if not df.empty else pd.Series(dtype=float)

    total_budget = sum(parse_amount(vendor.budget) for vendor in year_vendors)
    total_actual = float(actuals.sum())
    burn_rate = total_actual / elapsed if elapsed > 0 else 0.0
    remaining = total_budget - total_actual
    runway = remaining / burn_rate if burn_rate > 0 else float("inf")

    velocity = []
    for category, allocated in budgets.items():
        spent = float(actuals.get(category, 0.0))
        velocity.append(
            CategoryVelocity(
                category=category,
                budget_allocated=allocated,
                actual_spend=spent,
                utilization_rate=spent / allocated * 100 if allocated > 0 else 0.0,
                variance=spent - allocated,
            )
        )
    velocity.sort(key=lambda item: item.actual_spend, reverse=True)

    return VendorSpendVelocity(
        total_budget_allocated=total_budget,
        total_actual_spend=total_actual,
        utilization_rate=total_actual / total_budget * 100 if total_budget > 0 else 0.0,
        burn_rate=burn_rate,
        projected_runway=min(runway, config.RUNWAY_CAP_MONTHS),
        category_velocity=velocity,
    )


def calculate_billing_analysis(vendors: Sequence[VendorData], year: int) -> BillingAnalysis:
    """Billing-type mix, cash-flow commitments and in/off budget split."""
    year_vendors = _year_vendors(vendors, year)
    counts: Dict[str, int] = {}
    budgets: Dict[str, float] = {}
    total_budget = 0.0
    for vendor in year_vendors:
        billing_type = vendor.billing_type or "Unknown"
        amount = parse_amount(vendor.budget)
        total_budget += amount
        counts[billing_type] = counts.get(billing_type, 0) + 1
        budgets[billing_type] = budgets.get(billing_type, 0.0) + amount

    distribution = sorted(
        (
            BillingTypeShare(
                billing_type=billing_type,
                count=counts[billing_type],
                total_budget=budgets[billing_type],
                percentage=budgets[billing_type] / total_budget * 100 if total_budget > 0 else 0.0,
            )
            for billing_type in counts
        ),
        key=lambda share: share.total_budget,
        reverse=True,
    )

    in_budget = [vendor for vendor in year_vendors if vendor.in_budget]
    off_budget = [vendor for vendor in year_vendors if not vendor.in_budget]
    off_budget_spend = sum(parse_amount(vendor.budget) for vendor in off_budget)

    return BillingAnalysis(
        billing_type_distribution=distribution,
        monthly_commitments=budgets.get("monthly", 0.0),
        quarterly_commitments=budgets.get("quarterly", 0.0),
        annual_commitments=budgets.get("annual", 0.0),
        one_time_commitments=budgets.get("one-time", 0.0),
        in_budget_count=len(in_budget),
        off_budget_count=len(off_budget),
        in_budget_spend=sum(parse_amount(vendor.budget) for vendor in in_budget),
        off_budget_spend=off_budget_spend,
        off_budget_percentage=off_budget_spend / total_budget * 100 if total_budget > 0 else 0.0,
    )


def _spend_in(df: pd.DataFrame, month_keys: Sequence[str]) -> Tuple[float, int]:
    """Total positive spend and distinct paying vendors across ``month_keys``."""
    total = 0.0
    paying = set()
    for key in month_keys:
        positive = df[df[key] > 0]
        total += float(positive[key].sum())
        paying.update(positive["vendor_name"])
    return total, len(paying)


def calculate_seasonal_patterns(tracking: Sequence[VendorTracking], year: int) -> SeasonalPatterns:
    """Monthly and quarterly spend plus the three heaviest months."""
    df = tracking_frame(ensure_sequence(tracking, "tracking"), year=year)

    monthly = []
    for key, label in zip(MONTH_KEYS, MONTH_ABBREVIATIONS):
        total, vendor_count = _spend_in(df, [key])
        monthly.append(
            MonthlySpendPattern(
                month=label,
                total_spend=total,
                vendor_count=vendor_count,
                average_spend_per_vendor=total / vendor_count if vendor_count else 0.0,
            )
        )

    quarterly = []
    for quarter in range(1, 5):
        total, vendor_count = _spend_in(df, MONTH_KEYS[(quarter - 1) * 3:quarter * 3])
        # no prior-year history to compare against
        quarterly.append(QuarterlyTrend(quarter=quarter, total_spend=total, vendor_count=vendor_count, trend="stable"))

    peaks = []
    for pattern in sorted(monthly, key=lambda item: item.total_spend, reverse=True)[:3]:
        key = MONTH_KEYS[MONTH_ABBREVIATIONS.index(pattern.month)]
        positive = df[df[key] > 0]
        by_category = positive.groupby("finance_mapped_category", sort=False)[key].sum()
        top = by_category.sort_values(ascending=False, kind="stable").head(3)
        peaks.append(
            PeakSpendingPeriod(
                period=pattern.month,
                spend_amount=pattern.total_spend,
                primary_categories=[str(category) for category in top.index],
            )
        )

    return SeasonalPatterns(monthly_spend_pattern=monthly, quarterly_trends=quarterly, peak_spending_periods=peaks)
