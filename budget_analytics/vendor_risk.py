"""Vendor concentration, composite risk scoring and dependency analysis.

Spend figures come from vendor tracking (actuals); budgets and category
assignments come from vendor data.  Both are filtered to the requested
year before anything is computed.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd

from .aggregation import ensure_sequence
from .models import (
    MONTH_KEYS,
    CategoryRiskProfile,
    ContractRenewalRisk,
    DependencyAnalysis,
    RiskFactors,
    SingleSourceDependency,
    VendorConcentrationData,
    VendorData,
    VendorRiskProfile,
    VendorRiskScore,
    VendorSpend,
    VendorTracking,
)
from .parsing import parse_amount, tracking_frame

logger = logging.getLogger(__name__)

CONCENTRATION_CAP = 30.0
BUDGET_VARIANCE_CAP = 25.0
CONTRACT_CAP = 20.0
VOLATILITY_CAP = 15.0
DIVERSIFICATION_CAP = 10.0

RECOMMENDATIONS = {
    "concentration": "Consider diversifying vendor portfolio to reduce concentration risk",
    "budget_variance": "Review budget allocation and spend controls",
    "contract": "Identify alternative vendors for this category",
    "volatility": "Stabilize payment patterns or review contract terms",
    "diversification": "Consider vendor consolidation or clearer category assignments",
}

SINGLE_SOURCE_MITIGATION = [
    "Identify backup vendor options",
    "Negotiate contract terms for service continuity",
    "Develop internal capabilities as alternative",
    "Create vendor performance monitoring",
]

# billing type -> (renewal window, impact for high, impact for critical)
RENEWAL_WINDOWS: Dict[str, Tuple[str, str, str]] = {
    "annual": ("Within 12 months", "medium", "high"),
    "quarterly": ("Within 3 months", "medium", "medium"),
    "monthly": ("Monthly", "low", "low"),
}


def _year_vendors(vendors: Sequence[VendorData], year: int) -> List[VendorData]:
    ensure_sequence(vendors, "vendors")
    return [vendor for vendor in vendors if vendor.year == year]


def vendor_spend(tracking: Sequence[VendorTracking], year: int) -> pd.Series:
    """Total tracked spend per vendor name, in first-seen order."""
    ensure_sequence(tracking, "tracking")
    df = tracking_frame(tracking, year=year)
    if df.empty:
        return pd.Series(dtype=float)
    return df.groupby("vendor_name", sort=False)["total"].sum()


def _first_by_name(vendors: Sequence[VendorData]) -> Dict[str, VendorData]:
    lookup: Dict[str, VendorData] = {}
    for vendor in vendors:
        lookup.setdefault(vendor.vendor_name, vendor)
    return lookup


def analyze_concentration(
    vendors: Sequence[VendorData],
    tracking: Sequence[VendorTracking],
    year: int,
) -> VendorConcentrationData:
    """Rank vendors by tracked spend and measure how concentrated it is.

    Args:
        vendors: Vendor commitments (all years)
        tracking: Vendor tracking rows (all years)
        year: Year to analyse

    Returns:
        VendorConcentrationData with the top 10 vendors, top-5/top-10
        share and the Herfindahl-Hirschman index on the 0-10000 scale

    Example:
        >>> data = analyze_concentration(vendors, tracking, 2024)
        >>> data.herfindahl_index
        5000.0
    """
    year_vendors = _year_vendors(vendors, year)
    spend = vendor_spend(tracking, year).sort_values(ascending=False, kind="stable")
    total_spend = float(spend.sum())
    info = _first_by_name(year_vendors)

    ranked = [
        VendorSpend(
            vendor_name=str(name),
            total_spend=float(amount),
            percentage=float(amount) / total_spend * 100 if total_spend > 0 else 0.0,
            category=(info[name].finance_mapped_category if name in info else "") or "Unknown",
        )
        for name, amount in spend.items()
    ]

    top5 = sum(item.total_spend for item in ranked[:5])
    top10 = sum(item.total_spend for item in ranked[:10])
    hhi = sum((item.percentage / 100) ** 2 for item in ranked) * 10000

    new_names = {vendor.vendor_name for vendor in year_vendors if parse_amount(vendor.budget) > 0}
    all_names = {vendor.vendor_name for vendor in year_vendors}
    total_new_spend = float(sum(spend.get(name, 0.0) for name in new_names))

    return VendorConcentrationData(
        total_vendors=len(year_vendors),
        active_vendors=len(ranked),
        top_vendors_by_spend=ranked[:10],
        top5_percentage=top5 / total_spend * 100 if total_spend > 0 else 0.0,
        top10_percentage=top10 / total_spend * 100 if total_spend > 0 else 0.0,
        herfindahl_index=hhi,
        new_vendors=len(new_names),
        recurring_vendors=len(all_names) - len(new_names),
        total_new_spend=total_new_spend,
        total_recurring_spend=total_spend - total_new_spend,
    )


def risk_level(score: float) -> str:
    if score >= 80:
        return "critical"
    if score >= 60:
        return "high"
    if score >= 40:
        return "medium"
    return "low"


def score_vendor_risk(profile: VendorRiskProfile) -> VendorRiskScore:
    """Composite 0-100 risk score from five capped factors.

    ======================  ===========================================  ====
    factor                  formula                                      cap
    ======================  ===========================================  ====
    concentration           spend share % x 3                            30
    budget variance         abs(spend - budget) / budget x 100 / 4       25
    contract                20 if sole vendor, else 20 - 3 x vendors     20
    payment volatility      stddev(monthly) / (spend / 12) x 50          15
    diversification         (tracked categories - 1) x 5                 10
    ======================  ===========================================  ====

    Each factor above its advisory threshold adds one recommendation.
    """
    concentration = min(profile.spend_percentage * 3, CONCENTRATION_CAP)

    if profile.budget > 0:
        variance_pct = abs(profile.actual_spend - profile.budget) / profile.budget * 100
        budget_variance = min(variance_pct / 4, BUDGET_VARIANCE_CAP)
    else:
        budget_variance = 0.0

    if profile.category_vendor_count == 1:
        contract = CONTRACT_CAP
    else:
        contract = max(0.0, CONTRACT_CAP - profile.category_vendor_count * 3)

    monthly = np.array(profile.monthly_spend, dtype=float)
    average = profile.actual_spend / 12 if monthly.size else 0.0
    if average > 0:
        volatility = min(float(np.std(monthly)) / average * 50, VOLATILITY_CAP)
    else:
        volatility = 0.0

    diversification = min(max(profile.tracked_category_count - 1, 0) * 5, DIVERSIFICATION_CAP)

    factors = RiskFactors(
        concentration_risk=concentration,
        budget_variance_risk=budget_variance,
        contract_risk=contract,
        payment_volatility_risk=volatility,
        category_diversification_risk=diversification,
    )
    overall = factors.total()

    recommendations = []
    if concentration > 15:
        recommendations.append(RECOMMENDATIONS["concentration"])
    if budget_variance > 15:
        recommendations.append(RECOMMENDATIONS["budget_variance"])
    if contract > 15:
        recommendations.append(RECOMMENDATIONS["contract"])
    if volatility > 10:
        recommendations.append(RECOMMENDATIONS["volatility"])
    if diversification > 5:
        recommendations.append(RECOMMENDATIONS["diversification"])

    return VendorRiskScore(
        vendor_name=profile.vendor_name,
        category=profile.category,
        overall_risk_score=overall,
        risk_factors=factors,
        risk_level=risk_level(overall),
        recommendations=recommendations,
    )


def build_risk_profiles(
    vendors: Sequence[VendorData],
    tracking: Sequence[VendorTracking],
    year: int,
) -> List[VendorRiskProfile]:
    """One profile per distinct vendor name across vendor data and tracking.

    Monthly spend is summed across all of a vendor's tracking rows.
    """
    ensure_sequence(tracking, "tracking")
    year_vendors = _year_vendors(vendors, year)
    info = _first_by_name(year_vendors)
    df = tracking_frame(tracking, year=year)
    total_spend = float(df["total"].sum()) if not df.empty else 0.0

    names: List[str] = []
    for name in [vendor.vendor_name for vendor in year_vendors] + list(df["vendor_name"]):
        if name not in names:
            names.append(name)

    profiles = []
    for name in names:
        rows = df[df["vendor_name"] == name]
        spend = float(rows["total"].sum()) if not rows.empty else 0.0
        vendor = info.get(name)
        category = (vendor.finance_mapped_category if vendor else "") or (
            str(rows["finance_mapped_category"].iloc[0]) if not rows.empty else ""
        ) or "Unknown"
        monthly = tuple(float(v) for v in rows[list(MONTH_KEYS)].sum(axis=0)) if not rows.empty else ()
        profiles.append(
            VendorRiskProfile(
                vendor_name=name,
                category=category,
                spend_percentage=spend / total_spend * 100 if total_spend > 0 else 0.0,
                actual_spend=spend,
                budget=parse_amount(vendor.budget) if vendor else 0.0,
                category_vendor_count=sum(1 for v in year_vendors if v.finance_mapped_category == category),
                monthly_spend=monthly,
                tracked_category_count=int(rows["finance_mapped_category"].nunique()) if not rows.empty else 0,
            )
        )
    return profiles


def calculate_vendor_risk_scores(
    vendors: Sequence[VendorData],
    tracking: Sequence[VendorTracking],
    year: int,
) -> List[VendorRiskScore]:
    """Risk scores for every vendor of ``year``, highest first."""
    scores = [score_vendor_risk(profile) for profile in build_risk_profiles(vendors, tracking, year)]
    return sorted(scores, key=lambda score: score.overall_risk_score, reverse=True)


def _category_profile(category: str, members: List[Tuple[str, float]]) -> CategoryRiskProfile:
    total = sum(amount for _, amount in members)
    top = max(amount for _, amount in members)
    dependency = top / total * 100 if total > 0 else 0.0
    hhi = sum((amount / total) ** 2 for _, amount in members) if total > 0 else 0.0

    if len(members) == 1 or dependency > 80:
        level = "high"
    elif len(members) <= 2 or dependency > 60:
        level = "medium"
    else:
        level = "low"
    return CategoryRiskProfile(
        category=category,
        vendor_count=len(members),
        concentration_index=hhi * 10000,
        risk_level=level,
        top_vendor_dependency=dependency,
    )


def analyze_dependencies(
    vendors: Sequence[VendorData],
    tracking: Sequence[VendorTracking],
    year: int,
) -> DependencyAnalysis:
    """Single points of failure and per-category concentration.

    Every finance category backed by exactly one scored vendor is a
    single-source dependency.  Critical vendors are the high and critical
    risk scores (at most 10); renewal risks cover the first five of them.
    """
    scores = calculate_vendor_risk_scores(vendors, tracking, year)
    spend = vendor_spend(tracking, year)
    info = _first_by_name(_year_vendors(vendors, year))

    critical = [score for score in scores if score.risk_level in ("critical", "high")][:10]

    by_category: Dict[str, List[Tuple[str, float]]] = {}
    for score in scores:
        amount = float(spend.get(score.vendor_name, 0.0))
        by_category.setdefault(score.category, []).append((score.vendor_name, amount))

    single_source = [
        SingleSourceDependency(
            category=category,
            vendor_name=members[0][0],
            spend_amount=members[0][1],
            risk_mitigation=list(SINGLE_SOURCE_MITIGATION),
        )
        for category, members in by_category.items()
        if len(members) == 1
    ]

    profiles = sorted(
        (_category_profile(category, members) for category, members in by_category.items()),
        key=lambda profile: profile.concentration_index,
        reverse=True,
    )

    renewals = []
    for score in critical[:5]:
        vendor = info.get(score.vendor_name)
        billing_type = (vendor.billing_type if vendor else "") or "unknown"
        period, high_impact, critical_impact = RENEWAL_WINDOWS.get(billing_type, ("Unknown", "medium", "medium"))
        renewals.append(
            ContractRenewalRisk(
                vendor_name=score.vendor_name,
                category=score.category,
                estimated_renewal_period=period,
                # rough estimate, scaled from the concentration factor
                spend_amount=score.risk_factors.concentration_risk * 1000,
                risk_impact=critical_impact if score.risk_level == "critical" else high_impact,
            )
        )
    if single_source:
        logger.debug("%d single-source categories in %s", len(single_source), year)

    return DependencyAnalysis(
        critical_vendors=critical,
        single_source_dependencies=single_source,
        category_risk_profile=profiles,
        contract_renewal_risks=renewals,
    )
