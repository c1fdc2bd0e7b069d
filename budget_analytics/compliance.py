"""Data-quality, process-adherence and audit-readiness scoring.

Also derives cost optimization opportunities from spend velocity and the
risk insights shown alongside the dependency analysis.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .aggregation import ensure_sequence
from .models import (
    AuditFinding,
    ComplianceMetrics,
    DependencyAnalysis,
    MissingDataPoint,
    OptimizationOpportunity,
    RiskInsight,
    VendorData,
    VendorTracking,
)
from .parsing import cell_is_filled, parse_amount
from .proration import SCHEDULED_BILLING_TYPES
from .vendor_portfolio import calculate_spend_velocity

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}
OPPORTUNITY_TYPES = ("consolidation", "underutilized", "overbudget", "seasonal_optimization")

REQUIRED_VENDOR_FIELDS = ("vendor_name", "finance_mapped_category", "billing_type", "budget")
MAX_MISSING_DATA_POINTS = 10

FINDING_PENALTY = 15
HIGH_SEVERITY_PENALTY = 10


def _missing_fields(vendor: VendorData) -> List[str]:
    missing = []
    for name in REQUIRED_VENDOR_FIELDS:
        value = getattr(vendor, name)
        if name == "budget":
            if not parse_amount(value):
                missing.append(name)
        elif not value or not str(value).strip():
            missing.append(name)
    return missing


def audit_score(findings: Sequence[AuditFinding]) -> float:
    """100 less 15 per finding and a further 10 per high finding, floored at 0."""
    high = sum(1 for finding in findings if finding.severity == "high")
    return max(0, 100 - len(findings) * FINDING_PENALTY - high * HIGH_SEVERITY_PENALTY)


def calculate_compliance_metrics(
    vendors: Sequence[VendorData],
    tracking: Sequence[VendorTracking],
    year: int,
) -> ComplianceMetrics:
    """Score vendor master data and tracking for completeness and controls.

    Args:
        vendors: Vendor commitments
        tracking: Vendor tracking rows
        year: Year to score

    Returns:
        ComplianceMetrics.  Every rate is a percentage and is 0 when there
        is nothing to measure.
    """
    ensure_sequence(vendors, "vendors")
    ensure_sequence(tracking, "tracking")
    year_vendors = [vendor for vendor in vendors if vendor.year == year]
    year_tracking = [record for record in tracking if record.year == year]

    complete = 0
    missing_points: List[MissingDataPoint] = []
    for vendor in year_vendors:
        missing = _missing_fields(vendor)
        if not missing:
            complete += 1
            continue
        missing_points.append(
            MissingDataPoint(
                type="vendor_info",
                description=f"{vendor.vendor_name}: Missing {', '.join(missing)}",
                impact="high" if "budget" in missing else "medium",
            )
        )
    vendor_completeness = complete / len(year_vendors) * 100 if year_vendors else 0.0

    cells = [value for record in year_tracking for value in record.monthly_values()]
    filled = sum(1 for value in cells if cell_is_filled(value))
    tracking_completeness = filled / len(cells) * 100 if cells else 0.0

    in_budget = sum(1 for vendor in year_vendors if vendor.in_budget)
    budget_compliance = in_budget / len(year_vendors) * 100 if year_vendors else 0.0
    approval_compliance = (budget_compliance + vendor_completeness) / 2
    standard = sum(1 for vendor in year_vendors if vendor.billing_type in SCHEDULED_BILLING_TYPES)
    contract_score = standard / len(year_vendors) * 100 if year_vendors else 0.0

    findings: List[AuditFinding] = []
    if vendor_completeness < 80:
        findings.append(
            AuditFinding(
                severity="high",
                category="Data Quality",
                description="Incomplete vendor master data records",
                remediation="Complete missing vendor information fields",
            )
        )
    if tracking_completeness < 70:
        findings.append(
            AuditFinding(
                severity="medium",
                category="Tracking Accuracy",
                description="Gaps in monthly vendor tracking data",
                remediation="Implement systematic monthly tracking processes",
            )
        )
    if budget_compliance < 85:
        findings.append(
            AuditFinding(
                severity="medium",
                category="Budget Controls",
                description="High percentage of off-budget vendor spending",
                remediation="Strengthen budget approval and monitoring processes",
            )
        )

    return ComplianceMetrics(
        vendor_data_completeness=vendor_completeness,
        tracking_data_completeness=tracking_completeness,
        missing_data_points=missing_points[:MAX_MISSING_DATA_POINTS],
        budget_compliance_rate=budget_compliance,
        approval_workflow_compliance=approval_compliance,
        contract_management_score=contract_score,
        audit_score=audit_score(findings),
        audit_findings=findings,
    )


def _by_priority(items: List) -> List:
    # sorted() is stable, so equal priorities keep their discovery order
    return sorted(items, key=lambda item: PRIORITY_ORDER[item.priority], reverse=True)


def get_optimization_opportunities(
    vendors: Sequence[VendorData],
    tracking: Sequence[VendorTracking],
    year: int,
    months_elapsed: Optional[int] = None,
) -> List[OptimizationOpportunity]:
    """Suggest consolidation, reallocation and overspend reviews.

    ``seasonal_optimization`` is a recognised type but no rule emits it
    yet.  Results are ordered high priority first.
    """
    year_vendors = [vendor for vendor in ensure_sequence(vendors, "vendors") if vendor.year == year]
    velocity = calculate_spend_velocity(vendors, tracking, year, months_elapsed)
    by_category = {item.category: item for item in velocity.category_velocity}

    opportunities: List[OptimizationOpportunity] = []

    members: Dict[str, List[str]] = {}
    for vendor in year_vendors:
        members.setdefault(vendor.finance_mapped_category or "Unknown", []).append(vendor.vendor_name)
    for category, names in members.items():
        if len(names) > 2:
            spend = by_category[category].actual_spend if category in by_category else 0.0
            opportunities.append(
                OptimizationOpportunity(
                    type="consolidation",
                    category=category,
                    description=f"{len(names)} vendors in {category} category could potentially be consolidated",
                    potential_savings=spend * 0.1,
                    priority="high" if len(names) > 4 else "medium",
                )
            )

    for item in velocity.category_velocity:
        if item.utilization_rate < 50 and item.budget_allocated > 10000:
            opportunities.append(
                OptimizationOpportunity(
                    type="underutilized",
                    category=item.category,
                    description=(
                        f"Low utilization ({item.utilization_rate:.1f}%) suggests potential budget reallocation"
                    ),
                    potential_savings=item.budget_allocated - item.actual_spend,
                    priority="high" if item.budget_allocated > 50000 else "medium",
                )
            )

    for item in velocity.category_velocity:
        if item.variance > 0 and item.variance > item.budget_allocated * 0.1:
            overspend_pct = item.variance / item.budget_allocated * 100 if item.budget_allocated else 0.0
            opportunities.append(
                OptimizationOpportunity(
                    type="overbudget",
                    category=item.category,
                    description=f"Spending exceeds budget by {overspend_pct:.1f}%",
                    # negative: this is additional cost, not a saving
                    potential_savings=-item.variance,
                    priority="high" if item.variance > item.budget_allocated * 0.2 else "medium",
                )
            )

    logger.debug("%d optimization opportunities for %s", len(opportunities), year)
    return _by_priority(opportunities)


def get_vendor_risk_insights(
    dependencies: DependencyAnalysis,
    compliance: ComplianceMetrics,
) -> List[RiskInsight]:
    """Headline risk and compliance insights, high priority first."""
    insights: List[RiskInsight] = []
    if dependencies.critical_vendors:
        insights.append(
            RiskInsight(
                type="risk",
                priority="high",
                title="Critical Vendor Dependencies Identified",
                description=f"{len(dependencies.critical_vendors)} vendors pose significant risk to operations",
                action_items=[
                    "Develop contingency plans for critical vendors",
                    "Negotiate improved contract terms",
                    "Identify backup vendor options",
                    "Implement enhanced monitoring",
                ],
            )
        )
    if dependencies.single_source_dependencies:
        insights.append(
            RiskInsight(
                type="risk",
                priority="high",
                title="Single Source Dependencies",
                description=f"{len(dependencies.single_source_dependencies)} categories rely on single vendors",
                action_items=[
                    "Diversify vendor portfolio in critical categories",
                    "Develop alternative sourcing strategies",
                    "Create vendor performance benchmarks",
                ],
            )
        )
    if compliance.vendor_data_completeness < 85:
        insights.append(
            RiskInsight(
                type="compliance",
                priority="medium",
                title="Data Quality Improvement Needed",
                description=f"Vendor data completeness at {compliance.vendor_data_completeness:.1f}%",
                action_items=[
                    "Complete missing vendor information",
                    "Implement data validation rules",
                    "Establish regular data quality reviews",
                ],
            )
        )
    if compliance.budget_compliance_rate < 80:
        insights.append(
            RiskInsight(
                type="compliance",
                priority="medium",
                title="Budget Process Strengthening Required",
                description=f"Budget compliance rate at {compliance.budget_compliance_rate:.1f}%",
                action_items=[
                    "Strengthen budget approval workflows",
                    "Implement spend monitoring alerts",
                    "Review off-budget spending patterns",
                ],
            )
        )
    return _by_priority(insights)
