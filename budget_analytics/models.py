"""Typed records consumed and produced by the analytics engine.

Input records (entries, categories, vendors, tracking rows and the
``BudgetState`` snapshot that bundles them) are frozen dataclasses: the
engine only ever reads them.  Result records are plain dataclasses that
are rebuilt on every call and discarded by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

MONTH_KEYS: Tuple[str, ...] = (
    "jan", "feb", "mar", "apr", "may", "jun",
    "jul", "aug", "sep", "oct", "nov", "dec",
)
MONTH_NAMES: Tuple[str, ...] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
MONTH_ABBREVIATIONS: Tuple[str, ...] = tuple(name[:3] for name in MONTH_NAMES)

COST_OF_SALES = "cost-of-sales"
OPEX = "opex"
UNCATEGORIZED = "uncategorized"

COMP_AND_BENEFITS = "comp-and-benefits"
OTHER = "other"

COMP_AND_BENEFITS_CATEGORIES: Tuple[str, ...] = (
    "opex-base-pay",
    "opex-capitalized-salaries",
    "opex-commissions",
    "opex-reclass-cogs",
    "opex-bonus",
    "opex-benefits",
    "opex-payroll-taxes",
    "opex-other-compensation",
)
OTHER_CATEGORIES: Tuple[str, ...] = (
    "opex-travel-entertainment",
    "opex-employee-related",
    "opex-facilities",
    "opex-information-technology",
    "opex-professional-services",
    "opex-corporate",
    "opex-marketing",
)

GROUP_NAMES: Dict[str, str] = {
    COST_OF_SALES: "Cost of Sales",
    OPEX: "OpEx",
    UNCATEGORIZED: "Uncategorized",
}
SUBGROUP_NAMES: Dict[str, str] = {
    COMP_AND_BENEFITS: "Comp and Benefits",
    OTHER: "Other",
}

# year -> month -> final flag
MonthlyForecastModes = Dict[int, Dict[int, bool]]
YearlyBudgetTargets = Dict[int, float]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BudgetEntry:
    """One category's planned, actual and reforecast spend for one month."""

    category_id: str
    year: int
    month: int
    budget_amount: float
    actual_amount: Optional[float] = None
    reforecast_amount: Optional[float] = None
    adjustment_amount: Optional[float] = None
    id: Optional[str] = None
    notes: str = ""

    @property
    def quarter(self) -> int:
        return (self.month - 1) // 3 + 1


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    group: str
    subgroup: Optional[str] = None
    is_negative: bool = False

    @property
    def resolved_subgroup(self) -> Optional[str]:
        """Subgroup used for rollups, falling back to the fixed opex lists."""
        if self.subgroup:
            return self.subgroup
        if self.group != OPEX:
            return None
        if self.id in COMP_AND_BENEFITS_CATEGORIES:
            return COMP_AND_BENEFITS
        if self.id in OTHER_CATEGORIES:
            return OTHER
        return None


@dataclass(frozen=True)
class VendorData:
    """A budgeted vendor commitment; ``budget`` is the annual figure."""

    vendor_name: str
    finance_mapped_category: str = ""
    category: str = ""
    billing_type: str = ""
    budget: float = 0.0
    month: str = "N/A"
    in_budget: bool = True
    year: int = 0
    id: Optional[str] = None


@dataclass(frozen=True)
class VendorTracking:
    """Actual vendor spend per month, stored as raw strings."""

    vendor_name: str
    finance_mapped_category: str = ""
    year: int = 0
    jan: str = ""
    feb: str = ""
    mar: str = ""
    apr: str = ""
    may: str = ""
    jun: str = ""
    jul: str = ""
    aug: str = ""
    sep: str = ""
    oct: str = ""
    nov: str = ""
    dec: str = ""
    in_budget: bool = True
    id: Optional[str] = None

    def monthly_values(self) -> List[str]:
        return [getattr(self, key) for key in MONTH_KEYS]


@dataclass(frozen=True)
class BudgetState:
    """Immutable snapshot of everything the engine reads."""

    entries: Tuple[BudgetEntry, ...] = ()
    categories: Tuple[Category, ...] = ()
    vendors: Tuple[VendorData, ...] = ()
    vendor_tracking: Tuple[VendorTracking, ...] = ()
    monthly_forecast_modes: MonthlyForecastModes = field(default_factory=dict)
    yearly_budget_targets: YearlyBudgetTargets = field(default_factory=dict)
    selected_year: int = 0

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples so the snapshot stays read-only
        for name in ("entries", "categories", "vendors", "vendor_tracking"):
            value = getattr(self, name)
            if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
                raise TypeError(f"BudgetState.{name} must be a sequence, got {type(value).__name__}")
            object.__setattr__(self, name, tuple(value))


# ---------------------------------------------------------------------------
# Budget results
# ---------------------------------------------------------------------------


@dataclass
class Totals:
    budget: float = 0.0
    actual: float = 0.0
    reforecast: float = 0.0
    adjustments: float = 0.0
    variance: float = 0.0

    def __add__(self, other: "Totals") -> "Totals":
        return Totals(
            budget=self.budget + other.budget,
            actual=self.actual + other.actual,
            reforecast=self.reforecast + other.reforecast,
            adjustments=self.adjustments + other.adjustments,
            variance=self.variance + other.variance,
        )


@dataclass
class CategorySummary:
    category_id: str
    category_name: str
    budget: float = 0.0
    actual: float = 0.0
    reforecast: float = 0.0
    adjustments: float = 0.0
    variance: float = 0.0
    variance_percent: float = 0.0
    budget_percent: float = 0.0
    actual_percent: float = 0.0
    reforecast_percent: float = 0.0
    # contra categories such as capitalized salaries, shown as offsets
    is_negative: bool = False

    @property
    def totals(self) -> Totals:
        return Totals(self.budget, self.actual, self.reforecast, self.adjustments, self.variance)


@dataclass
class SubgroupSummary:
    id: str
    name: str
    categories: List[CategorySummary] = field(default_factory=list)
    total: Totals = field(default_factory=Totals)


@dataclass
class GroupSummary:
    id: str
    name: str
    categories: List[CategorySummary] = field(default_factory=list)
    subgroups: List[SubgroupSummary] = field(default_factory=list)
    total: Totals = field(default_factory=Totals)

    def all_categories(self) -> List[CategorySummary]:
        nested = [summary for subgroup in self.subgroups for summary in subgroup.categories]
        return nested + list(self.categories)

    def find_subgroup(self, subgroup_id: str) -> Optional[SubgroupSummary]:
        return next((sg for sg in self.subgroups if sg.id == subgroup_id), None)


@dataclass
class PeriodSummary:
    """Grouped totals for a month, quarter or year-to-date window."""

    year: int
    months: Tuple[int, ...]
    groups: Dict[str, GroupSummary] = field(default_factory=dict)
    net_total: Totals = field(default_factory=Totals)

    def group(self, group_id: str) -> GroupSummary:
        return self.groups.get(group_id) or GroupSummary(group_id, GROUP_NAMES.get(group_id, group_id))

    def find_category(self, category_id: str) -> Optional[CategorySummary]:
        for group in self.groups.values():
            for summary in group.all_categories():
                if summary.category_id == category_id:
                    return summary
        return None


@dataclass
class YTDResult:
    data: PeriodSummary
    through_month: int
    last_final_month: int


@dataclass
class BudgetAlert:
    id: str
    type: str  # danger | warning | info
    category: str
    message: str
    variance: float


@dataclass
class TrendPoint:
    period: str
    month: int
    budget: float
    actual: Optional[float]
    forecast: Optional[float]
    adjusted: Optional[float]
    adjusted_forecast: Optional[float]
    monthly_budget: float
    monthly_actual: float
    monthly_reforecast: float
    monthly_adjustments: float
    is_final_month: bool


@dataclass
class KPIData:
    annual_budget_target: float
    ytd_actual: float
    ytd_budget: float
    variance: float
    variance_pct: float
    annual_variance: float
    annual_variance_pct: float
    budget_utilization: float
    expected_ytd_target: float
    target_achievement: float
    full_year_forecast: float
    forecast_vs_target_variance: float
    remaining_budget: float
    burn_rate: float
    months_remaining: float
    variance_trend: str


@dataclass
class VarianceCategory:
    name: str
    actual: float
    budget: float
    variance: float


@dataclass
class ResourceData:
    total_comp_ytd: float
    total_comp_annual_budget: float
    base_pay_ytd: float
    base_pay_monthly_average: float
    base_pay_utilization: float
    capitalized_salaries_ytd: float
    capitalized_salaries_monthly_average: float
    capitalized_offset_rate: float
    net_compensation_available: float
    estimated_hiring_budget: float
    potential_new_hires: int
    months_of_runway: float
    last_three_month_average: float
    remaining_months: int
    projected_remaining_spend: float
    budget_vs_projection: float

    @property
    def total_comp_remaining(self) -> float:
        return self.total_comp_annual_budget - self.total_comp_ytd

    @property
    def projected_total_spend(self) -> float:
        return self.total_comp_ytd + self.projected_remaining_spend

    @property
    def is_projected_over_budget(self) -> bool:
        return self.budget_vs_projection < 0


# ---------------------------------------------------------------------------
# Vendor results
# ---------------------------------------------------------------------------


@dataclass
class VendorSpend:
    vendor_name: str
    total_spend: float
    percentage: float
    category: str


@dataclass
class VendorConcentrationData:
    total_vendors: int
    active_vendors: int
    top_vendors_by_spend: List[VendorSpend]
    top5_percentage: float
    top10_percentage: float
    herfindahl_index: float
    new_vendors: int
    recurring_vendors: int
    total_new_spend: float
    total_recurring_spend: float


@dataclass
class RiskFactors:
    concentration_risk: float = 0.0
    budget_variance_risk: float = 0.0
    contract_risk: float = 0.0
    payment_volatility_risk: float = 0.0
    category_diversification_risk: float = 0.0

    def total(self) -> float:
        return (
            self.concentration_risk
            + self.budget_variance_risk
            + self.contract_risk
            + self.payment_volatility_risk
            + self.category_diversification_risk
        )


@dataclass(frozen=True)
class VendorRiskProfile:
    """Per-vendor inputs to the composite risk score."""

    vendor_name: str
    category: str
    spend_percentage: float
    actual_spend: float
    budget: float
    category_vendor_count: int
    monthly_spend: Tuple[float, ...] = ()
    tracked_category_count: int = 1


@dataclass
class VendorRiskScore:
    vendor_name: str
    category: str
    overall_risk_score: float
    risk_factors: RiskFactors
    risk_level: str  # low | medium | high | critical
    recommendations: List[str] = field(default_factory=list)


@dataclass
class SingleSourceDependency:
    category: str
    vendor_name: str
    spend_amount: float
    risk_mitigation: List[str]


@dataclass
class CategoryRiskProfile:
    category: str
    vendor_count: int
    concentration_index: float
    risk_level: str
    top_vendor_dependency: float


@dataclass
class ContractRenewalRisk:
    vendor_name: str
    category: str
    estimated_renewal_period: str
    spend_amount: float
    risk_impact: str


@dataclass
class DependencyAnalysis:
    critical_vendors: List[VendorRiskScore]
    single_source_dependencies: List[SingleSourceDependency]
    category_risk_profile: List[CategoryRiskProfile]
    contract_renewal_risks: List[ContractRenewalRisk]


@dataclass
class MissingDataPoint:
    type: str
    description: str
    impact: str


@dataclass
class AuditFinding:
    severity: str
    category: str
    description: str
    remediation: str


@dataclass
class ComplianceMetrics:
    vendor_data_completeness: float
    tracking_data_completeness: float
    missing_data_points: List[MissingDataPoint]
    budget_compliance_rate: float
    approval_workflow_compliance: float
    contract_management_score: float
    audit_score: float
    audit_findings: List[AuditFinding]


@dataclass
class OptimizationOpportunity:
    type: str  # consolidation | underutilized | overbudget | seasonal_optimization
    category: str
    description: str
    potential_savings: float
    priority: str


@dataclass
class RiskInsight:
    type: str
    priority: str
    title: str
    description: str
    action_items: List[str]


@dataclass
class CategoryVelocity:
    category: str
    budget_allocated: float
    actual_spend: float
    utilization_rate: float
    variance: float


@dataclass
class VendorLedgerSpend:
    """Vendor-type spend booked in the budget ledger for final months."""

    cost_of_sales: float
    other: float
    total: float


@dataclass
class VendorSpendVelocity:
    total_budget_allocated: float
    total_actual_spend: float
    utilization_rate: float
    burn_rate: float
    projected_runway: float
    category_velocity: List[CategoryVelocity]


@dataclass
class BillingTypeShare:
    billing_type: str
    count: int
    total_budget: float
    percentage: float


@dataclass
class BillingAnalysis:
    billing_type_distribution: List[BillingTypeShare]
    monthly_commitments: float
    quarterly_commitments: float
    annual_commitments: float
    one_time_commitments: float
    in_budget_count: int
    off_budget_count: int
    in_budget_spend: float
    off_budget_spend: float
    off_budget_percentage: float


@dataclass
class MonthlySpendPattern:
    month: str
    total_spend: float
    vendor_count: int
    average_spend_per_vendor: float


@dataclass
class QuarterlyTrend:
    quarter: int
    total_spend: float
    vendor_count: int
    trend: str


@dataclass
class PeakSpendingPeriod:
    period: str
    spend_amount: float
    primary_categories: List[str]


@dataclass
class SeasonalPatterns:
    monthly_spend_pattern: List[MonthlySpendPattern]
    quarterly_trends: List[QuarterlyTrend]
    peak_spending_periods: List[PeakSpendingPeriod]
