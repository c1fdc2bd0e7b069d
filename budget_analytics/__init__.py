"""Top-level package for the budget analytics engine.

The engine is a set of pure functions over an immutable
:class:`~budget_analytics.models.BudgetState` snapshot.  The primary
modules are:

* ``aggregation`` - monthly, quarterly and YTD rollups of budget entries
* ``forecast`` - final-vs-forecast month selection, YTD and full-year projection
* ``kpis`` - variance, utilization, pacing, burn rate, runway and trend
* ``proration`` - spreading vendor budgets over the year by billing type
* ``vendor_risk`` - concentration, HHI and composite vendor risk scores
* ``vendor_portfolio`` - spend velocity, billing mix and seasonality
* ``compliance`` - data completeness, audit readiness and optimization
* ``summary`` - narrative executive summary sections
* ``visualization`` - Plotly figures for the results above
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import compliance  # noqa: F401
from . import forecast  # noqa: F401
from . import kpis  # noqa: F401
from . import proration  # noqa: F401
from . import summary  # noqa: F401
from . import vendor_portfolio  # noqa: F401
from . import vendor_risk  # noqa: F401
from . import visualization  # noqa: F401
from .models import BudgetState  # noqa: F401

__all__ = [
    "aggregation",
    "compliance",
    "forecast",
    "kpis",
    "proration",
    "summary",
    "vendor_portfolio",
    "vendor_risk",
    "visualization",
    "BudgetState",
]
