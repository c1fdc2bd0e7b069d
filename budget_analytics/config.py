"""Configuration management for the budget analytics engine.

This module centralizes the tunable constants used by the calculations
together with their environment variable overrides.  Nothing here is
read at calculation time except through the small getter helpers so
tests can patch the environment.
"""

from __future__ import annotations

import logging
import os
from datetime import date
from typing import Optional

# Runway figures above this many months are reported as the cap
RUNWAY_CAP_MONTHS = float(os.getenv("BUDGET_ANALYTICS_RUNWAY_CAP", "999"))

# Bound for the snapshot memoization layer
CACHE_SIZE = int(os.getenv("BUDGET_ANALYTICS_CACHE_SIZE", "128"))

LOG_LEVEL = os.getenv("BUDGET_ANALYTICS_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Hiring capacity assumptions used by the resource analysis
HIRING_BUDGET_SHARE = 0.75
AVERAGE_NEW_HIRE_COMPENSATION = 120000.0


def as_of_month(today: Optional[date] = None) -> int:
    """Return the month (1-12) treated as "now" by the calculations.

    ``BUDGET_ANALYTICS_AS_OF_MONTH`` pins the value, which keeps reports
    reproducible; otherwise the current calendar month is used.
    """
    override = os.getenv("BUDGET_ANALYTICS_AS_OF_MONTH")
    if override:
        month = int(override)
        if not 1 <= month <= 12:
            raise ValueError(f"BUDGET_ANALYTICS_AS_OF_MONTH must be 1-12, got {month}")
        return month
    return (today or date.today()).month


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a basic stream handler at the configured level."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
