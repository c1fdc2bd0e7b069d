"""Spread annual vendor budgets across the months of the year.

The billing type decides the schedule:

* ``monthly``: the whole annual budget is split evenly over the start
  month through December.  A vendor starting in July therefore gets
  ``budget / 6`` per month rather than half its budget in total.
* ``quarterly``: installments at the start month and every third month
  after it, each ``budget / installments``.
* ``annual`` and ``one-time``: the whole budget in the start month.
* anything else (``hourly``, ``project-based``, blank): ``budget / 12``
  every month, ignoring the start month.

A start month of ``"N/A"`` or one that cannot be read means January.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np

from .models import VendorData
from .parsing import month_number, parse_amount

logger = logging.getLogger(__name__)

SCHEDULED_BILLING_TYPES = ("monthly", "quarterly", "annual", "one-time")


def start_month(vendor: VendorData) -> int:
    """The vendor's first billing month, 1 when unspecified."""
    month = month_number(vendor.month)
    if month is None:
        if vendor.month and str(vendor.month).strip().lower() != "n/a":
            logger.debug("Unrecognised start month %r for %s; using January", vendor.month, vendor.vendor_name)
        return 1
    return month


def prorate_vendor(vendor: VendorData) -> List[float]:
    """Distribute ``vendor.budget`` into twelve monthly slots.

    Args:
        vendor: Vendor commitment with ``billing_type``, ``budget`` and
            start ``month``

    Returns:
        List of 12 floats, January first; months outside the schedule
        hold ``0.0``

    Example:
        >>> prorate_vendor(VendorData("Acme", billing_type="annual", budget=1200, month="March"))
        [0.0, 0.0, 1200.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0]
    """
    amount = parse_amount(vendor.budget)
    billing_type = (vendor.billing_type or "").strip().lower()
    schedule = [0.0] * 12

    if billing_type == "monthly":
        start = start_month(vendor)
        per_month = amount / (12 - start + 1)
        for month in range(start, 13):
            schedule[month - 1] = per_month
    elif billing_type == "quarterly":
        start = start_month(vendor)
        installments = list(range(start, 13, 3))
        for month in installments:
            schedule[month - 1] = amount / len(installments)
    elif billing_type in ("annual", "one-time"):
        schedule[start_month(vendor) - 1] = amount
    else:
        schedule = [amount / 12] * 12
    return schedule


def monthly_totals(vendors: Iterable[VendorData], year: Optional[int] = None) -> List[float]:
    """Sum of every vendor's prorated schedule, month by month."""
    rows = [prorate_vendor(vendor) for vendor in vendors if year is None or vendor.year == year]
    if not rows:
        return [0.0] * 12
    return [float(value) for value in np.sum(np.array(rows), axis=0)]


def monthly_totals_by(
    vendors: Iterable[VendorData],
    key: Callable[[VendorData], str],
    year: Optional[int] = None,
) -> Dict[str, List[float]]:
    """Prorated schedules summed per group, e.g. per finance category.

    Args:
        vendors: Vendor commitments
        key: Function returning the group label for a vendor
        year: Only include vendors for this year

    Returns:
        Mapping of group label to a 12-element list, in first-seen order
    """
    grouped: Dict[str, List[float]] = {}
    for vendor in vendors:
        if year is not None and vendor.year != year:
            continue
        label = key(vendor) or "Unknown"
        schedule = prorate_vendor(vendor)
        current = grouped.setdefault(label, [0.0] * 12)
        grouped[label] = [a + b for a, b in zip(current, schedule)]
    return grouped


def by_finance_category(vendor: VendorData) -> str:
    return vendor.finance_mapped_category


def by_vendor_category(vendor: VendorData) -> str:
    return vendor.category


def split_by_budget_status(
    vendors: Iterable[VendorData],
    year: Optional[int] = None,
) -> Dict[str, List[float]]:
    """Prorated monthly totals for in-budget and off-budget vendors."""
    selected = [vendor for vendor in vendors if year is None or vendor.year == year]
    return {
        "in_budget": monthly_totals([vendor for vendor in selected if vendor.in_budget]),
        "off_budget": monthly_totals([vendor for vendor in selected if not vendor.in_budget]),
    }
