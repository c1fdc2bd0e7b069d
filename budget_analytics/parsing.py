"""Numeric normalization at the engine's boundary.

Vendor tracking stores monthly spend as free-form strings and budget
entries carry nullable amounts.  Everything that turns those raw values
into numbers lives here so the calculation modules can assume clean
floats.  Malformed values become ``0.0``; they are never an error.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Optional, Sequence

import pandas as pd

from .models import (
    MONTH_ABBREVIATIONS,
    MONTH_KEYS,
    MONTH_NAMES,
    BudgetEntry,
    VendorTracking,
)

logger = logging.getLogger(__name__)

_MONTH_LOOKUP = {name.lower(): index for index, name in enumerate(MONTH_NAMES, start=1)}
_MONTH_LOOKUP.update({abbr.lower(): index for index, abbr in enumerate(MONTH_ABBREVIATIONS, start=1)})

ENTRY_COLUMNS = [
    "category_id",
    "year",
    "month",
    "budget_amount",
    "actual_amount",
    "reforecast_amount",
    "adjustment_amount",
]


def parse_amount(value: Any) -> float:
    """Convert a raw amount to ``float`` with a zero fallback.

    Parsing is strict: the whole string, after dropping ``$`` and thousands
    separators, must be a number.  ``"$1,200"`` gives ``1200.0`` while
    ``"12abc"`` gives ``0.0`` rather than a leading-digits ``12.0``.

    Args:
        value: A number, numeric string (``"1,200.50"``, ``" $300 "``),
            ``None`` or anything else

    Returns:
        The parsed value, or ``0.0`` when it cannot be parsed or is NaN

    Example:
        >>> parse_amount("1,250.5")
        1250.5
        >>> parse_amount("n/a")
        0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "").replace("$", "")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def month_number(name: Any) -> Optional[int]:
    """Map a month name, abbreviation or number to 1-12.

    Returns ``None`` for ``"N/A"``, blanks and anything unrecognised.
    """
    if name is None:
        return None
    if isinstance(name, int) and not isinstance(name, bool):
        return name if 1 <= name <= 12 else None
    text = str(name).strip().lower()
    if not text or text == "n/a":
        return None
    if text.isdigit():
        number = int(text)
        return number if 1 <= number <= 12 else None
    return _MONTH_LOOKUP.get(text)


def parse_monthly_values(values: Sequence[Any]) -> List[float]:
    return [parse_amount(value) for value in values]


def tracking_frame(tracking: Iterable[VendorTracking], year: Optional[int] = None) -> pd.DataFrame:
    """Build a numeric DataFrame from vendor tracking rows.

    Each row keeps ``vendor_name``, ``finance_mapped_category`` and
    ``in_budget`` and gets one float column per month key plus a
    ``total`` column.  Rows for other years are dropped when ``year`` is
    given.
    """
    rows = []
    for record in tracking:
        if year is not None and record.year != year:
            continue
        row = {
            "vendor_name": record.vendor_name,
            "finance_mapped_category": record.finance_mapped_category or "Unknown",
            "in_budget": bool(record.in_budget),
        }
        row.update(dict(zip(MONTH_KEYS, parse_monthly_values(record.monthly_values()))))
        rows.append(row)

    columns = ["vendor_name", "finance_mapped_category", "in_budget", *MONTH_KEYS]
    df = pd.DataFrame(rows, columns=columns)
    for key in MONTH_KEYS:
        df[key] = pd.to_numeric(df[key], errors="coerce").fillna(0.0).astype(float)
    df["total"] = df[list(MONTH_KEYS)].sum(axis=1) if not df.empty else pd.Series(dtype=float)
    return df


def entries_frame(entries: Iterable[BudgetEntry], year: Optional[int] = None) -> pd.DataFrame:
    """Return budget entries as a DataFrame with null amounts filled with 0."""
    rows = [
        {
            "category_id": entry.category_id,
            "year": entry.year,
            "month": entry.month,
            "budget_amount": entry.budget_amount,
            "actual_amount": entry.actual_amount,
            "reforecast_amount": entry.reforecast_amount,
            "adjustment_amount": entry.adjustment_amount,
        }
        for entry in entries
        if year is None or entry.year == year
    ]
    df = pd.DataFrame(rows, columns=ENTRY_COLUMNS)
    for column in ENTRY_COLUMNS[3:]:
        df[column] = pd.to_numeric(df[column], errors="coerce").fillna(0.0).astype(float)
    df["year"] = df["year"].astype(int)
    df["month"] = df["month"].astype(int)
    return df


def cell_is_filled(value: Any) -> bool:
    """True when a tracking cell holds something other than blank or ``"0"``."""
    if value is None:
        return False
    text = str(value).strip()
    return text not in ("", "0")
