"""Formatting utilities for figures embedded in summary text."""

from __future__ import annotations

import math
from typing import Union


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format a currency amount with cents.

    Args:
        amount: The amount to format
        include_sign: Whether to include the dollar sign

    Returns:
        Formatted currency string (e.g., "$1,234.56" or "1,234.56")

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-1234.56)
        '-$1,234.56'
    """
    formatted = f"{abs(amount):,.2f}"
    prefix = "-" if amount < 0 else ""
    return f"{prefix}${formatted}" if include_sign else f"{prefix}{formatted}"


def format_currency_full(amount: Union[float, int]) -> str:
    """Whole-dollar currency string without a negative zero.

    Example:
        >>> format_currency_full(1234567.4)
        '$1,234,567'
        >>> format_currency_full(-0.004)
        '$0'
    """
    if abs(amount) < 0.01:
        return "$0"
    # half away from zero
    whole = math.floor(abs(amount) + 0.5)
    prefix = "-" if amount < 0 and whole else ""
    return f"{prefix}${whole:,}"
