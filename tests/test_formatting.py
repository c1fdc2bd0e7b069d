"""Unit tests for budget_analytics.formatting."""

from __future__ import annotations

from budget_analytics.formatting import format_currency, format_currency_full


def test_format_currency() -> None:
    assert format_currency(1234.56) == "$1,234.56"
    assert format_currency(-1234.56) == "-$1,234.56"
    assert format_currency(0) == "$0.00"
    assert format_currency(1000, include_sign=False) == "1,000.00"


def test_format_currency_full_rounds_to_whole_dollars() -> None:
    assert format_currency_full(1234567.4) == "$1,234,567"
    assert format_currency_full(2.5) == "$3"
    assert format_currency_full(-2.5) == "-$3"
    assert format_currency_full(-1500) == "-$1,500"


def test_format_currency_full_has_no_negative_zero() -> None:
    assert format_currency_full(-0.004) == "$0"
    assert format_currency_full(0) == "$0"
    assert format_currency_full(-0.3) == "$0"
