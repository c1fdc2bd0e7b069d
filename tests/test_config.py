"""Tests for environment-driven configuration."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from budget_analytics import config


def test_as_of_month_defaults_to_calendar(monkeypatch) -> None:
    monkeypatch.delenv("BUDGET_ANALYTICS_AS_OF_MONTH", raising=False)
    assert config.as_of_month(date(2024, 8, 15)) == 8


def test_as_of_month_override(monkeypatch) -> None:
    monkeypatch.setenv("BUDGET_ANALYTICS_AS_OF_MONTH", "4")
    assert config.as_of_month(date(2024, 8, 15)) == 4


@pytest.mark.parametrize("value", ["0", "13"])
def test_as_of_month_out_of_range(monkeypatch, value) -> None:
    monkeypatch.setenv("BUDGET_ANALYTICS_AS_OF_MONTH", value)
    with pytest.raises(ValueError):
        config.as_of_month()


def test_as_of_month_not_a_number(monkeypatch) -> None:
    monkeypatch.setenv("BUDGET_ANALYTICS_AS_OF_MONTH", "June")
    with pytest.raises(ValueError):
        config.as_of_month()


def test_configure_logging_sets_level(monkeypatch) -> None:
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
    config.configure_logging("debug")
    assert calls["level"] == "DEBUG"
    assert calls["format"] == config.LOG_FORMAT
