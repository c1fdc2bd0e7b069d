"""Plotly figure builders for engine outputs.

Each function accepts a result object produced by the calculation
modules and returns a ``plotly.graph_objects.Figure``.  Rendering is
left to the caller (a dashboard, a notebook or an export step); nothing
here touches the calculations themselves.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .models import MONTH_ABBREVIATIONS, TrendPoint, VendorConcentrationData, VendorRiskScore

RISK_COLOURS = {
    "low": "#2ca02c",
    "medium": "#ffbf00",
    "high": "#ff7f0e",
    "critical": "#d62728",
}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_trend_chart(points: Sequence[TrendPoint], title: str | None = None) -> go.Figure:
    """Cumulative budget against actual and forecast lines.

    Parameters
    ----------
    points : sequence of TrendPoint
        Output of :func:`budget_analytics.forecast.trend_points`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Line chart with one trace per series; gaps appear where a series
        has no value for a month.
    """
    if not points:
        return _empty_figure()
    df = pd.DataFrame(
        {
            "Period": [point.period for point in points],
            "Budget": [point.budget for point in points],
            "Actual": [point.actual for point in points],
            "Forecast": [point.forecast for point in points],
            "Adjusted": [point.adjusted for point in points],
        }
    )
    fig = go.Figure()
    for column, dash in (("Budget", "dot"), ("Actual", "solid"), ("Forecast", "dash"), ("Adjusted", "dashdot")):
        fig.add_trace(
            go.Scatter(x=df["Period"], y=df[column], mode="lines+markers", name=column, line={"dash": dash})
        )
    fig.update_layout(
        title=title or "Cumulative spend vs budget",
        xaxis_title="Month",
        yaxis_title="Cumulative amount",
    )
    return fig


def create_monthly_schedule_chart(schedules: Dict[str, List[float]], title: str | None = None) -> go.Figure:
    """Stacked bars of prorated vendor spend per month.

    Parameters
    ----------
    schedules : dict
        Group label -> 12 monthly amounts, as returned by
        :func:`budget_analytics.proration.monthly_totals_by`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Stacked bar chart.
    """
    if not schedules:
        return _empty_figure()
    rows = [
        {"Month": MONTH_ABBREVIATIONS[index], "Group": label, "Amount": amount}
        for label, values in schedules.items()
        for index, amount in enumerate(values)
    ]
    df = pd.DataFrame(rows)
    fig = px.bar(df, x="Month", y="Amount", color="Group", barmode="stack")
    fig.update_layout(title=title or "Prorated vendor budget by month", xaxis_title="Month", yaxis_title="Amount")
    return fig


def create_vendor_concentration_chart(data: VendorConcentrationData, title: str | None = None) -> go.Figure:
    """Horizontal bars of the top vendors' share of tracked spend."""
    if not data.top_vendors_by_spend:
        return _empty_figure()
    df = pd.DataFrame(
        {
            "Vendor": [item.vendor_name for item in data.top_vendors_by_spend],
            "Share": [item.percentage for item in data.top_vendors_by_spend],
            "Category": [item.category for item in data.top_vendors_by_spend],
        }
    )
    fig = px.bar(df, x="Share", y="Vendor", color="Category", orientation="h")
    fig.update_layout(
        title=title or f"Top vendors by spend (HHI {data.herfindahl_index:,.0f})",
        xaxis_title="Share of spend (%)",
        yaxis_title="Vendor",
        yaxis={"autorange": "reversed"},
    )
    return fig


def create_risk_score_chart(scores: Sequence[VendorRiskScore], title: str | None = None) -> go.Figure:
    """Stacked risk factors per vendor, coloured outlines by risk level."""
    if not scores:
        return _empty_figure()
    names = [score.vendor_name for score in scores]
    factors = (
        ("Concentration", "concentration_risk"),
        ("Budget variance", "budget_variance_risk"),
        ("Contract", "contract_risk"),
        ("Payment volatility", "payment_volatility_risk"),
        ("Diversification", "category_diversification_risk"),
    )
    fig = go.Figure()
    for label, attribute in factors:
        fig.add_trace(
            go.Bar(
                name=label,
                x=names,
                y=[getattr(score.risk_factors, attribute) for score in scores],
                marker_line_color=[RISK_COLOURS[score.risk_level] for score in scores],
                marker_line_width=2,
            )
        )
    fig.update_layout(
        barmode="stack",
        title=title or "Vendor risk scores",
        xaxis_title="Vendor",
        yaxis_title="Risk score",
        yaxis={"range": [0, 100]},
    )
    return fig
