"""Plotly figures for the forecast views."""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from proforma.metrics import breakeven_month_from_projection


def monthly_projection_figure(projection: pd.DataFrame) -> go.Figure:
    """Revenue against total cost run-rate, with the breakeven month marked."""
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=projection["Month"], y=projection["Revenue"], mode="lines", name="Revenue"))
    fig.add_trace(
        go.Scatter(
            x=projection["Month"],
            y=projection["COGS"] + projection["OpEx"],
            mode="lines",
            name="COGS + OpEx",
        )
    )
    fig.add_trace(go.Bar(x=projection["Month"], y=projection["Net"], name="Net", opacity=0.35))
    breakeven = breakeven_month_from_projection(projection)
    if breakeven is not None:
        fig.add_vline(x=breakeven, line_dash="dash", annotation_text=f"Breakeven: month {breakeven}")
    fig.update_layout(
        title="Monthly Run-Rate Projection",
        xaxis_title="Month",
        yaxis_title="USD per month",
        legend_title_text="",
    )
    return fig


def yearly_pnl_figure(frame: pd.DataFrame) -> go.Figure:
    long_df = frame.melt(
        id_vars=["Year"],
        value_vars=["Total Revenue", "Total COGS", "Total OpEx", "EBITDA"],
        var_name="Metric",
        value_name="USD",
    )
    long_df["Year"] = "Year " + long_df["Year"].astype(str)
    fig = px.bar(long_df, x="Year", y="USD", color="Metric", barmode="group", title="Yearly P&L")
    fig.update_layout(legend_title_text="")
    return fig
