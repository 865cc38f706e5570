"""Preset Base/Upside/Downside forecasts and side-by-side comparison."""

from __future__ import annotations

from dataclasses import fields, replace

import pandas as pd

from proforma.defaults import default_state
from proforma.metrics import compute_metrics
from proforma.model import CFOStudioV3State, YearlyValues


PRESET_MULTIPLIERS = {
    "Base": {"revenue": 1.0, "cogs": 1.0, "opex": 1.0},
    "Upside": {"revenue": 1.15, "cogs": 1.05, "opex": 1.0},
    "Downside": {"revenue": 0.8, "cogs": 1.0, "opex": 1.05},
}

COMPARISON_METRICS = [
    "Year 1 Revenue",
    "Year 3 Revenue (ARR)",
    "Year 1 EBITDA",
    "Year 3 EBITDA",
    "Year 1 Gross Margin %",
    "Monthly Burn",
    "Runway (months)",
    "Breakeven Month",
    "LTV/CAC",
]


def _scale(line: YearlyValues, factor: float) -> YearlyValues:
    return YearlyValues(*(round(v * factor, 2) for v in line.as_tuple()))


def _scale_lines(model, factor: float):
    if factor == 1.0:
        return model
    updates = {
        f.name: _scale(getattr(model, f.name), factor)
        for f in fields(model)
        if isinstance(getattr(model, f.name), YearlyValues)
    }
    return replace(model, **updates)


def scale_state(state: CFOStudioV3State, revenue: float = 1.0, cogs: float = 1.0, opex: float = 1.0) -> CFOStudioV3State:
    """Scale every revenue, COGS and OpEx line by the given factors."""
    return replace(
        state,
        revenue=_scale_lines(state.revenue, revenue),
        cogs=_scale_lines(state.cogs, cogs),
        opex=_scale_lines(state.opex, opex),
    )


def build_presets(base: CFOStudioV3State | None = None) -> dict[str, CFOStudioV3State]:
    base_state = base if base is not None else default_state()
    return {name: scale_state(base_state, **mult) for name, mult in PRESET_MULTIPLIERS.items()}


def scenario_summary(state: CFOStudioV3State) -> dict:
    m = compute_metrics(state)
    return {
        "Year 1 Revenue": m.total_revenue[0],
        "Year 3 Revenue (ARR)": m.arr,
        "Year 1 EBITDA": m.ebitda[0],
        "Year 3 EBITDA": m.ebitda[2],
        "Year 1 Gross Margin %": m.gross_margin[0],
        "Monthly Burn": m.monthly_burn,
        "Runway (months)": m.runway,
        "Breakeven Month": m.breakeven_label(),
        "LTV/CAC": m.ltv_cac_ratio,
    }


def compare_scenarios(states: dict[str, CFOStudioV3State]) -> pd.DataFrame:
    """Key metrics per scenario, one column per scenario name."""
    summaries = {name: scenario_summary(state) for name, state in states.items()}
    df = pd.DataFrame(summaries, index=COMPARISON_METRICS)
    df.index.name = "Metric"
    return df
