"""Derived pro-forma metrics: yearly P&L totals, unit economics, burn and breakeven."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

import numpy as np
import pandas as pd

from proforma.model import (
    COGS_LINE_KEYS,
    LINE_LABELS,
    OPEX_LINE_KEYS,
    REVENUE_LINE_KEYS,
    YEARS,
    CFOStudioV3State,
)


PROJECTION_MONTHS = 36
NO_BURN_RUNWAY_MONTHS = 36
ARPU_SUBSCRIBER_DIVISOR = 1000.0

RUNWAY_HEALTHY_MONTHS = 18
RUNWAY_MONITOR_MONTHS = 12


def _safe_div(a: float, b: float) -> float:
    return float(a / b) if b else 0.0


@dataclass(frozen=True)
class ForecastMetrics:
    total_revenue: tuple[float, float, float]
    total_cogs: tuple[float, float, float]
    total_opex: tuple[float, float, float]
    gross_profit: tuple[float, float, float]
    gross_margin: tuple[float, float, float]
    ebitda: tuple[float, float, float]
    headcount: tuple[float, float, float]
    headcount_cost: tuple[float, float, float]
    arr: float
    arpu: float
    ltv: float
    ltv_cac_ratio: float
    monthly_burn: float
    runway: int
    runway_status: str
    breakeven_month: int | None
    flat_growth_lines: tuple[str, ...] = ()

    def breakeven_label(self) -> str:
        return "N/A" if self.breakeven_month is None else f"Month {self.breakeven_month}"

    def to_dict(self) -> dict:
        out = asdict(self)
        for key, value in out.items():
            if isinstance(value, tuple):
                out[key] = list(value)
        return out


def monthly_growth_factor(year1_total: float, year3_total: float, months: int = PROJECTION_MONTHS) -> float | None:
    """Return (year3 / year1) ** (1 / months), or None when the ratio is undefined.

    A year-1 base <= 0 or a negative year-3 total has no real geometric rate;
    callers hold those series flat.
    """
    if year1_total <= 0 or year3_total < 0:
        return None
    return float((year3_total / year1_total) ** (1.0 / months))


def _compounded_series(year1_total: float, year3_total: float, months: int) -> tuple[np.ndarray, bool]:
    g = monthly_growth_factor(year1_total, year3_total, months)
    flat = g is None
    factors = np.full(months, 1.0 if flat else g, dtype=float)
    return (float(year1_total) / 12.0) * np.cumprod(factors), flat


def _projection_and_flat_lines(state: CFOStudioV3State, months: int) -> tuple[pd.DataFrame, tuple[str, ...]]:
    series = {
        "Revenue": (state.revenue.total(1), state.revenue.total(3)),
        "COGS": (state.cogs.total(1), state.cogs.total(3)),
        "OpEx": (state.opex.total(1), state.opex.total(3)),
    }
    columns: dict[str, np.ndarray] = {"Month": np.arange(1, months + 1)}
    flat_lines: list[str] = []
    for name, (y1, y3) in series.items():
        columns[name], flat = _compounded_series(y1, y3, months)
        if flat:
            flat_lines.append(name)
    df = pd.DataFrame(columns)
    df["Net"] = df["Revenue"] - df["COGS"] - df["OpEx"]
    return df, tuple(flat_lines)


def monthly_projection(state: CFOStudioV3State, months: int = PROJECTION_MONTHS) -> pd.DataFrame:
    """Month-by-month revenue/COGS/OpEx run-rates interpolated from year 1 to year 3."""
    df, flat_lines = _projection_and_flat_lines(state, months)
    df.attrs["flat_growth_lines"] = list(flat_lines)
    return df


def breakeven_month_from_projection(projection: pd.DataFrame) -> int | None:
    positive = np.flatnonzero(projection["Net"].to_numpy() > 0)
    if len(positive) == 0:
        return None
    return int(projection["Month"].iloc[int(positive[0])])


def runway_status(runway_months: float) -> str:
    if runway_months > RUNWAY_HEALTHY_MONTHS:
        return "healthy"
    if runway_months > RUNWAY_MONITOR_MONTHS:
        return "monitor"
    return "critical"


def compute_metrics(state: CFOStudioV3State) -> ForecastMetrics:
    total_revenue = tuple(state.revenue.total(y) for y in YEARS)
    total_cogs = tuple(state.cogs.total(y) for y in YEARS)
    total_opex = tuple(state.opex.total(y) for y in YEARS)
    gross_profit = tuple(rev - cogs for rev, cogs in zip(total_revenue, total_cogs))
    gross_margin = tuple(_safe_div(gp, rev) * 100.0 for gp, rev in zip(gross_profit, total_revenue))
    ebitda = tuple(gp - opex for gp, opex in zip(gross_profit, total_opex))

    headcount = tuple(float(sum(row.count(y) for row in state.headcount)) for y in YEARS)
    headcount_cost = tuple(float(sum(row.cost(y) for row in state.headcount)) for y in YEARS)

    a = state.assumptions
    arr = total_revenue[2]
    # Simplified ARPU: year-3 subscription revenue over a fixed 1,000-subscriber base.
    arpu = state.revenue.subscriptions.year3 / ARPU_SUBSCRIBER_DIVISOR
    ltv = arpu * a.ltv_months
    ltv_cac_ratio = ltv / a.cac_cost if a.cac_cost > 0 else 0.0

    monthly_burn = abs(ebitda[0]) / 12.0 if ebitda[0] < 0 else 0.0
    runway = math.floor(a.cash_on_hand / monthly_burn) if monthly_burn > 0 else NO_BURN_RUNWAY_MONTHS

    projection, flat_lines = _projection_and_flat_lines(state, PROJECTION_MONTHS)

    return ForecastMetrics(
        total_revenue=total_revenue,
        total_cogs=total_cogs,
        total_opex=total_opex,
        gross_profit=gross_profit,
        gross_margin=gross_margin,
        ebitda=ebitda,
        headcount=headcount,
        headcount_cost=headcount_cost,
        arr=float(arr),
        arpu=float(arpu),
        ltv=float(ltv),
        ltv_cac_ratio=float(ltv_cac_ratio),
        monthly_burn=float(monthly_burn),
        runway=int(runway),
        runway_status=runway_status(runway),
        breakeven_month=breakeven_month_from_projection(projection),
        flat_growth_lines=flat_lines,
    )


def yearly_frame(state: CFOStudioV3State, metrics: ForecastMetrics | None = None) -> pd.DataFrame:
    """One row per forecast year with every line item, totals and headcount."""
    m = metrics if metrics is not None else compute_metrics(state)
    data: dict[str, list] = {"Year": list(YEARS)}
    for key in REVENUE_LINE_KEYS:
        data[LINE_LABELS[key]] = list(getattr(state.revenue, key).as_tuple())
    data["Total Revenue"] = list(m.total_revenue)
    for key in COGS_LINE_KEYS:
        data[LINE_LABELS[key]] = list(getattr(state.cogs, key).as_tuple())
    data["Total COGS"] = list(m.total_cogs)
    for key in OPEX_LINE_KEYS:
        data[LINE_LABELS[key]] = list(getattr(state.opex, key).as_tuple())
    data["Total OpEx"] = list(m.total_opex)
    data["Gross Profit"] = list(m.gross_profit)
    data["Gross Margin %"] = list(m.gross_margin)
    data["EBITDA"] = list(m.ebitda)
    data["Headcount"] = list(m.headcount)
    data["Headcount Cost"] = list(m.headcount_cost)

    df = pd.DataFrame(data)
    df.attrs["enterprise_enabled"] = bool(state.revenue.enterprise_enabled)
    df.attrs["arr"] = m.arr
    df.attrs["monthly_burn"] = m.monthly_burn
    return df
