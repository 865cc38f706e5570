"""Assumption guidance metadata and advisory range checks."""

from __future__ import annotations

from typing import Any

from proforma.model import Assumptions


ASSUMPTION_GUIDANCE: dict[str, dict[str, Any]] = {
    "revenue_growth": {
        "label": "Revenue Growth",
        "unit": "percent",
        "min": 0.0,
        "max": 300.0,
        "note": "Early-stage SaaS year-over-year growth rarely holds above 3x.",
    },
    "churn_rate": {
        "label": "Monthly Churn",
        "unit": "percent",
        "min": 1.0,
        "max": 15.0,
        "note": "Percent of paying creators who cancel each month.",
    },
    "pricing_growth": {
        "label": "Pricing Growth",
        "unit": "percent",
        "min": 0.0,
        "max": 20.0,
        "note": "Annual list-price increase across tiers.",
    },
    "cogs_percent": {
        "label": "COGS % of Revenue",
        "unit": "percent",
        "min": 5.0,
        "max": 40.0,
        "note": "Hosting, AI inference and payment fees as a share of revenue.",
    },
    "headcount_growth": {
        "label": "Headcount Growth",
        "unit": "percent",
        "min": 0.0,
        "max": 150.0,
        "note": "Annual growth of total team size.",
    },
    "salary_growth": {
        "label": "Salary Growth",
        "unit": "percent",
        "min": 0.0,
        "max": 10.0,
        "note": "Annual compensation step-up.",
    },
    "cac_cost": {
        "label": "Customer Acquisition Cost",
        "unit": "USD",
        "min": 5.0,
        "max": 500.0,
        "note": "Blended cost to acquire one paying creator.",
    },
    "ltv_months": {
        "label": "LTV Months",
        "unit": "months",
        "min": 6.0,
        "max": 60.0,
        "note": "Expected paying lifetime used for LTV.",
    },
    "cash_on_hand": {
        "label": "Cash on Hand",
        "unit": "USD",
        "min": 0.0,
        "max": 50_000_000.0,
        "note": "Opening cash used for runway.",
    },
}


def _fmt(v: float) -> str:
    if abs(v - round(v)) < 1e-9:
        return f"{int(round(v)):,}"
    return f"{v:,.3f}".rstrip("0").rstrip(".")


def format_assumption_value(key: str, value: float) -> str:
    unit = ASSUMPTION_GUIDANCE.get(key, {}).get("unit")
    if unit == "USD":
        return f"${_fmt(value)}"
    if unit == "percent":
        return f"{_fmt(value)}%"
    if unit == "months":
        return f"{_fmt(value)} months"
    return _fmt(value)


def help_with_guidance(key: str, base_help: str) -> str:
    g = ASSUMPTION_GUIDANCE.get(key)
    if not g:
        return base_help
    return (
        f"{base_help} Reasonable range: {format_assumption_value(key, g['min'])} "
        f"to {format_assumption_value(key, g['max'])}. {g['note']}"
    )


def advisory_warnings(assumptions: Assumptions) -> list[str]:
    """List assumptions outside their recommended range. Advisory only."""
    warnings: list[str] = []
    values = assumptions.to_dict()
    for key, g in ASSUMPTION_GUIDANCE.items():
        v = float(values[key])
        if v < g["min"] or v > g["max"]:
            warnings.append(f"{key}={v:.3f} is outside the recommended range [{_fmt(g['min'])}, {_fmt(g['max'])}].")
    return warnings
