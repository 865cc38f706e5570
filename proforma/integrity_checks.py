"""Accounting identity checks over the yearly pro-forma frame."""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from proforma.metrics import ForecastMetrics
from proforma.model import COGS_LINE_KEYS, LINE_LABELS, OPEX_LINE_KEYS


def _finding(check: str, max_abs_delta: float, year: str, lhs_name: str, rhs_name: str) -> dict[str, Any]:
    return {
        "Check": check,
        "Max Abs Delta": float(max_abs_delta),
        "Year of Max Delta": year,
        "LHS": lhs_name,
        "RHS": rhs_name,
    }


def _year_of_max_delta(df: pd.DataFrame, delta: np.ndarray) -> str:
    if len(delta) == 0:
        return ""
    idx = int(np.argmax(np.abs(delta)))
    if "Year" in df.columns and idx < len(df):
        return f"Year {int(df.iloc[idx]['Year'])}"
    return str(idx)


def _check_identity(
    findings: list[dict[str, Any]],
    df: pd.DataFrame,
    check_name: str,
    lhs_name: str,
    rhs_name: str,
    lhs: np.ndarray,
    rhs: np.ndarray,
    tol: float,
) -> None:
    delta = np.nan_to_num(np.asarray(lhs, dtype=float) - np.asarray(rhs, dtype=float), nan=np.inf)
    if len(delta) == 0:
        return
    max_abs = float(np.max(np.abs(delta)))
    if max_abs > float(tol):
        findings.append(_finding(check_name, max_abs, _year_of_max_delta(df, delta), lhs_name, rhs_name))


def _sum_columns(df: pd.DataFrame, keys: tuple[str, ...]) -> np.ndarray:
    return df[[LINE_LABELS[k] for k in keys]].sum(axis=1).to_numpy()


def run_integrity_checks(
    df: pd.DataFrame, metrics: ForecastMetrics | None = None, tol: float = 1e-6
) -> list[dict[str, Any]]:
    """Return identity findings for a yearly frame (empty list means all checks passed)."""
    if not isinstance(df, pd.DataFrame) or df.empty:
        return [_finding("Frame not available", np.nan, "", "", "")]

    findings: list[dict[str, Any]] = []
    enterprise_gate = 1.0 if df.attrs.get("enterprise_enabled", True) else 0.0

    _check_identity(
        findings,
        df,
        "Revenue identity",
        "Total Revenue",
        "Subscriptions+AI Tools+Advertising+Enterprise (if enabled)",
        df["Total Revenue"].to_numpy(),
        (df["Subscriptions"] + df["AI Tools"] + df["Advertising"] + enterprise_gate * df["Enterprise"]).to_numpy(),
        tol,
    )
    _check_identity(
        findings,
        df,
        "COGS identity",
        "Total COGS",
        "COGS line items",
        df["Total COGS"].to_numpy(),
        _sum_columns(df, COGS_LINE_KEYS),
        tol,
    )
    _check_identity(
        findings,
        df,
        "OpEx identity",
        "Total OpEx",
        "OpEx line items",
        df["Total OpEx"].to_numpy(),
        _sum_columns(df, OPEX_LINE_KEYS),
        tol,
    )
    _check_identity(
        findings,
        df,
        "Gross profit identity",
        "Gross Profit",
        "Total Revenue - Total COGS",
        df["Gross Profit"].to_numpy(),
        (df["Total Revenue"] - df["Total COGS"]).to_numpy(),
        tol,
    )
    revenue = df["Total Revenue"].to_numpy(dtype=float)
    expected_margin = np.divide(
        df["Gross Profit"].to_numpy(dtype=float) * 100.0,
        revenue,
        out=np.zeros(len(df), dtype=float),
        where=revenue != 0,
    )
    _check_identity(
        findings,
        df,
        "Gross margin identity",
        "Gross Margin %",
        "Gross Profit / Total Revenue * 100 (0 without revenue)",
        df["Gross Margin %"].to_numpy(),
        expected_margin,
        tol,
    )
    _check_identity(
        findings,
        df,
        "EBITDA identity",
        "EBITDA",
        "Gross Profit - Total OpEx",
        df["EBITDA"].to_numpy(),
        (df["Gross Profit"] - df["Total OpEx"]).to_numpy(),
        tol,
    )

    if metrics is not None:
        year1 = df.iloc[[0]]
        year3 = df.iloc[[-1]]
        _check_identity(
            findings,
            year3,
            "ARR identity",
            "ARR",
            "Year 3 Total Revenue",
            np.array([metrics.arr]),
            year3["Total Revenue"].to_numpy(),
            tol,
        )
        ebitda1 = float(year1["EBITDA"].iloc[0])
        _check_identity(
            findings,
            year1,
            "Burn identity",
            "Monthly Burn",
            "|Year 1 EBITDA| / 12 when negative, else 0",
            np.array([metrics.monthly_burn]),
            np.array([abs(ebitda1) / 12.0 if ebitda1 < 0 else 0.0]),
            tol,
        )

    return findings
