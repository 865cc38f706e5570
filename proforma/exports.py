"""CSV and Excel exports of the pro-forma forecast."""

from __future__ import annotations

from datetime import date
from io import BytesIO

import pandas as pd

from proforma.metrics import ForecastMetrics, compute_metrics, monthly_projection
from proforma.model import (
    COGS_LINE_KEYS,
    LINE_LABELS,
    OPEX_LINE_KEYS,
    REVENUE_LINE_KEYS,
    CFOStudioV3State,
)


YEAR_COLUMNS = ["Year 1", "Year 2", "Year 3"]


def export_filename(ext: str, today: date | None = None) -> str:
    stamp = (today or date.today()).isoformat()
    return f"proforma-v3-{stamp}.{ext.lstrip('.')}"


def proforma_table(state: CFOStudioV3State, metrics: ForecastMetrics | None = None) -> pd.DataFrame:
    """Category rows by year: line items, blank separators, then headline metrics."""
    m = metrics if metrics is not None else compute_metrics(state)
    blank = ["", "", "", ""]
    rows: list[list] = []
    for key in REVENUE_LINE_KEYS:
        rows.append([f"Revenue - {LINE_LABELS[key]}", *getattr(state.revenue, key).as_tuple()])
    if not state.revenue.enterprise_enabled:
        rows[-1][0] += " (disabled)"
    rows.append(blank)
    for key in COGS_LINE_KEYS:
        rows.append([f"COGS - {LINE_LABELS[key]}", *getattr(state.cogs, key).as_tuple()])
    rows.append(blank)
    for key in OPEX_LINE_KEYS:
        rows.append([f"OpEx - {LINE_LABELS[key]}", *getattr(state.opex, key).as_tuple()])
    rows.append(blank)
    rows.append(["ARR", *m.total_revenue])
    rows.append(["Gross Margin %", *(f"{v:.1f}%" for v in m.gross_margin)])
    rows.append(["EBITDA", *m.ebitda])
    return pd.DataFrame(rows, columns=["Category", *YEAR_COLUMNS])


def proforma_csv(state: CFOStudioV3State, metrics: ForecastMetrics | None = None) -> str:
    return proforma_table(state, metrics).to_csv(index=False)


def headcount_table(state: CFOStudioV3State) -> pd.DataFrame:
    rows = []
    for row in state.headcount:
        rows.append(
            {
                "Department": row.department,
                "Year 1": row.year1_count,
                "Year 2": row.year2_count,
                "Year 3": row.year3_count,
                "Avg Salary": row.avg_salary,
                "Year 1 Cost": row.cost(1),
                "Year 2 Cost": row.cost(2),
                "Year 3 Cost": row.cost(3),
            }
        )
    return pd.DataFrame(rows, columns=["Department", *YEAR_COLUMNS, "Avg Salary", "Year 1 Cost", "Year 2 Cost", "Year 3 Cost"])


def assumptions_table(state: CFOStudioV3State) -> pd.DataFrame:
    items = list(state.assumptions.to_dict().items()) + [("forecast_mode", state.forecast_mode)]
    return pd.DataFrame(items, columns=["Assumption", "Value"])


def proforma_excel_bytes(state: CFOStudioV3State) -> bytes:
    metrics = compute_metrics(state)
    frames = {
        "Pro Forma": proforma_table(state, metrics),
        "Headcount": headcount_table(state),
        "Assumptions": assumptions_table(state),
        "Monthly": monthly_projection(state),
    }
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        for sheet_name, frame in frames.items():
            frame.to_excel(writer, sheet_name=sheet_name[:31], index=False)
    output.seek(0)
    return output.getvalue()
