from __future__ import annotations

from dataclasses import replace
from datetime import date
from io import BytesIO, StringIO

import pandas as pd

from proforma.exports import export_filename, headcount_table, proforma_csv, proforma_excel_bytes, proforma_table


def test_export_filename_uses_date_stamp():
    assert export_filename("csv", today=date(2026, 3, 9)) == "proforma-v3-2026-03-09.csv"
    assert export_filename(".xlsx", today=date(2026, 3, 9)) == "proforma-v3-2026-03-09.xlsx"


def test_proforma_table_layout(base_state):
    df = proforma_table(base_state)
    categories = list(df["Category"])
    assert categories[0] == "Revenue - Subscriptions"
    assert "COGS - Payment Fees" in categories
    assert "OpEx - G&A" in categories
    assert categories[-3:] == ["ARR", "Gross Margin %", "EBITDA"]
    arr = df[df["Category"] == "ARR"].iloc[0]
    assert arr["Year 3"] == 4_840_000
    margin = df[df["Category"] == "Gross Margin %"].iloc[0]
    assert margin["Year 1"] == "82.5%"


def test_disabled_enterprise_is_labelled(base_state):
    state = replace(base_state, revenue=replace(base_state.revenue, enterprise_enabled=False))
    assert "Revenue - Enterprise (disabled)" in list(proforma_table(state)["Category"])


def test_proforma_csv_parses_back(base_state):
    parsed = pd.read_csv(StringIO(proforma_csv(base_state)))
    assert list(parsed.columns) == ["Category", "Year 1", "Year 2", "Year 3"]
    ebitda = parsed[parsed["Category"] == "EBITDA"].iloc[0]
    assert float(ebitda["Year 1"]) == -223_800


def test_headcount_table_costs(base_state):
    df = headcount_table(base_state)
    assert len(df) == 6
    assert df.loc[0, "Year 1 Cost"] == 600_000


def test_excel_workbook_has_all_sheets(base_state):
    workbook = pd.read_excel(BytesIO(proforma_excel_bytes(base_state)), sheet_name=None, engine="openpyxl")
    assert set(workbook) == {"Pro Forma", "Headcount", "Assumptions", "Monthly"}
    assert len(workbook["Monthly"]) == 36
