"""Forecast payload schema, serialization and tolerant import migration."""

from __future__ import annotations

from typing import Any

from proforma.defaults import DEFAULT_FORECAST_MODE, default_state
from proforma.model import (
    ASSUMPTION_KEYS,
    COGS_LINE_KEYS,
    FORECAST_MODES,
    HEADCOUNT_FIELDS,
    OPEX_LINE_KEYS,
    REVENUE_LINE_KEYS,
    REVENUE_TOGGLE_KEY,
    Assumptions,
    CFOStudioV3State,
    COGSModel,
    HeadcountRow,
    OpExModel,
    RevenueModel,
    YearlyValues,
    as_number,
)


SCHEMA_VERSION = 1
FORECAST_TYPE = "forecast"

STATE_SECTIONS = ("forecast_mode", "revenue", "cogs", "opex", "headcount", "assumptions")

# Key spellings used by earlier camelCase exports.
LEGACY_KEY_ALIASES = {
    "forecastMode": "forecast_mode",
    "aiTools": "ai_tools",
    "enterpriseEnabled": "enterprise_enabled",
    "hostingAI": "hosting_ai",
    "videoProcessing": "video_processing",
    "paymentFees": "payment_fees",
    "productEngineering": "product_engineering",
    "salesMarketing": "sales_marketing",
    "customerSuccess": "customer_success",
    "revenueGrowth": "revenue_growth",
    "churnRate": "churn_rate",
    "pricingGrowth": "pricing_growth",
    "cogsPercent": "cogs_percent",
    "headcountGrowth": "headcount_growth",
    "salaryGrowth": "salary_growth",
    "cacCost": "cac_cost",
    "ltvMonths": "ltv_months",
    "cashOnHand": "cash_on_hand",
    "year1Count": "year1_count",
    "year2Count": "year2_count",
    "year3Count": "year3_count",
    "avgSalary": "avg_salary",
}

_TRUE_STRINGS = {"1", "true", "yes", "y", "on"}
_FALSE_STRINGS = {"0", "false", "no", "n", "off"}


def state_to_payload(state: CFOStudioV3State) -> dict[str, Any]:
    """Return the whole state as one JSON-safe dict."""
    revenue = {key: getattr(state.revenue, key).to_dict() for key in REVENUE_LINE_KEYS}
    revenue[REVENUE_TOGGLE_KEY] = bool(state.revenue.enterprise_enabled)
    return {
        "forecast_mode": state.forecast_mode,
        "revenue": revenue,
        "cogs": {key: getattr(state.cogs, key).to_dict() for key in COGS_LINE_KEYS},
        "opex": {key: getattr(state.opex, key).to_dict() for key in OPEX_LINE_KEYS},
        "headcount": [row.to_dict() for row in state.headcount],
        "assumptions": state.assumptions.to_dict(),
    }


def _bridge_legacy_keys(section: dict, warnings: list[str], where: str) -> dict:
    out: dict = {}
    for key, value in section.items():
        new_key = LEGACY_KEY_ALIASES.get(key, key)
        if new_key != key:
            if new_key in section:
                continue
            warnings.append(f"{where}.{key} renamed to {new_key}.")
        out[new_key] = value
    return out


def _section(raw: dict, name: str, warnings: list[str]) -> dict | None:
    value = raw.get(name)
    if value is None:
        return None
    if not isinstance(value, dict):
        warnings.append(f"{name} ignored because it is not an object; defaults used.")
        return None
    return _bridge_legacy_keys(value, warnings, name)


def _migrate_lines(
    raw_section: dict | None,
    keys: tuple[str, ...],
    defaults: Any,
    section_name: str,
    warnings: list[str],
    unknown: list[str],
) -> dict[str, YearlyValues]:
    lines = {key: getattr(defaults, key) for key in keys}
    if raw_section is None:
        return lines
    for key, value in raw_section.items():
        if key not in keys:
            if not (section_name == "revenue" and key == REVENUE_TOGGLE_KEY):
                unknown.append(f"{section_name}.{key}")
            continue
        try:
            line = YearlyValues.coerce(value, key)
        except (TypeError, ValueError):
            warnings.append(f"{section_name}.{key} invalid and reset to default.")
            continue
        lines[key] = line
    return lines


def _migrate_bool(value: Any, default: bool, name: str, warnings: list[str]) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    warnings.append(f"{name} invalid and reset to default.")
    return default


def _migrate_headcount(raw_rows: Any, defaults: tuple[HeadcountRow, ...], warnings: list[str]) -> tuple[HeadcountRow, ...]:
    if raw_rows is None:
        return defaults
    if not isinstance(raw_rows, list):
        warnings.append("headcount ignored because it is not a list; defaults used.")
        return defaults
    rows: list[HeadcountRow] = []
    for idx, item in enumerate(raw_rows):
        if not isinstance(item, dict):
            warnings.append(f"headcount[{idx}] ignored because entry is not an object.")
            continue
        item = _bridge_legacy_keys(item, warnings, f"headcount[{idx}]")
        fields = {k: v for k, v in item.items() if k in HEADCOUNT_FIELDS}
        try:
            rows.append(HeadcountRow.coerce(fields))
        except (KeyError, TypeError, ValueError):
            warnings.append(f"headcount[{idx}] ignored because it has invalid fields.")
    return tuple(rows)


def _migrate_assumptions(
    raw_section: dict | None, defaults: Assumptions, warnings: list[str], unknown: list[str]
) -> Assumptions:
    values = defaults.to_dict()
    if raw_section is None:
        return defaults
    for key, value in raw_section.items():
        if key not in ASSUMPTION_KEYS:
            unknown.append(f"assumptions.{key}")
            continue
        try:
            values[key] = as_number(value, key)
        except (TypeError, ValueError):
            warnings.append(f"assumptions.{key} invalid and reset to default.")
    return Assumptions(**values)


def migrate_state(raw: Any) -> tuple[CFOStudioV3State, list[str], list[str]]:
    """Build a state from a (possibly partial or legacy) payload dict.

    Returns (state, warnings, unknown_keys). Missing sections fall back to the
    session defaults; this never raises for malformed input.
    """
    warnings: list[str] = []
    unknown: list[str] = []
    defaults = default_state()
    if not isinstance(raw, dict):
        return defaults, ["Forecast payload is not a JSON object; defaults used."], []

    payload = _bridge_legacy_keys(raw, warnings, "state")
    for key in payload:
        if key not in STATE_SECTIONS:
            unknown.append(key)

    mode = payload.get("forecast_mode", DEFAULT_FORECAST_MODE)
    if not isinstance(mode, str) or mode not in FORECAST_MODES:
        warnings.append(f"forecast_mode {mode!r} invalid; reset to {DEFAULT_FORECAST_MODE}.")
        mode = DEFAULT_FORECAST_MODE

    raw_revenue = _section(payload, "revenue", warnings)
    revenue_lines = _migrate_lines(raw_revenue, REVENUE_LINE_KEYS, defaults.revenue, "revenue", warnings, unknown)
    enterprise_enabled = defaults.revenue.enterprise_enabled
    if raw_revenue is not None and REVENUE_TOGGLE_KEY in raw_revenue:
        enterprise_enabled = _migrate_bool(
            raw_revenue[REVENUE_TOGGLE_KEY], enterprise_enabled, f"revenue.{REVENUE_TOGGLE_KEY}", warnings
        )

    cogs_lines = _migrate_lines(
        _section(payload, "cogs", warnings), COGS_LINE_KEYS, defaults.cogs, "cogs", warnings, unknown
    )
    opex_lines = _migrate_lines(
        _section(payload, "opex", warnings), OPEX_LINE_KEYS, defaults.opex, "opex", warnings, unknown
    )

    state = CFOStudioV3State(
        forecast_mode=mode,
        revenue=RevenueModel(**revenue_lines, enterprise_enabled=enterprise_enabled),
        cogs=COGSModel(**cogs_lines),
        opex=OpExModel(**opex_lines),
        headcount=_migrate_headcount(payload.get("headcount"), defaults.headcount, warnings),
        assumptions=_migrate_assumptions(
            _section(payload, "assumptions", warnings), defaults.assumptions, warnings, unknown
        ),
    )
    return state, warnings, sorted(unknown)


def migrate_import_payload(payload: Any) -> tuple[CFOStudioV3State, list[str], list[str]]:
    """Accept a saved forecast bundle or a bare state dict."""
    if isinstance(payload, dict) and payload.get("type") == FORECAST_TYPE:
        state, warnings, unknown = migrate_state(payload.get("state", {}))
        version = payload.get("schema_version")
        if version != SCHEMA_VERSION:
            warnings.append(f"Imported schema_version={version}; migrated to schema_version={SCHEMA_VERSION}.")
        return state, warnings, unknown
    return migrate_state(payload)
