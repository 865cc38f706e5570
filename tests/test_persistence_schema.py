from __future__ import annotations

import json

import pytest

import proforma.persistence as persistence
from proforma.model import YearlyValues
from proforma.schema import SCHEMA_VERSION, migrate_import_payload, migrate_state, state_to_payload


def test_payload_is_json_serializable(base_state):
    payload = state_to_payload(base_state)
    text = json.dumps(payload)
    assert json.loads(text)["revenue"]["enterprise_enabled"] is True
    assert payload["assumptions"]["cash_on_hand"] == 2_000_000
    assert len(payload["headcount"]) == 6


def test_forecast_bundle_roundtrip_and_local_store(base_state, isolated_local_store):
    bundle = persistence.build_forecast_bundle("base", base_state)
    ok, _ = persistence.save_named_bundle("base", bundle, overwrite=False)
    assert ok
    assert (isolated_local_store / "forecasts.json").exists()

    ok, message = persistence.save_named_bundle("base", bundle, overwrite=False)
    assert not ok
    assert "exists" in message

    loaded = persistence.load_saved("base")
    assert loaded["type"] == "forecast"
    assert loaded["schema_version"] == SCHEMA_VERSION
    state, warnings = persistence.load_saved_state("base")
    assert state == base_state
    assert warnings == []
    assert persistence.list_saved_names() == ["base"]

    assert persistence.delete_saved("base")
    assert not persistence.delete_saved("base")
    assert persistence.load_saved_state("base") is None


def test_save_requires_name(base_state):
    ok, message = persistence.save_named_bundle("  ", persistence.build_forecast_bundle("", base_state))
    assert not ok
    assert "required" in message.lower()


def test_parse_import_json_handles_garbage():
    state, warnings, unknown = persistence.parse_import_json("{not json")
    assert state is None
    assert warnings == ["Could not parse import JSON."]
    assert unknown == []


def test_migration_bridges_camel_case_exports(base_state):
    legacy = {
        "forecastMode": "ai",
        "revenue": {"aiTools": {"year1": 1, "year2": 2, "year3": 3}, "enterpriseEnabled": "false"},
        "cogs": {"hostingAI": [10, 20, 30]},
        "assumptions": {"cacCost": 50, "ltvMonths": 12},
        "headcount": [{"department": "Eng", "year1Count": 1, "year2Count": 2, "year3Count": 3, "avgSalary": 100}],
    }
    state, warnings, unknown = migrate_state(legacy)
    assert unknown == []
    assert state.forecast_mode == "ai"
    assert state.revenue.ai_tools == YearlyValues(1, 2, 3)
    assert state.revenue.enterprise_enabled is False
    assert state.revenue.subscriptions == base_state.revenue.subscriptions
    assert state.cogs.hosting_ai == YearlyValues(10, 20, 30)
    assert state.assumptions.cac_cost == 50
    assert state.assumptions.cash_on_hand == base_state.assumptions.cash_on_hand
    assert state.headcount[0].avg_salary == 100
    assert any("aiTools renamed to ai_tools" in w for w in warnings)


def test_migration_resets_invalid_values_with_warnings(base_state):
    payload = {
        "forecast_mode": "autopilot",
        "revenue": {"subscriptions": [1, 2], "advertising": {"year1": "x", "year2": 1, "year3": 1}},
        "opex": {"gna": [float("nan"), 1, 1], "marketing": [1, 1, 1]},
        "assumptions": {"churn_rate": "high"},
        "headcount": [{"department": "Ops", "year1_count": 1}, "bad", {"year1_count": 3}],
        "extra": 1,
    }
    state, warnings, unknown = migrate_state(payload)
    assert state.forecast_mode == "custom"
    assert state.revenue.subscriptions == base_state.revenue.subscriptions
    assert state.revenue.advertising == base_state.revenue.advertising
    assert state.opex.gna == base_state.opex.gna
    assert state.assumptions.churn_rate == base_state.assumptions.churn_rate
    assert [r.department for r in state.headcount] == ["Ops"]
    assert unknown == ["extra", "opex.marketing"]
    assert any("forecast_mode" in w for w in warnings)
    assert any("headcount[1]" in w for w in warnings)
    assert any("headcount[2]" in w for w in warnings)


def test_migrate_import_payload_reports_schema_version_change(base_state):
    bundle = persistence.build_forecast_bundle("old", base_state)
    bundle["schema_version"] = 0
    state, warnings, _ = migrate_import_payload(bundle)
    assert state == base_state
    assert any("schema_version=0" in w for w in warnings)


def test_non_object_payload_falls_back_to_defaults(base_state):
    state, warnings, unknown = migrate_state([1, 2, 3])
    assert state == base_state
    assert warnings
    assert unknown == []


HUGE_INT = 10**400


@pytest.mark.parametrize("mode", [["ai"], {"x": 1}, 3, None])
def test_non_string_forecast_mode_resets_to_custom(mode):
    state, warnings, _ = migrate_state({"forecast_mode": mode})
    assert state.forecast_mode == "custom"
    assert any("forecast_mode" in w for w in warnings)


@pytest.mark.parametrize(
    "payload, section, key",
    [
        ({"revenue": {"ai_tools": {"year1": HUGE_INT, "year2": 1, "year3": 1}}}, "revenue", "ai_tools"),
        ({"revenue": {"ai_tools": {"year1": [1], "year2": 1, "year3": 1}}}, "revenue", "ai_tools"),
        ({"cogs": {"payment_fees": [1, {"a": 1}, 3]}}, "cogs", "payment_fees"),
        ({"opex": {"gna": [HUGE_INT, 1, 1]}}, "opex", "gna"),
        ({"assumptions": {"cash_on_hand": HUGE_INT}}, "assumptions", "cash_on_hand"),
        ({"assumptions": {"cac_cost": [85]}}, "assumptions", "cac_cost"),
        ({"assumptions": {"ltv_months": {"value": 24}}}, "assumptions", "ltv_months"),
    ],
)
def test_wrong_typed_and_oversized_values_reset_to_default(base_state, payload, section, key):
    state, warnings, unknown = migrate_state(payload)
    assert getattr(getattr(state, section), key) == getattr(getattr(base_state, section), key)
    assert any(f"{section}.{key}" in w for w in warnings)
    assert unknown == []


@pytest.mark.parametrize(
    "row",
    [
        {"department": ["Eng"], "year1_count": 1},
        {"department": "Eng", "year1_count": HUGE_INT},
        {"department": "Eng", "avg_salary": {"amount": 1}},
    ],
)
def test_wrong_typed_headcount_rows_are_dropped(row):
    state, warnings, _ = migrate_state({"headcount": [row, {"department": "Ops", "year1_count": 2}]})
    assert [r.department for r in state.headcount] == ["Ops"]
    assert any("headcount[0]" in w for w in warnings)


def test_wrong_typed_sections_fall_back_to_defaults(base_state):
    state, warnings, _ = migrate_state({"revenue": [1, 2, 3], "assumptions": "none", "headcount": {"a": 1}})
    assert state.revenue == base_state.revenue
    assert state.assumptions == base_state.assumptions
    assert state.headcount == base_state.headcount
    assert len(warnings) == 3


def test_parse_import_json_with_oversized_integer_warns(base_state):
    raw = '{"revenue": {"ai_tools": {"year1": 1' + "0" * 400 + ', "year2": 1, "year3": 1}}}'
    state, warnings, unknown = persistence.parse_import_json(raw)
    assert state.revenue.ai_tools == base_state.revenue.ai_tools
    assert warnings == ["revenue.ai_tools invalid and reset to default."]
    assert unknown == []
