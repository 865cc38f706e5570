from __future__ import annotations

from dataclasses import replace

from proforma.input_metadata import advisory_warnings, format_assumption_value, help_with_guidance


def test_help_with_guidance_includes_range_and_note():
    help_text = help_with_guidance("cac_cost", "Blended acquisition cost.")
    assert help_text.startswith("Blended acquisition cost.")
    assert "Reasonable range: $5 to $500." in help_text


def test_help_without_guidance_is_unchanged():
    assert help_with_guidance("unknown_key", "Plain help.") == "Plain help."


def test_default_assumptions_have_no_advisories(base_state):
    assert advisory_warnings(base_state.assumptions) == []


def test_out_of_range_assumptions_are_flagged(base_state):
    assumptions = replace(base_state.assumptions, churn_rate=40.0, ltv_months=2.0)
    warnings = advisory_warnings(assumptions)
    assert len(warnings) == 2
    assert any(w.startswith("churn_rate=40.000") for w in warnings)


def test_format_assumption_value_units():
    assert format_assumption_value("cash_on_hand", 2_000_000) == "$2,000,000"
    assert format_assumption_value("churn_rate", 5.5) == "5.5%"
    assert format_assumption_value("ltv_months", 24) == "24 months"
