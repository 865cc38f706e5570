"""Session model store with copy-on-write mutators.

Each mutator builds a new ``CFOStudioV3State`` with ``dataclasses.replace`` so
every sub-record the update does not touch stays the same object. Rejected
updates leave the current state in place, are recorded in the runtime log and
re-raised to the caller.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

from proforma.defaults import default_state
from proforma.metrics import ForecastMetrics, compute_metrics
from proforma.model import (
    ASSUMPTION_KEYS,
    COGS_LINE_KEYS,
    FORECAST_MODES,
    OPEX_LINE_KEYS,
    REVENUE_LINE_KEYS,
    REVENUE_TOGGLE_KEY,
    CFOStudioV3State,
    HeadcountRow,
    YearlyValues,
    as_number,
)
from proforma.runtime_logging import append_runtime_event
from proforma.schema import migrate_import_payload, state_to_payload


def _check_key(key: str, allowed: tuple[str, ...], section: str) -> None:
    if key not in allowed:
        raise KeyError(f"Unknown {section} key {key!r}; expected one of {', '.join(allowed)}.")


def _check_index(index: int, length: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise TypeError(f"Headcount index must be an int, got {type(index).__name__}.")
    if not 0 <= index < length:
        raise IndexError(f"Headcount index {index} is out of range for {length} rows.")
    return index


class ModelStore:
    def __init__(self, state: CFOStudioV3State | None = None) -> None:
        self._state = state if state is not None else default_state()

    @property
    def state(self) -> CFOStudioV3State:
        return self._state

    def _commit(
        self,
        operation: str,
        build: Callable[[CFOStudioV3State], CFOStudioV3State],
        **context: Any,
    ) -> CFOStudioV3State:
        try:
            new_state = build(self._state)
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            append_runtime_event(
                level="WARNING",
                event="store_update_rejected",
                message=str(exc),
                context={"operation": operation, **context},
                exc=exc,
            )
            raise
        self._state = new_state
        return new_state

    def reset(self) -> CFOStudioV3State:
        self._state = default_state()
        return self._state

    def set_forecast_mode(self, mode: str) -> CFOStudioV3State:
        def build(s: CFOStudioV3State) -> CFOStudioV3State:
            if not isinstance(mode, str) or mode not in FORECAST_MODES:
                raise ValueError(f"forecast_mode must be one of {sorted(FORECAST_MODES)}, got {mode!r}.")
            return replace(s, forecast_mode=mode)

        return self._commit("set_forecast_mode", build, mode=mode)

    def update_revenue(self, key: str, value: Any) -> CFOStudioV3State:
        def build(s: CFOStudioV3State) -> CFOStudioV3State:
            if key == REVENUE_TOGGLE_KEY:
                if not isinstance(value, bool):
                    raise TypeError(f"{REVENUE_TOGGLE_KEY} must be a bool, got {type(value).__name__}.")
                return replace(s, revenue=replace(s.revenue, enterprise_enabled=value))
            _check_key(key, REVENUE_LINE_KEYS, "revenue")
            line = YearlyValues.coerce(value, key)
            return replace(s, revenue=replace(s.revenue, **{key: line}))

        return self._commit("update_revenue", build, key=key)

    def update_cogs(self, key: str, value: Any) -> CFOStudioV3State:
        def build(s: CFOStudioV3State) -> CFOStudioV3State:
            _check_key(key, COGS_LINE_KEYS, "COGS")
            return replace(s, cogs=replace(s.cogs, **{key: YearlyValues.coerce(value, key)}))

        return self._commit("update_cogs", build, key=key)

    def update_opex(self, key: str, value: Any) -> CFOStudioV3State:
        def build(s: CFOStudioV3State) -> CFOStudioV3State:
            _check_key(key, OPEX_LINE_KEYS, "OpEx")
            return replace(s, opex=replace(s.opex, **{key: YearlyValues.coerce(value, key)}))

        return self._commit("update_opex", build, key=key)

    def update_headcount(self, index: int, row: Any) -> CFOStudioV3State:
        def build(s: CFOStudioV3State) -> CFOStudioV3State:
            i = _check_index(index, len(s.headcount))
            rows = list(s.headcount)
            rows[i] = HeadcountRow.coerce(row)
            return replace(s, headcount=tuple(rows))

        return self._commit("update_headcount", build, index=index)

    def add_headcount_row(self, row: Any) -> CFOStudioV3State:
        def build(s: CFOStudioV3State) -> CFOStudioV3State:
            return replace(s, headcount=s.headcount + (HeadcountRow.coerce(row),))

        return self._commit("add_headcount_row", build)

    def remove_headcount_row(self, index: int) -> CFOStudioV3State:
        def build(s: CFOStudioV3State) -> CFOStudioV3State:
            i = _check_index(index, len(s.headcount))
            return replace(s, headcount=s.headcount[:i] + s.headcount[i + 1 :])

        return self._commit("remove_headcount_row", build, index=index)

    def update_assumptions(self, key: str, value: Any) -> CFOStudioV3State:
        def build(s: CFOStudioV3State) -> CFOStudioV3State:
            _check_key(key, ASSUMPTION_KEYS, "assumptions")
            return replace(s, assumptions=replace(s.assumptions, **{key: as_number(value, key)}))

        return self._commit("update_assumptions", build, key=key)

    def metrics(self) -> ForecastMetrics:
        return compute_metrics(self._state)

    def snapshot(self) -> dict:
        return state_to_payload(self._state)

    def restore(self, payload: dict) -> list[str]:
        """Replace the current state from a snapshot or bundle; returns migration warnings."""
        state, warnings, unknown = migrate_import_payload(payload)
        if unknown:
            warnings = warnings + [f"Ignored unknown keys: {', '.join(unknown)}."]
        if warnings:
            append_runtime_event(
                level="INFO",
                event="store_restored_with_warnings",
                message=f"{len(warnings)} warning(s) while restoring forecast state.",
                context={"warnings": warnings},
            )
        self._state = state
        return warnings
