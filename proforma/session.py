"""Streamlit session binding: one ModelStore per browser session."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

import streamlit as st

from proforma.runtime_logging import append_runtime_event, install_global_exception_logging
from proforma.store import ModelStore


STORE_SESSION_KEY = "proforma_store"


def _session(state: MutableMapping[str, Any] | None) -> MutableMapping[str, Any]:
    return st.session_state if state is None else state


def get_store(state: MutableMapping[str, Any] | None = None) -> ModelStore:
    """Return the session's store, creating it with defaults on first access."""
    session = _session(state)
    store = session.get(STORE_SESSION_KEY)
    if not isinstance(store, ModelStore):
        install_global_exception_logging()
        store = ModelStore()
        session[STORE_SESSION_KEY] = store
        append_runtime_event(level="INFO", event="store_created", message="Forecast session started with defaults.")
    return store


def reset_store(state: MutableMapping[str, Any] | None = None) -> ModelStore:
    store = get_store(state)
    store.reset()
    return store
