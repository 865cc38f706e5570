from __future__ import annotations

from pathlib import Path

import pytest

import proforma.persistence as persistence
from proforma.defaults import default_state
from proforma.model import CFOStudioV3State
from proforma.store import ModelStore


@pytest.fixture(autouse=True)
def isolated_local_store(tmp_path, monkeypatch):
    store_dir = Path(tmp_path) / ".local_store"
    monkeypatch.setattr(persistence, "STORE_DIR", store_dir)
    monkeypatch.setattr(persistence, "FORECAST_STORE_FILE", store_dir / "forecasts.json")
    return store_dir


@pytest.fixture
def base_state() -> CFOStudioV3State:
    return default_state()


@pytest.fixture
def store() -> ModelStore:
    return ModelStore()
