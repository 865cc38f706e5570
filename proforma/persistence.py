"""Local JSON store for named forecast snapshots."""

from __future__ import annotations

import json
import os
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path

from proforma.model import CFOStudioV3State
from proforma.schema import FORECAST_TYPE, SCHEMA_VERSION, migrate_import_payload, state_to_payload


STORE_DIR = Path(".local_store")
FORECAST_STORE_FILE = STORE_DIR / "forecasts.json"

_DEFAULT_STORE_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "PROFORMA_STORAGE_ROOT"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _expand_storage_root(path_value: str | Path | None) -> Path:
    if path_value is None:
        return _DEFAULT_STORE_DIR
    text = str(path_value).strip()
    if not text:
        return _DEFAULT_STORE_DIR
    return Path(os.path.expandvars(os.path.expanduser(text)))


def configure_storage_root(path_value: str | Path | None) -> Path:
    """Point forecast persistence at a new root directory."""

    global STORE_DIR, FORECAST_STORE_FILE
    STORE_DIR = _expand_storage_root(path_value)
    FORECAST_STORE_FILE = STORE_DIR / "forecasts.json"
    return STORE_DIR


def storage_root_from_env() -> Path:
    return _expand_storage_root(os.getenv(_STORAGE_ENV_VAR, ""))


def _load_store() -> dict:
    if not FORECAST_STORE_FILE.exists():
        return {}
    try:
        data = json.loads(FORECAST_STORE_FILE.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def _save_store(data: dict) -> None:
    STORE_DIR.mkdir(parents=True, exist_ok=True)
    tmp = FORECAST_STORE_FILE.with_suffix(f"{FORECAST_STORE_FILE.suffix}.tmp")
    tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
    tmp.replace(FORECAST_STORE_FILE)


def build_forecast_bundle(name: str, state: CFOStudioV3State) -> dict:
    return {
        "type": FORECAST_TYPE,
        "schema_version": SCHEMA_VERSION,
        "name": name,
        "created_at": _now_iso(),
        "state": state_to_payload(state),
    }


def list_saved_names() -> list[str]:
    return sorted(_load_store().keys())


def load_saved(name: str) -> dict | None:
    return deepcopy(_load_store().get(name))


def load_saved_state(name: str) -> tuple[CFOStudioV3State, list[str]] | None:
    bundle = load_saved(name)
    if bundle is None:
        return None
    state, warnings, unknown = migrate_import_payload(bundle)
    if unknown:
        warnings.append(f"Ignored unknown keys: {', '.join(unknown)}.")
    return state, warnings


def save_named_bundle(name: str, bundle: dict, overwrite: bool = False) -> tuple[bool, str]:
    if not name.strip():
        return False, "Name is required."
    store = _load_store()
    if name in store and not overwrite:
        return False, "Name already exists."
    store[name] = bundle
    _save_store(store)
    return True, "Saved."


def delete_saved(name: str) -> bool:
    store = _load_store()
    if name not in store:
        return False
    del store[name]
    _save_store(store)
    return True


def parse_import_json(raw_json: str) -> tuple[CFOStudioV3State | None, list[str], list[str]]:
    try:
        payload = json.loads(raw_json)
    except json.JSONDecodeError:
        return None, ["Could not parse import JSON."], []
    return migrate_import_payload(payload)


configure_storage_root(storage_root_from_env())
