"""Forecast session event log.

Events are appended as JSON lines to ``runtime_events.jsonl`` inside the
persistence storage root, so ``persistence.configure_storage_root`` moves the
saved forecasts and the log together.
"""

from __future__ import annotations

import json
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from streamlit.runtime.scriptrunner import get_script_run_ctx

import proforma.persistence as persistence


LOG_FILE_NAME = "runtime_events.jsonl"

_EXCEPTION_HOOK_INSTALLED = False


def _log_file() -> Path:
    return persistence.STORE_DIR / LOG_FILE_NAME


def _json_default(value: Any):
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, str]:
    fields = {"exception_type": type(exc).__name__, "exception_message": str(exc)}
    if exc.__traceback__ is not None:
        fields["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return fields


def append_runtime_event(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
    exc: BaseException | None = None,
) -> None:
    """Append one event line. A log that cannot be written is skipped."""
    record: dict[str, Any] = {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "level": str(level).upper(),
        "event": str(event),
        "message": str(message),
        "context": context or {},
    }
    if exc is not None:
        record.update(_exception_fields(exc))
    line = json.dumps(record, default=_json_default, ensure_ascii=False)
    log_file = _log_file()
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        with log_file.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
    except OSError:
        pass


def _parse_line(line: str) -> dict[str, Any]:
    try:
        return json.loads(line)
    except json.JSONDecodeError:
        return {
            "level": "ERROR",
            "event": "log_parse_error",
            "message": "Malformed log line encountered.",
            "context": {"line": line},
        }


def read_runtime_events(limit: int = 200) -> list[dict[str, Any]]:
    """Return up to ``limit`` most recent events, oldest first."""
    log_file = _log_file()
    if limit <= 0 or not log_file.exists():
        return []
    try:
        lines = [line for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
    except OSError:
        return []
    return [_parse_line(line) for line in lines[-int(limit) :]]


def _record_uncaught(exc: BaseException) -> None:
    # Only exceptions raised inside a Streamlit script run are session events.
    if get_script_run_ctx() is None:
        return
    append_runtime_event(level="ERROR", event="uncaught_exception", message=str(exc), exc=exc)


def install_global_exception_logging() -> None:
    global _EXCEPTION_HOOK_INSTALLED
    if _EXCEPTION_HOOK_INSTALLED:
        return
    previous_hook = sys.excepthook

    def _hook(exc_type, exc, exc_tb):
        _record_uncaught(exc)
        previous_hook(exc_type, exc, exc_tb)

    sys.excepthook = _hook
    _EXCEPTION_HOOK_INSTALLED = True
