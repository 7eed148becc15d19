"""Report serialization for the machine API and the dashboard.

Both payload builders are pure functions of a Report. The two formats are
versioned independently; ``encode`` is the only place JSON is produced.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from .engine import ProbeResult, Report
from .errors import SerializationError

UI_FORMAT_VERSION = 1


def to_machine_readable(report: Report) -> dict[str, Any]:
    """``{"status", "entries": [{"key", "status", "error"}]}`` in registration order."""
    return {
        "status": report.status.value,
        "entries": [
            {"key": name, "status": result.status.value, "error": result.error}
            for name, result in report.entries.items()
        ],
    }


def to_ui_format(
    report: Report,
    name: str | None = None,
    tags: Mapping[str, Sequence[str]] | None = None,
) -> dict[str, Any]:
    """Dashboard payload, keyed by probe name, with .NET-style duration strings."""
    tags = tags or {}
    return {
        "version": UI_FORMAT_VERSION,
        "name": name,
        "status": report.status.value,
        "totalDuration": format_duration(report.total_duration_ms),
        "generatedAt": report.generated_at.isoformat(),
        "entries": {
            key: _ui_entry(result, tags.get(key, ())) for key, result in report.entries.items()
        },
    }


def _ui_entry(result: ProbeResult, tags: Sequence[str]) -> dict[str, Any]:
    return {
        "data": dict(result.data),
        "description": result.description or result.error,
        "duration": format_duration(result.duration_ms),
        "exception": result.error,
        "status": result.status.value,
        "tags": list(tags),
    }


def format_duration(ms: float) -> str:
    """Milliseconds as ``HH:MM:SS.fffffff`` (100ns ticks)."""
    ticks = int(round(ms * 10_000))
    seconds, frac = divmod(ticks, 10_000_000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{frac:07d}"


def encode(payload: Any) -> str:
    """Strict JSON encoding. Raises ``SerializationError`` on failure."""
    try:
        return json.dumps(payload, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Could not encode report: {e}") from e
