"""Frame schemas and wire helpers for the console streaming protocol.

State snapshots and command failures are internal objects, not wire format.
Wire frames are dict objects built via helpers and validated against the
Protocol Contract v1.0 JSON schema.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Mapping

from fm_radio_console.controller import CommandFailure
from fm_radio_console.state import RadioSnapshot

PROTO_VERSION = "1.0"
FRAME_TYPES = {
    "state",
    "error",
}


def protocol_json_schema() -> dict[str, Any]:
    """Return the Protocol Contract v1.0 JSON schema for console frames."""

    base_fields = {
        "proto_version": {"const": PROTO_VERSION},
        "type": {"enum": sorted(FRAME_TYPES)},
        "ts_monotonic_ns": {"type": "integer", "minimum": 0},
        "seq": {"type": "integer", "minimum": 0},
        "session_id": {"type": "string", "format": "uuid"},
    }
    base_required = ["proto_version", "type", "ts_monotonic_ns", "seq", "session_id"]

    preset_schema = {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "frequency_mhz": {"type": "number"},
        },
        "required": ["name", "frequency_mhz"],
        "additionalProperties": False,
    }

    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "title": "FM Console Protocol v1.0 Frames",
        "type": "object",
        "oneOf": [
            {
                "title": "State Frame",
                "type": "object",
                "properties": {
                    **base_fields,
                    "type": {"const": "state"},
                    "frequency_mhz": {"type": "number", "minimum": 0},
                    "frequency_hz": {"type": "integer", "minimum": 0},
                    "volume": {"type": "integer", "minimum": 0, "maximum": 100},
                    "playing": {"type": "boolean"},
                    "connected": {"type": "boolean"},
                    "can_play": {"type": "boolean"},
                    "status_text": {"enum": ["Playing", "Ready", "No Device"]},
                    "presets": {"type": "array", "items": preset_schema},
                    "active_preset": {"type": ["integer", "null"], "minimum": 0},
                    "signal_strength": {"type": "integer", "minimum": 0, "maximum": 5},
                    "visualizer_bars": {
                        "type": "array",
                        "items": {"type": "number", "minimum": 0, "maximum": 100},
                    },
                },
                "required": [
                    *base_required,
                    "frequency_mhz",
                    "frequency_hz",
                    "volume",
                    "playing",
                    "connected",
                    "can_play",
                    "status_text",
                    "presets",
                    "active_preset",
                    "signal_strength",
                    "visualizer_bars",
                ],
                "additionalProperties": False,
            },
            {
                "title": "Error Frame",
                "type": "object",
                "properties": {
                    **base_fields,
                    "type": {"const": "error"},
                    "error_code": {"type": "string"},
                    "command": {"type": "string"},
                    "message": {"type": "string"},
                    "recoverable": {"type": "boolean"},
                },
                "required": [*base_required, "error_code", "command", "message", "recoverable"],
                "additionalProperties": False,
            },
        ],
    }


def now_ns() -> int:
    return int(time.monotonic() * 1e9)


def make_frame_base(
    *,
    frame_type: str,
    ts_monotonic_ns: int,
    seq: int,
    session_id: uuid.UUID,
) -> dict[str, Any]:
    """Build shared metadata fields for protocol frames."""

    if frame_type not in FRAME_TYPES:
        raise ValueError(f"Unsupported frame type: {frame_type}")
    return {
        "proto_version": PROTO_VERSION,
        "type": frame_type,
        "ts_monotonic_ns": int(ts_monotonic_ns),
        "seq": int(seq),
        "session_id": str(session_id),
    }


def snapshot_to_wire(
    snapshot: RadioSnapshot,
    *,
    seq: int,
    session_id: uuid.UUID,
    ts_monotonic_ns: int | None = None,
) -> dict[str, Any]:
    base = make_frame_base(
        frame_type="state",
        ts_monotonic_ns=now_ns() if ts_monotonic_ns is None else ts_monotonic_ns,
        seq=seq,
        session_id=session_id,
    )
    base.update(snapshot_fields(snapshot))
    return base


def snapshot_fields(snapshot: RadioSnapshot) -> dict[str, Any]:
    return {
        "frequency_mhz": float(snapshot.frequency_mhz),
        "frequency_hz": int(snapshot.frequency_hz),
        "volume": int(snapshot.volume),
        "playing": bool(snapshot.playing),
        "connected": bool(snapshot.connected),
        "can_play": bool(snapshot.can_play),
        "status_text": snapshot.status_text,
        "presets": [
            {"name": preset.name, "frequency_mhz": float(preset.frequency_mhz)}
            for preset in snapshot.presets
        ],
        "active_preset": snapshot.active_preset,
        "signal_strength": int(snapshot.signal_strength),
        "visualizer_bars": [float(bar) for bar in snapshot.visualizer_bars],
    }


def failure_to_wire(
    failure: CommandFailure,
    *,
    seq: int,
    session_id: uuid.UUID,
) -> dict[str, Any]:
    base = make_frame_base(
        frame_type="error",
        ts_monotonic_ns=failure.ts_monotonic_ns,
        seq=seq,
        session_id=session_id,
    )
    base.update(failure_fields(failure))
    return base


def failure_fields(failure: CommandFailure) -> Mapping[str, Any]:
    # Gateway failures never stop the console, so every error frame is recoverable.
    return {
        "error_code": f"{failure.command}_failed",
        "command": failure.command,
        "message": failure.message,
        "recoverable": True,
    }
