"""REST endpoints for the radio console server.

Handlers are coroutines so they run on the event loop that owns the console;
gateway commands they trigger complete in the background.
"""

from __future__ import annotations

from dataclasses import asdict
import math
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request

from fm_radio_console.console import RadioConsole
from fm_radio_console.controller import CommandFailure, StepDirectionError
from fm_radio_console.presets import PresetIndexError
from fm_radio_console.protocol import snapshot_fields


router = APIRouter()


def _console(request: Request) -> RadioConsole:
    return request.app.state.console


def _serialize_failure(failure: CommandFailure | None) -> dict[str, Any] | None:
    if failure is None:
        return None
    return asdict(failure)


def _serialize_state(console: RadioConsole) -> dict[str, Any]:
    return {"state": snapshot_fields(console.snapshot())}


def _require_number(payload: Any, key: str) -> float:
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Payload must be a JSON object")
    value = payload.get(key)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise HTTPException(status_code=400, detail=f"'{key}' must be a number")
    try:
        number = float(value)
    except OverflowError:
        raise HTTPException(status_code=400, detail=f"'{key}' is out of range") from None
    # JSON bodies may carry NaN / Infinity literals.
    if not math.isfinite(number):
        raise HTTPException(status_code=400, detail=f"'{key}' must be a finite number")
    return number


def _require_int(payload: Any, key: str) -> int:
    value = _require_number(payload, key)
    if not value.is_integer():
        raise HTTPException(status_code=400, detail=f"'{key}' must be an integer")
    return int(value)


@router.get("/api/status")
async def get_status(request: Request) -> dict[str, Any]:
    console = _console(request)
    return {
        **_serialize_state(console),
        "pending_commands": console.controller.pending_commands,
        "error": _serialize_failure(console.last_failure),
    }


@router.get("/api/presets")
async def list_presets(request: Request) -> dict[str, Any]:
    console = _console(request)
    snapshot = console.snapshot()
    return {
        "presets": [asdict(preset) for preset in snapshot.presets],
        "active": snapshot.active_preset,
    }


@router.post("/api/presets/select")
async def select_preset(request: Request, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    index = _require_int(payload, "index")
    console = _console(request)
    try:
        console.controller.select_preset(index)
    except PresetIndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _serialize_state(console)


@router.post("/api/playback/toggle")
async def toggle_playback(request: Request) -> dict[str, Any]:
    console = _console(request)
    task = console.controller.toggle_playback()
    return {"accepted": task is not None, **_serialize_state(console)}


@router.post("/api/frequency")
async def set_frequency(request: Request, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    frequency_mhz = _require_number(payload, "frequency_mhz")
    console = _console(request)
    console.controller.set_frequency(frequency_mhz)
    return _serialize_state(console)


@router.post("/api/frequency/step")
async def step_frequency(request: Request, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    direction = _require_int(payload, "direction")
    console = _console(request)
    try:
        console.controller.step_frequency(direction)
    except StepDirectionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_state(console)


@router.post("/api/volume")
async def set_volume(request: Request, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    volume = _require_number(payload, "volume")
    console = _console(request)
    console.controller.set_volume(volume)
    return _serialize_state(console)
