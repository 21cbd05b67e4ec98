"""Tuning controller: validates user intent and drives the device gateway.

Local state is updated optimistically and gateway commands are fired as
independent tasks. A failed command is logged and recorded but never rolls
back the local change; play/stop completion applies the new playback state
whether or not the gateway call succeeded. In-flight commands are not
sequenced or cancelled when newer input arrives.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
import logging
import math
import time
from typing import Awaitable, Callable, Optional

from fm_radio_console.gateway.base import DeviceGateway
from fm_radio_console.state import ControlStateStore, mhz_to_hz


logger = logging.getLogger(__name__)


class StepDirectionError(ValueError):
    """Raised when a frequency step direction is not -1 or +1."""


@dataclass(frozen=True)
class CommandFailure:
    """Diagnostic record of a failed gateway command."""

    command: str
    message: str
    ts_monotonic_ns: int


FailureCallback = Callable[[CommandFailure], None]


class TuningController:
    def __init__(self, store: ControlStateStore, gateway: DeviceGateway):
        self.store = store
        self.gateway = gateway
        self.cfg = store.cfg
        self._tasks: set[asyncio.Task] = set()
        self._failure_subscribers: list[FailureCallback] = []
        self._last_failure: Optional[CommandFailure] = None

    @property
    def last_failure(self) -> Optional[CommandFailure]:
        return self._last_failure

    @property
    def pending_commands(self) -> int:
        return len(self._tasks)

    def subscribe_failures(self, callback: FailureCallback) -> None:
        self._failure_subscribers.append(callback)

    def unsubscribe_failures(self, callback: FailureCallback) -> None:
        if callback in self._failure_subscribers:
            self._failure_subscribers.remove(callback)

    def clamp_frequency(self, frequency_mhz: float) -> float:
        frequency_mhz = float(frequency_mhz)
        if math.isnan(frequency_mhz):
            raise ValueError("Frequency must be a number")
        return min(max(frequency_mhz, float(self.cfg.min_freq_mhz)), float(self.cfg.max_freq_mhz))

    def clamp_volume(self, volume: float) -> int:
        try:
            volume = float(volume)
        except OverflowError:
            volume = math.inf if volume > 0 else -math.inf
        if math.isnan(volume):
            raise ValueError("Volume must be a number")
        # Clamp before the int conversion so infinities land on the limits.
        clamped = min(max(volume, float(self.cfg.min_volume)), float(self.cfg.max_volume))
        return int(round(clamped))

    async def initialize(self) -> bool:
        """Query device connectivity once; failures count as disconnected."""

        try:
            connected = bool(await self.gateway.check_device())
        except Exception as exc:
            self._report_failure("check_device", exc)
            connected = False
        self.store.set_connected(connected)
        logger.info("Receiver %s", "connected" if connected else "not found")
        return connected

    def toggle_playback(self) -> Optional[asyncio.Task]:
        snapshot = self.store.snapshot()
        if not snapshot.can_play:
            logger.debug("Playback toggle ignored: no device")
            return None
        if snapshot.playing:
            return self._dispatch(
                "stop_radio",
                self.gateway.stop_radio,
                on_complete=lambda: self.store.set_playing(False),
            )
        return self._dispatch(
            "start_radio",
            partial(self.gateway.start_radio, mhz_to_hz(snapshot.frequency_mhz)),
            on_complete=lambda: self.store.set_playing(True),
        )

    def set_frequency(self, frequency_mhz: float) -> Optional[asyncio.Task]:
        return self._tune(frequency_mhz, active_preset=None)

    def step_frequency(self, direction: int) -> Optional[asyncio.Task]:
        if direction not in (-1, 1):
            raise StepDirectionError(f"Step direction must be -1 or +1, got {direction!r}")
        current = self.store.snapshot().frequency_mhz
        # Trim float noise so repeated steps stay on the 0.1 MHz grid.
        target = round(current + direction * float(self.cfg.step_mhz), 6)
        return self.set_frequency(target)

    def set_volume(self, volume: float) -> asyncio.Task:
        clamped = self.clamp_volume(volume)
        self.store.set_volume(clamped)
        return self._dispatch("set_volume", partial(self.gateway.set_volume, clamped))

    def select_preset(self, index: int) -> Optional[asyncio.Task]:
        preset = self.store.presets.get(index)
        return self._tune(preset.frequency_mhz, active_preset=index)

    async def wait_idle(self) -> None:
        """Wait until every in-flight gateway command has completed."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def _tune(self, frequency_mhz: float, active_preset: Optional[int]) -> Optional[asyncio.Task]:
        clamped = self.clamp_frequency(frequency_mhz)
        self.store.set_frequency(clamped, active_preset=active_preset)
        if not self.store.snapshot().playing:
            return None
        return self._dispatch("tune_frequency", partial(self.gateway.tune_frequency, mhz_to_hz(clamped)))

    def _dispatch(
        self,
        command: str,
        call: Callable[[], Awaitable[object]],
        on_complete: Optional[Callable[[], None]] = None,
    ) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._run_command(command, call, on_complete))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_command(
        self,
        command: str,
        call: Callable[[], Awaitable[object]],
        on_complete: Optional[Callable[[], None]],
    ) -> None:
        try:
            await call()
        except Exception as exc:
            self._report_failure(command, exc)
        if on_complete is not None:
            on_complete()

    def _report_failure(self, command: str, exc: BaseException) -> None:
        message = str(exc) or exc.__class__.__name__
        logger.warning("Gateway command %s failed: %s", command, message)
        failure = CommandFailure(
            command=command,
            message=message,
            ts_monotonic_ns=int(time.monotonic() * 1e9),
        )
        self._last_failure = failure
        for callback in list(self._failure_subscribers):
            try:
                callback(failure)
            except Exception:
                logger.exception("Failure subscriber %r failed", callback)
