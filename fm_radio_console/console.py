"""Headless console wiring the state store, controller, sampler and gateway."""

from __future__ import annotations

import logging
from typing import Optional

from fm_radio_console.config import RadioConfig
from fm_radio_console.controller import CommandFailure, FailureCallback, TuningController
from fm_radio_console.gateway.base import DeviceGateway
from fm_radio_console.gateway.rtl_fm import RtlFmGateway
from fm_radio_console.presets import PresetRegistry
from fm_radio_console.sampler import TelemetrySource, VisualizationSampler
from fm_radio_console.state import ControlStateStore, RadioSnapshot, SnapshotCallback


logger = logging.getLogger(__name__)


class RadioConsole:
    """Owns component lifecycle; all methods must run on one event loop."""

    def __init__(
        self,
        cfg: RadioConfig,
        gateway: Optional[DeviceGateway] = None,
        presets: Optional[PresetRegistry] = None,
        telemetry: Optional[TelemetrySource] = None,
    ):
        self.cfg = cfg
        self.gateway = gateway or RtlFmGateway(cfg)
        self.store = ControlStateStore(cfg, presets)
        self.controller = TuningController(self.store, self.gateway)
        self.sampler = VisualizationSampler(self.store, telemetry=telemetry)
        self._started = False

    def snapshot(self) -> RadioSnapshot:
        return self.store.snapshot()

    @property
    def last_failure(self) -> Optional[CommandFailure]:
        return self.controller.last_failure

    def subscribe(self, on_state: SnapshotCallback, on_failure: Optional[FailureCallback] = None) -> None:
        self.store.subscribe(on_state)
        if on_failure is not None:
            self.controller.subscribe_failures(on_failure)

    def unsubscribe(self, on_state: SnapshotCallback, on_failure: Optional[FailureCallback] = None) -> None:
        self.store.unsubscribe(on_state)
        if on_failure is not None:
            self.controller.unsubscribe_failures(on_failure)

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        await self.controller.initialize()

    async def stop(self) -> None:
        # Cancel the tick first so nothing samples after the gateway is gone.
        await self.sampler.close()
        await self.controller.shutdown()
        try:
            await self.gateway.close()
        except Exception:
            logger.exception("Gateway close failed")
