"""Periodic visualizer and signal-strength sampler.

Runs only while the store reports playback. The receiver does not expose real
signal telemetry yet, so samples come from a single replaceable telemetry
function; swapping in device telemetry does not touch the state machine.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
import logging
from typing import Callable, Optional

import numpy as np

from fm_radio_console.config import RadioConfig
from fm_radio_console.state import ControlStateStore, RadioSnapshot


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TelemetrySample:
    bars: tuple[float, ...]
    signal_strength: int


TelemetrySource = Callable[[], TelemetrySample]


def random_telemetry(cfg: RadioConfig, rng: np.random.Generator) -> TelemetrySample:
    """Draw independent uniform bar heights and a uniform signal level."""

    bars = rng.uniform(cfg.bar_min, cfg.bar_max, size=int(cfg.bar_count))
    strength = int(rng.integers(cfg.signal_min, cfg.signal_max + 1))
    return TelemetrySample(bars=tuple(float(bar) for bar in bars), signal_strength=strength)


class VisualizationSampler:
    """
    Idle while stopped, sampling every tick while playing.

    The flat baseline on stop is applied by the store in the same mutation that
    clears the playing flag; this class only owns the tick task.
    """

    def __init__(
        self,
        store: ControlStateStore,
        telemetry: Optional[TelemetrySource] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.store = store
        self.cfg = store.cfg
        self._rng = rng or np.random.default_rng()
        self._telemetry = telemetry or (lambda: random_telemetry(self.cfg, self._rng))
        self._task: Optional[asyncio.Task] = None
        self._playing = store.snapshot().playing
        self.store.subscribe(self._on_snapshot)

    @property
    def sampling(self) -> bool:
        return self._task is not None and not self._task.done()

    def _on_snapshot(self, snapshot: RadioSnapshot) -> None:
        if snapshot.playing == self._playing:
            return
        self._playing = snapshot.playing
        if snapshot.playing:
            self._start()
        else:
            self._cancel()

    def _start(self) -> None:
        if self.sampling:
            return
        logger.debug("Visualizer sampling started (%d ms period)", self.cfg.sample_period_ms)
        self._task = asyncio.get_running_loop().create_task(self._run())

    def _cancel(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("Visualizer sampling stopped")

    async def _run(self) -> None:
        period_s = self.cfg.sample_period_s
        while True:
            await asyncio.sleep(period_s)
            try:
                sample = self._telemetry()
            except Exception:
                logger.exception("Telemetry sampling failed; skipping tick")
                continue
            self.store.apply_sample(sample.bars, sample.signal_strength)

    async def close(self) -> None:
        self.store.unsubscribe(self._on_snapshot)
        task = self._task
        self._cancel()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
