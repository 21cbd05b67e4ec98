"""Control state store for the radio console.

Holds the single authoritative snapshot of tuning, playback, volume,
connectivity, preset selection and visualizer state. All mutations go through
ControlStateStore methods, which run on the owning event loop one at a time and
replace the snapshot wholesale, so observers only ever see complete states.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Any, Callable, Optional, Sequence

from fm_radio_console.config import RadioConfig
from fm_radio_console.presets import Preset, PresetRegistry


logger = logging.getLogger(__name__)

STATUS_PLAYING = "Playing"
STATUS_READY = "Ready"
STATUS_NO_DEVICE = "No Device"


def mhz_to_hz(frequency_mhz: float) -> int:
    return int(round(frequency_mhz * 1e6))


@dataclass(frozen=True)
class RadioSnapshot:
    """Immutable view of the console state."""

    frequency_mhz: float
    volume: int
    playing: bool
    connected: bool
    presets: tuple[Preset, ...]
    active_preset: Optional[int]
    signal_strength: int
    visualizer_bars: tuple[float, ...]

    @property
    def frequency_hz(self) -> int:
        return mhz_to_hz(self.frequency_mhz)

    @property
    def can_play(self) -> bool:
        return self.connected

    @property
    def status_text(self) -> str:
        if self.playing:
            return STATUS_PLAYING
        if self.connected:
            return STATUS_READY
        return STATUS_NO_DEVICE


SnapshotCallback = Callable[[RadioSnapshot], None]


class ControlStateStore:
    """Owns the console state and notifies subscribers on every change."""

    def __init__(self, cfg: RadioConfig, presets: Optional[PresetRegistry] = None):
        self.cfg = cfg
        self.presets = presets if presets is not None else PresetRegistry()
        self._subscribers: list[SnapshotCallback] = []
        self._snapshot = RadioSnapshot(
            frequency_mhz=float(cfg.default_freq_mhz),
            volume=int(cfg.default_volume),
            playing=False,
            connected=False,
            presets=self.presets.as_tuple(),
            active_preset=None,
            signal_strength=0,
            visualizer_bars=self.flat_bars(),
        )

    def subscribe(self, callback: SnapshotCallback) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: SnapshotCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def snapshot(self) -> RadioSnapshot:
        return self._snapshot

    def flat_bars(self) -> tuple[float, ...]:
        return (float(self.cfg.bar_min),) * int(self.cfg.bar_count)

    def set_connected(self, connected: bool) -> None:
        self._commit(connected=bool(connected))

    def set_frequency(self, frequency_mhz: float, active_preset: Optional[int] = None) -> None:
        # Any frequency change replaces the preset marker; callers pass an index only for preset selection.
        self._commit(frequency_mhz=float(frequency_mhz), active_preset=active_preset)

    def set_volume(self, volume: int) -> None:
        self._commit(volume=int(volume))

    def set_playing(self, playing: bool) -> None:
        if playing:
            if not self._snapshot.connected:
                logger.warning("Ignoring playback start while no device is connected")
                return
            self._commit(playing=True, signal_strength=int(self.cfg.signal_on_start))
            return
        self._commit(playing=False, signal_strength=0, visualizer_bars=self.flat_bars())

    def apply_sample(self, bars: Sequence[float], signal_strength: int) -> None:
        # Late ticks after a stop must not leave a non-flat visualizer behind.
        if not self._snapshot.playing:
            return
        self._commit(
            visualizer_bars=tuple(float(bar) for bar in bars),
            signal_strength=int(signal_strength),
        )

    def _commit(self, **changes: Any) -> None:
        self._snapshot = replace(self._snapshot, **changes)
        self._emit(self._snapshot)

    def _emit(self, snapshot: RadioSnapshot) -> None:
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("State subscriber %r failed", callback)
                continue
