import dataclasses

import pytest

from fm_radio_console.config import RadioConfig
from fm_radio_console.presets import PresetRegistry, Preset
from fm_radio_console.state import ControlStateStore


def test_initial_snapshot() -> None:
    store = ControlStateStore(RadioConfig())
    snap = store.snapshot()
    assert snap.frequency_mhz == 100.0
    assert snap.frequency_hz == 100_000_000
    assert snap.volume == 75
    assert snap.playing is False
    assert snap.connected is False
    assert snap.active_preset is None
    assert snap.signal_strength == 0
    assert snap.visualizer_bars == (20.0,) * 20
    assert len(snap.presets) == 6
    assert snap.status_text == "No Device"
    assert snap.can_play is False


def test_snapshots_are_immutable() -> None:
    store = ControlStateStore(RadioConfig())
    with pytest.raises(dataclasses.FrozenInstanceError):
        store.snapshot().volume = 10  # type: ignore[misc]


def test_status_text_follows_playback_and_connectivity() -> None:
    store = ControlStateStore(RadioConfig())
    store.set_connected(True)
    assert store.snapshot().status_text == "Ready"
    store.set_playing(True)
    assert store.snapshot().status_text == "Playing"
    store.set_playing(False)
    assert store.snapshot().status_text == "Ready"


def test_playing_requires_connection() -> None:
    store = ControlStateStore(RadioConfig())
    before = store.snapshot()
    store.set_playing(True)
    assert store.snapshot() is before


def test_start_sets_signal_and_stop_resets_visualizer() -> None:
    store = ControlStateStore(RadioConfig())
    store.set_connected(True)
    store.set_playing(True)
    assert store.snapshot().signal_strength == 4

    store.apply_sample([80.0] * 20, 5)
    assert store.snapshot().visualizer_bars == (80.0,) * 20
    assert store.snapshot().signal_strength == 5

    store.set_playing(False)
    snap = store.snapshot()
    assert snap.signal_strength == 0
    assert snap.visualizer_bars == (20.0,) * 20


def test_samples_ignored_while_stopped() -> None:
    store = ControlStateStore(RadioConfig())
    store.set_connected(True)
    store.apply_sample([90.0] * 20, 3)
    snap = store.snapshot()
    assert snap.signal_strength == 0
    assert snap.visualizer_bars == (20.0,) * 20


def test_frequency_change_replaces_active_preset() -> None:
    store = ControlStateStore(RadioConfig())
    store.set_frequency(96.5, active_preset=2)
    assert store.snapshot().active_preset == 2
    store.set_frequency(97.0)
    assert store.snapshot().active_preset is None


def test_subscribers_see_every_change_and_survive_failures() -> None:
    store = ControlStateStore(RadioConfig())
    seen = []

    def broken(_snapshot) -> None:
        raise RuntimeError("observer bug")

    store.subscribe(broken)
    store.subscribe(seen.append)
    store.set_volume(30)
    store.set_connected(True)
    assert [snap.volume for snap in seen] == [30, 30]
    assert seen[-1].connected is True

    store.unsubscribe(seen.append)
    store.set_volume(40)
    assert len(seen) == 2


def test_custom_preset_registry() -> None:
    registry = PresetRegistry([Preset("Only", 99.9)])
    store = ControlStateStore(RadioConfig(), registry)
    assert store.snapshot().presets == (Preset("Only", 99.9),)
