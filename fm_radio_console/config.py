"""Application configuration defaults.

Defines the RadioConfig dataclass and default values. This module should not
import gateway, server or state classes, and it should stay focused on
configuration data only.
"""

from dataclasses import dataclass


@dataclass
class RadioConfig:
    """
    Configuration for the FM radio console.

    Notes
    Frequencies are kept in MHz everywhere except the gateway boundary.
    """

    # Broadcast FM band and tuning granularity.
    min_freq_mhz: float = 88.0
    max_freq_mhz: float = 108.0
    step_mhz: float = 0.1

    # Startup values.
    default_freq_mhz: float = 100.0
    default_volume: int = 75

    # Volume range.
    min_volume: int = 0
    max_volume: int = 100

    # Visualizer sampling.
    sample_period_ms: int = 150
    bar_count: int = 20
    bar_min: float = 20.0
    bar_max: float = 100.0

    # Signal strength scale. Playback start reports a fixed strength until the first tick.
    signal_min: int = 3
    signal_max: int = 5
    signal_on_start: int = 4

    # rtl_fm / sox pipeline.
    rtl_sample_rate_hz: int = 200_000
    audio_rate_hz: int = 48_000
    modulation: str = "wbfm"
    retune_delay_s: float = 0.2

    # HTTP server.
    host: str = "127.0.0.1"
    port: int = 8765

    @property
    def sample_period_s(self) -> float:
        return self.sample_period_ms / 1000.0
