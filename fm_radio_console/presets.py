"""Preset registry for named frequency bookmarks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence


@dataclass(frozen=True)
class Preset:
    name: str
    frequency_mhz: float

    def __str__(self) -> str:
        return f"{self.name} ({self.frequency_mhz:.1f} MHz)"


DEFAULT_PRESETS: tuple[Preset, ...] = (
    Preset("Station 1", 88.1),
    Preset("Station 2", 92.3),
    Preset("Station 3", 96.5),
    Preset("Station 4", 100.7),
    Preset("Station 5", 104.3),
    Preset("Station 6", 107.9),
)


class PresetIndexError(ValueError):
    """Raised when a preset index falls outside the registry."""


class PresetRegistry:
    """
    Read-only ordered list of presets.

    Frequencies are not checked against the band here; the tuning path clamps
    them when a preset is selected.
    """

    def __init__(self, presets: Sequence[Preset] = DEFAULT_PRESETS):
        self._presets = tuple(presets)

    def __len__(self) -> int:
        return len(self._presets)

    def __iter__(self) -> Iterator[Preset]:
        return iter(self._presets)

    def __getitem__(self, index: int) -> Preset:
        return self.get(index)

    def get(self, index: int) -> Preset:
        # Negative indices are rejected rather than counted from the end.
        if not 0 <= index < len(self._presets):
            raise PresetIndexError(f"Preset index {index} out of range 0..{len(self._presets) - 1}")
        return self._presets[index]

    def as_tuple(self) -> tuple[Preset, ...]:
        return self._presets
