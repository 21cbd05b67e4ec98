"""Shared pytest fixtures for console tests."""

from __future__ import annotations

import asyncio

import pytest

from fm_radio_console.config import RadioConfig
from fm_radio_console.gateway.base import DeviceGateway, GatewayError


class FakeGateway(DeviceGateway):
    """Records commands; individual commands can be made to fail or to wait."""

    def __init__(self, connected: bool = True):
        self.connected = connected
        self.calls: list[tuple[str, tuple[object, ...]]] = []
        self.failures: set[str] = set()
        self.blocked: set[str] = set()
        self.gates: list[asyncio.Event] = []
        self.closed = False

    def commands(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def check_device(self) -> bool:
        await self._call("check_device")
        return self.connected

    async def start_radio(self, frequency_hz: float) -> None:
        await self._call("start_radio", frequency_hz)

    async def stop_radio(self) -> None:
        await self._call("stop_radio")

    async def tune_frequency(self, frequency_hz: float) -> None:
        await self._call("tune_frequency", frequency_hz)

    async def set_volume(self, volume: int) -> None:
        await self._call("set_volume", volume)

    async def close(self) -> None:
        self.closed = True

    async def _call(self, command: str, *args: object) -> None:
        self.calls.append((command, args))
        if command in self.blocked:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        if command in self.failures:
            raise GatewayError(f"{command} refused by device")


@pytest.fixture
def cfg() -> RadioConfig:
    # Short tick keeps sampler tests fast.
    return RadioConfig(sample_period_ms=5)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def offline_gateway() -> FakeGateway:
    return FakeGateway(connected=False)
