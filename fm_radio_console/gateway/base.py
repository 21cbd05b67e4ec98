"""Device gateway contract.

The gateway is the only path to the receiver hardware. Every command is a
coroutine and may raise; callers decide how failures affect local state.
"""

from __future__ import annotations

import abc


class GatewayError(RuntimeError):
    """Raised when a gateway command cannot be carried out."""


class DeviceGateway(abc.ABC):
    @abc.abstractmethod
    async def check_device(self) -> bool:
        """Return True when a receiver is attached."""

    @abc.abstractmethod
    async def start_radio(self, frequency_hz: float) -> None:
        ...

    @abc.abstractmethod
    async def stop_radio(self) -> None:
        ...

    @abc.abstractmethod
    async def tune_frequency(self, frequency_hz: float) -> None:
        ...

    @abc.abstractmethod
    async def set_volume(self, volume: int) -> None:
        ...

    async def close(self) -> None:
        # Release device resources on shutdown.
        return None
