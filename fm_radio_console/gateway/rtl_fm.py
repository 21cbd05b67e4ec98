"""RTL-SDR gateway built on the rtl-sdr and sox command line tools.

Wraps rtl_test / rtl_fm / play process handling. This module must not import
state or server classes to keep device operations headless and testable.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
import sys
from typing import Optional

from fm_radio_console.config import RadioConfig
from fm_radio_console.gateway.base import DeviceGateway, GatewayError


logger = logging.getLogger(__name__)

CHECK_TIMEOUT_S = 10.0
STOP_TIMEOUT_S = 2.0


def device_found(rtl_test_stderr: str) -> bool:
    """Interpret rtl_test output; it reports attached dongles on stderr."""

    return "Found" in rtl_test_stderr and "device" in rtl_test_stderr


def format_frequency_arg(frequency_hz: float) -> str:
    # rtl_fm accepts an M suffix; %g drops float noise and trailing zeros.
    return f"{frequency_hz / 1e6:g}M"


def build_pipeline_command(frequency_hz: float, cfg: RadioConfig) -> str:
    """Shell pipeline that demodulates wideband FM and plays raw PCM via sox."""

    return (
        f"rtl_fm -f {format_frequency_arg(frequency_hz)} -M {cfg.modulation} "
        f"-s {int(cfg.rtl_sample_rate_hz)} -r {int(cfg.audio_rate_hz)} - 2>/dev/null "
        f"| play -r {int(cfg.audio_rate_hz)} -t raw -e s -b 16 -c 1 -V0 - 2>/dev/null"
    )


class RtlFmGateway(DeviceGateway):
    """
    Drives an RTL-SDR dongle through an rtl_fm | play pipeline.

    Retuning restarts the pipeline since rtl_fm cannot change frequency live.
    """

    def __init__(self, cfg: RadioConfig):
        self.cfg = cfg
        self._process: Optional[asyncio.subprocess.Process] = None
        # Serializes pipeline kill and spawn so overlapping starts cannot orphan one.
        self._pipeline_lock = asyncio.Lock()
        self.frequency_hz = float(cfg.default_freq_mhz) * 1e6
        self.volume = int(cfg.default_volume)

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def check_device(self) -> bool:
        try:
            proc = await asyncio.create_subprocess_exec(
                "rtl_test",
                "-t",
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.info("rtl_test unavailable: %s", exc)
            return False
        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=CHECK_TIMEOUT_S)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            logger.warning("rtl_test did not finish within %.0f s", CHECK_TIMEOUT_S)
            return False
        return device_found(stderr.decode("utf-8", errors="replace"))

    async def start_radio(self, frequency_hz: float) -> None:
        command = build_pipeline_command(frequency_hz, self.cfg)
        async with self._pipeline_lock:
            await self._kill_pipeline()
            logger.debug("Starting pipeline: %s", command)
            try:
                # New session so the whole pipeline can be signalled as one process group.
                self._process = await asyncio.create_subprocess_shell(
                    command,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                    start_new_session=True,
                )
            except OSError as exc:
                self._process = None
                raise GatewayError(f"Failed to start radio: {exc}") from exc
            self.frequency_hz = float(frequency_hz)

    async def stop_radio(self) -> None:
        async with self._pipeline_lock:
            await self._kill_pipeline()
            # Orphans survive when a previous console instance exited uncleanly.
            await self._run_quietly("pkill", "-f", "rtl_fm")
            await self._run_quietly("pkill", "-f", "play.*raw")

    async def tune_frequency(self, frequency_hz: float) -> None:
        await self.stop_radio()
        # Give the dongle time to be released before reopening it.
        await asyncio.sleep(self.cfg.retune_delay_s)
        await self.start_radio(frequency_hz)

    async def set_volume(self, volume: int) -> None:
        self.volume = int(volume)
        if sys.platform == "darwin":
            await self._run_quietly("osascript", "-e", f"set volume output volume {self.volume}")
        else:
            logger.debug("No system mixer integration on %s; volume recorded only", sys.platform)

    async def close(self) -> None:
        async with self._pipeline_lock:
            await self._kill_pipeline()

    async def _kill_pipeline(self) -> None:
        proc = self._process
        self._process = None
        if proc is None or proc.returncode is not None:
            return
        with contextlib.suppress(ProcessLookupError):
            os.killpg(proc.pid, signal.SIGTERM)
        try:
            await asyncio.wait_for(proc.wait(), timeout=STOP_TIMEOUT_S)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                os.killpg(proc.pid, signal.SIGKILL)
            await proc.wait()

    @staticmethod
    async def _run_quietly(*argv: str) -> None:
        # Helper tools are best effort; a missing binary is not a command failure.
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.debug("%s unavailable: %s", argv[0], exc)
            return
        await proc.wait()


class SimulatedGateway(DeviceGateway):
    """Stand-in gateway used when no receiver hardware is available."""

    def __init__(self, cfg: RadioConfig, connected: bool = True, latency_s: float = 0.0):
        self.cfg = cfg
        self.connected = connected
        self.latency_s = latency_s
        self.playing = False
        self.frequency_hz = float(cfg.default_freq_mhz) * 1e6
        self.volume = int(cfg.default_volume)
        self.calls: list[tuple[str, tuple[object, ...]]] = []

    async def check_device(self) -> bool:
        await self._record("check_device")
        return self.connected

    async def start_radio(self, frequency_hz: float) -> None:
        await self._record("start_radio", frequency_hz)
        self._require_device()
        self.playing = True
        self.frequency_hz = float(frequency_hz)

    async def stop_radio(self) -> None:
        await self._record("stop_radio")
        self.playing = False

    async def tune_frequency(self, frequency_hz: float) -> None:
        await self._record("tune_frequency", frequency_hz)
        self._require_device()
        self.frequency_hz = float(frequency_hz)

    async def set_volume(self, volume: int) -> None:
        await self._record("set_volume", volume)
        self.volume = int(volume)

    def _require_device(self) -> None:
        if not self.connected:
            raise GatewayError("No RTL-SDR device attached")

    async def _record(self, command: str, *args: object) -> None:
        self.calls.append((command, args))
        if self.latency_s > 0:
            await asyncio.sleep(self.latency_s)
