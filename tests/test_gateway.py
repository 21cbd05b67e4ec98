import asyncio

import pytest

from fm_radio_console.config import RadioConfig
from fm_radio_console.gateway import rtl_fm
from fm_radio_console.gateway.base import GatewayError
from fm_radio_console.gateway.rtl_fm import (
    RtlFmGateway,
    SimulatedGateway,
    build_pipeline_command,
    device_found,
    format_frequency_arg,
)


def test_device_found_parses_rtl_test_output() -> None:
    found = "Found 1 device(s):\n  0:  Realtek, RTL2838UHIDIR, SN: 00000001\n"
    assert device_found(found) is True
    assert device_found("No supported devices found.\n") is False
    assert device_found("") is False


@pytest.mark.parametrize(
    ("frequency_hz", "expected"),
    [
        (96_500_000, "96.5M"),
        (100_000_000, "100M"),
        (88_100_000, "88.1M"),
        (96_600_000.00000001, "96.6M"),
    ],
)
def test_format_frequency_arg(frequency_hz, expected) -> None:
    assert format_frequency_arg(frequency_hz) == expected


def test_pipeline_command() -> None:
    command = build_pipeline_command(104_300_000, RadioConfig())
    assert command.startswith("rtl_fm -f 104.3M -M wbfm -s 200000 -r 48000 -")
    assert "| play -r 48000 -t raw -e s -b 16 -c 1 -V0 -" in command


def test_check_device_without_rtl_test(monkeypatch) -> None:
    async def missing(*args, **kwargs):
        raise FileNotFoundError("rtl_test")

    monkeypatch.setattr(rtl_fm.asyncio, "create_subprocess_exec", missing)
    gateway = RtlFmGateway(RadioConfig())
    assert asyncio.run(gateway.check_device()) is False


def test_start_failure_raises_gateway_error(monkeypatch) -> None:
    async def refuse(*args, **kwargs):
        raise PermissionError("sh")

    monkeypatch.setattr(rtl_fm.asyncio, "create_subprocess_shell", refuse)
    gateway = RtlFmGateway(RadioConfig())
    with pytest.raises(GatewayError):
        asyncio.run(gateway.start_radio(96_500_000))
    assert gateway.running is False


def test_set_volume_records_level_off_macos(monkeypatch) -> None:
    monkeypatch.setattr(rtl_fm.sys, "platform", "linux")
    gateway = RtlFmGateway(RadioConfig())
    asyncio.run(gateway.set_volume(33))
    assert gateway.volume == 33


def test_close_without_pipeline() -> None:
    gateway = RtlFmGateway(RadioConfig())
    asyncio.run(gateway.close())
    assert gateway.running is False


def test_simulated_gateway_records_commands() -> None:
    async def scenario() -> SimulatedGateway:
        gateway = SimulatedGateway(RadioConfig())
        assert await gateway.check_device() is True
        await gateway.start_radio(96_500_000)
        await gateway.tune_frequency(104_300_000)
        await gateway.set_volume(20)
        await gateway.stop_radio()
        return gateway

    gateway = asyncio.run(scenario())
    assert [name for name, _ in gateway.calls] == [
        "check_device",
        "start_radio",
        "tune_frequency",
        "set_volume",
        "stop_radio",
    ]
    assert gateway.frequency_hz == 104_300_000
    assert gateway.volume == 20
    assert gateway.playing is False


def test_simulated_gateway_without_device() -> None:
    gateway = SimulatedGateway(RadioConfig(), connected=False)
    assert asyncio.run(gateway.check_device()) is False
    with pytest.raises(GatewayError):
        asyncio.run(gateway.start_radio(96_500_000))


class _FakePipeline:
    def __init__(self, pid: int):
        self.pid = pid
        self.returncode = None

    async def wait(self) -> int:
        return self.returncode


def test_overlapping_starts_leave_one_pipeline(monkeypatch) -> None:
    spawned: list[_FakePipeline] = []

    async def spawn(*args, **kwargs):
        # Yield so the second start can run while the first spawn is pending.
        await asyncio.sleep(0)
        proc = _FakePipeline(1000 + len(spawned))
        spawned.append(proc)
        return proc

    def killpg(pid, sig):
        for proc in spawned:
            if proc.pid == pid:
                proc.returncode = -sig

    monkeypatch.setattr(rtl_fm.asyncio, "create_subprocess_shell", spawn)
    monkeypatch.setattr(rtl_fm.os, "killpg", killpg)

    async def scenario() -> RtlFmGateway:
        gateway = RtlFmGateway(RadioConfig())
        await asyncio.gather(gateway.start_radio(96_500_000), gateway.start_radio(96_600_000))
        assert [proc.returncode is None for proc in spawned] == [False, True]
        await gateway.close()
        return gateway

    gateway = asyncio.run(scenario())
    assert [proc.pid for proc in spawned] == [1000, 1001]
    assert all(proc.returncode is not None for proc in spawned)
    assert gateway.running is False
    assert gateway.frequency_hz == 96_600_000
