import asyncio
import socket
from contextlib import asynccontextmanager

import pytest

from spdpsu.cli import main, run
from spdpsu.commands import IdentityRequest, MeasureRequest, SetLimitRequest, SetOutputStateRequest
from spdpsu.scpi import SerialMismatchError
from spdpsu.types import Channel, LimitQuantity, OutputChannel, Quantity, Reading, State

SERIAL = "SPD3XTEST00001"


class FakeSupply:
    def __init__(self):
        self.lines = []

    def respond(self, line):
        self.lines.append(line)
        if line == "*IDN?":
            return f"Siglent Technologies, SPD3303X, {SERIAL}, 1.01.01.03.11R1,V6.2\n"
        if line.startswith("MEASure:"):
            return "0.000\n"
        return None


@asynccontextmanager
async def running(supply):
    async def handle(reader, writer):
        while line := await reader.readline():
            reply = supply.respond(line.decode().rstrip("\n"))
            if reply is not None:
                writer.write(reply.encode())
                await writer.drain()
        writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    async with server:
        yield port


def _closed_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_run_sets_limits_measures_and_toggles_outputs(capsys):
    supply = FakeSupply()
    async with running(supply) as port:
        voltage = await run(f"127.0.0.1:{port}", SERIAL)
    assert voltage == 0.0
    expected = [
        IdentityRequest(),
        SetLimitRequest(LimitQuantity.VOLTAGE, Reading.from_float(1.0), Channel.ONE),
        SetLimitRequest(LimitQuantity.CURRENT, Reading.from_float(0.1), Channel.ONE),
        MeasureRequest(Quantity.VOLTAGE, Channel.ONE),
        SetOutputStateRequest(OutputChannel.THREE, State.ON),
        SetOutputStateRequest(OutputChannel.THREE, State.OFF),
        SetOutputStateRequest(OutputChannel.ONE, State.ON),
        SetOutputStateRequest(OutputChannel.ONE, State.OFF),
    ]
    assert supply.lines == [request.serialize() for request in expected]
    assert capsys.readouterr().out == "V 0.0\n"


@pytest.mark.asyncio
async def test_run_stops_on_serial_mismatch():
    supply = FakeSupply()
    async with running(supply) as port:
        with pytest.raises(SerialMismatchError):
            await run(f"127.0.0.1:{port}", "SPD3XOTHER0002")
    assert supply.lines == [IdentityRequest().serialize()]


def test_main_without_environment_fails(monkeypatch, capsys):
    monkeypatch.delenv("TEST_SPD3303X", raising=False)
    monkeypatch.delenv("TEST_SPD3303X_SERIAL", raising=False)
    assert main([]) == 1
    assert "TEST_SPD3303X" in capsys.readouterr().err


def test_main_without_serial_fails(monkeypatch, capsys):
    monkeypatch.setenv("TEST_SPD3303X", "127.0.0.1:1")
    monkeypatch.delenv("TEST_SPD3303X_SERIAL", raising=False)
    assert main([]) == 1
    assert "TEST_SPD3303X_SERIAL" in capsys.readouterr().err


def test_main_reports_connection_failure(capsys):
    port = _closed_port()
    assert main(["--host", f"127.0.0.1:{port}", "--serial", SERIAL]) == 1
    assert "Failed to connect" in capsys.readouterr().err