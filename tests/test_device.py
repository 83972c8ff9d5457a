import asyncio
import socket
from contextlib import asynccontextmanager
from ipaddress import IPv4Address

import pytest

from spdpsu.device import Spd3303x
from spdpsu.scpi import ConnectFailedError, SerialMismatchError
from spdpsu.types import (
    Channel,
    LimitQuantity,
    MemorySlot,
    OperationMode,
    OutputChannel,
    Quantity,
    Reading,
    State,
    TimeInterval,
    TimingGroup,
)

SERIAL = "SPD3XTEST00001"
IDN = f"Siglent Technologies, SPD3303X, {SERIAL}, 1.01.01.03.11R1,V6.2\n"
FIXED = {
    "INSTrument?": "CH1\n",
    "SYSTem:ERRor?": "0 No Error\n",
    "SYSTem:VERSion?": "1.01.01.01.02\n",
    "IPaddr?": "10.11.13.214\n",
    "MASKaddr?": "255.255.255.0\n",
    "GATEaddr?": "10.11.13.1\n",
    "DHCP?": "DHCP:ON\n",
}


def _fmt(millis):
    return f"{millis // 1000}.{millis % 1000:03d}\n"


class FakeSupply:
    def __init__(self):
        self.lines = []
        self.limits = {
            (ch, q): 0 for ch in ("CH1", "CH2") for q in ("VOLTage", "CURRent")
        }
        self.outputs = {"CH1": False, "CH2": False, "CH3": False}
        self.slots = {}

    def respond(self, line):
        self.lines.append(line)
        if line == "*IDN?":
            return IDN
        if line in FIXED:
            return FIXED[line]
        if line.startswith("*SAV "):
            self.slots[line[5:]] = dict(self.limits)
            return None
        if line.startswith("*RCL "):
            self.limits = dict(self.slots[line[5:]])
            return None
        if line.startswith("MEASure:"):
            quantity, _, channel = line[len("MEASure:"):].partition("? ")
            on = self.outputs[channel] and quantity == "VOLTage"
            return _fmt(self.limits[(channel, "VOLTage")] if on else 0)
        if line.startswith("OUTPut CH"):
            channel, state = line[len("OUTPut "):].split(",")
            self.outputs[channel] = state == "ON"
            return None
        if line == "SYSTem:STATus?":
            value = 0b0100 | (self.outputs["CH1"] << 4) | (self.outputs["CH2"] << 5)
            return f"0x{value:04X}\n"
        head, _, rest = line.partition(":")
        if head in ("CH1", "CH2"):
            if rest.endswith("?"):
                return _fmt(self.limits[(head, rest[:-1])])
            quantity, _, value = rest.partition(" ")
            whole, frac = value.split(".")
            self.limits[(head, quantity)] = int(whole) * 1000 + int(frac)
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


@asynccontextmanager
async def device_for(supply):
    async with running(supply) as port:
        spd = await Spd3303x.connect_hostname(f"127.0.0.1:{port}")
        async with spd:
            yield spd


def _closed_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_identity():
    async with device_for(FakeSupply()) as spd:
        identity = await spd.get_identity()
    assert identity.company_name == "Siglent Technologies"
    assert identity.model_number == "SPD3303X"
    assert identity.serial_number == SERIAL
    assert identity.software_version == "1.01.01.03.11R1"
    assert identity.hardware_version == "V6.2"


@pytest.mark.asyncio
async def test_save_recall():
    async with device_for(FakeSupply()) as spd:
        await spd.set_limit(Channel.ONE, LimitQuantity.CURRENT, Reading.from_float(1.0))
        await spd.save(MemorySlot.ONE)
        await spd.set_limit(Channel.ONE, LimitQuantity.CURRENT, Reading.from_float(2.0))
        await spd.save(MemorySlot.TWO)
        assert await spd.get_limit(Channel.ONE, LimitQuantity.CURRENT) == 2.0
        await spd.recall(MemorySlot.ONE)
        assert await spd.get_limit(Channel.ONE, LimitQuantity.CURRENT) == 1.0
        await spd.recall(MemorySlot.TWO)
        assert await spd.get_limit(Channel.ONE, LimitQuantity.CURRENT) == 2.0


@pytest.mark.asyncio
async def test_measure():
    async with device_for(FakeSupply()) as spd:
        channel = spd.into_channels()[0]
        await channel.set_limit(LimitQuantity.VOLTAGE, Reading.from_float(1.337))
        await channel.set_output(State.OFF)
        assert await channel.measure(Quantity.VOLTAGE) == 0.0
        await channel.set_output(State.ON)
        assert await channel.measure(Quantity.VOLTAGE) > 1.250
        await channel.set_output(State.OFF)


@pytest.mark.asyncio
async def test_limit():
    async with device_for(FakeSupply()) as spd:
        channel = spd.into_channels()[0]
        await channel.set_limit(LimitQuantity.VOLTAGE, Reading.from_float(1.337))
        assert await channel.get_limit(LimitQuantity.VOLTAGE) == 1.337
        await channel.set_limit(LimitQuantity.VOLTAGE, Reading.from_float(2.337))
        assert await channel.get_limit(LimitQuantity.VOLTAGE) == 2.337


@pytest.mark.asyncio
async def test_output():
    async with device_for(FakeSupply()) as spd:
        channel = spd.into_channels()[0]
        await channel.set_output(State.ON)
        assert await channel.get_output() is State.ON
        await channel.set_output(State.OFF)
        assert await channel.get_output() is State.OFF


@pytest.mark.asyncio
async def test_status_decodes_outputs():
    async with device_for(FakeSupply()) as spd:
        await spd.set_output(OutputChannel.TWO, State.ON)
        status = await spd.get_status()
    assert status.operation_mode is OperationMode.INDEPENDENT
    assert status.channel_one.output is State.OFF
    assert status.channel_two.output is State.ON


@pytest.mark.asyncio
async def test_verify_serial_number():
    async with device_for(FakeSupply()) as spd:
        await spd.verify_serial_number(SERIAL)
        with pytest.raises(SerialMismatchError, match=SERIAL):
            await spd.verify_serial_number("SPD3XOTHER0002")


@pytest.mark.asyncio
async def test_network_queries():
    async with device_for(FakeSupply()) as spd:
        assert await spd.get_ip_address() == IPv4Address("10.11.13.214")
        assert await spd.get_subnet_mask() == IPv4Address("255.255.255.0")
        assert await spd.get_gateway() == IPv4Address("10.11.13.1")
        assert await spd.get_dhcp() is State.ON


@pytest.mark.asyncio
async def test_connect_address():
    supply = FakeSupply()
    async with running(supply) as port:
        async with await Spd3303x.connect_address("127.0.0.1", port) as spd:
            identity = await spd.get_identity()
    assert identity.serial_number == SERIAL


@pytest.mark.asyncio
async def test_connect_hostname_without_port_fails():
    with pytest.raises(ConnectFailedError):
        await Spd3303x.connect_hostname("127.0.0.1")


@pytest.mark.asyncio
async def test_connect_hostname_refused_fails():
    port = _closed_port()
    with pytest.raises(ConnectFailedError, match="Could not connect on any address"):
        await Spd3303x.connect_hostname(f"127.0.0.1:{port}")