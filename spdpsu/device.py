"""Connection to a power supply over its raw TCP command socket."""

from __future__ import annotations

import asyncio
import socket
from ipaddress import IPv4Address
from typing import Any

from .channels import ChannelControl, FixedChannelControl
from .commands import (
    GetDhcpRequest,
    GetGatewayRequest,
    GetInstrumentRequest,
    GetIpAddressRequest,
    GetLimitRequest,
    GetSubnetMaskRequest,
    GetTimingParametersRequest,
    IdentityRequest,
    IdentityResponse,
    MeasureRequest,
    RecallRequest,
    Request,
    SaveRequest,
    SetDhcpRequest,
    SetGatewayRequest,
    SetIpAddressRequest,
    SetLimitRequest,
    SetOperationModeRequest,
    SetOutputStateRequest,
    SetSubnetMaskRequest,
    SetTimerStateRequest,
    SetTimingParametersRequest,
    SystemErrorRequest,
    SystemStatusRequest,
    SystemVersionRequest,
    TimingParameters,
    WaveformDisplayRequest,
)
from .scpi import ConnectFailedError, Reader, ResponseDecodingError, SerialMismatchError
from .types import (
    Channel,
    LimitQuantity,
    MemorySlot,
    OperationMode,
    OutputChannel,
    Quantity,
    Reading,
    State,
    SystemStatus,
    TimeInterval,
    TimingGroup,
)


class Spd3303x:
    """A connected power supply, driven one command line at a time."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer

    @classmethod
    async def connect_hostname(cls, host: str) -> Spd3303x:
        """Resolve ``host`` (``name:port``) and connect to the first address that answers."""
        name, sep, port = host.rpartition(":")
        if not sep or not name or not port.isdigit():
            raise ConnectFailedError(f"Invalid socket address `{host}`")
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(
            name, int(port), family=socket.AF_INET, type=socket.SOCK_STREAM
        )
        if not infos:
            raise ConnectFailedError(f"Lookup provided no addresses for `{host}`")
        for *_, sockaddr in infos:
            try:
                reader, writer = await asyncio.open_connection(sockaddr[0], sockaddr[1])
            except OSError:
                continue
            return cls(reader, writer)
        raise ConnectFailedError("Could not connect on any address")

    @classmethod
    async def connect_address(cls, host: IPv4Address | str, port: int) -> Spd3303x:
        """Connect to an explicit IPv4 address and port."""
        reader, writer = await asyncio.open_connection(str(IPv4Address(host)), port)
        return cls(reader, writer)

    async def close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError:
            pass

    async def __aenter__(self) -> Spd3303x:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def verify_serial_number(self, serial_number: str) -> None:
        """Raise :class:`SerialMismatchError` unless the device reports ``serial_number``."""
        device_serial = (await self.get_identity()).serial_number
        if device_serial != serial_number:
            raise SerialMismatchError(f"Device has serial number: {device_serial}")

    def into_channels(self) -> tuple[ChannelControl, ChannelControl, FixedChannelControl]:
        """Split the device into controls for CH1, CH2 and the fixed CH3."""
        lock = asyncio.Lock()
        return (
            ChannelControl(self, lock, Channel.ONE),
            ChannelControl(self, lock, Channel.TWO),
            FixedChannelControl(self, lock, OutputChannel.THREE),
        )

    async def _send(self, request: Request) -> None:
        self._writer.write(f"{request.serialize()}\n".encode())
        await self._writer.drain()

    async def _execute(self, request: Request) -> Any:
        await self._send(request)
        line = await self._reader.readline()
        try:
            text = line.decode()
        except UnicodeDecodeError as exc:
            raise ResponseDecodingError(f"Response is not valid text: {exc}") from exc
        reader = Reader(text)
        response = request.parse_response(reader)
        reader.check_empty()
        return response

    async def get_identity(self) -> IdentityResponse:
        return await self._execute(IdentityRequest())

    async def save(self, slot: MemorySlot) -> None:
        await self._send(SaveRequest(slot))

    async def recall(self, slot: MemorySlot) -> None:
        await self._send(RecallRequest(slot))

    async def get_selected_channel(self) -> Channel:
        return await self._execute(GetInstrumentRequest())

    async def measure(self, channel: Channel, quantity: Quantity) -> float:
        return float(await self._execute(MeasureRequest(quantity, channel)))

    async def set_limit(
        self, channel: Channel, quantity: LimitQuantity, value: Reading
    ) -> None:
        await self._send(SetLimitRequest(quantity, value, channel))

    async def get_limit(self, channel: Channel, quantity: LimitQuantity) -> float:
        return float(await self._execute(GetLimitRequest(quantity, channel)))

    async def set_output(self, channel: OutputChannel, state: State) -> None:
        await self._send(SetOutputStateRequest(channel, state))

    async def set_output_mode(self, mode: OperationMode) -> None:
        await self._send(SetOperationModeRequest(mode))

    async def set_waveform_display(self, channel: Channel, state: State) -> None:
        await self._send(WaveformDisplayRequest(channel, state))

    async def set_timing_parameters(
        self,
        channel: Channel,
        group: TimingGroup,
        voltage: Reading,
        current: Reading,
        time: TimeInterval,
    ) -> None:
        await self._send(SetTimingParametersRequest(channel, group, voltage, current, time))

    async def get_timing_parameters(
        self, channel: Channel, group: TimingGroup
    ) -> TimingParameters:
        return await self._execute(GetTimingParametersRequest(channel, group))

    async def set_timer(self, channel: Channel, state: State) -> None:
        await self._send(SetTimerStateRequest(channel, state))

    async def get_error(self) -> str:
        return await self._execute(SystemErrorRequest())

    async def get_version(self) -> str:
        return await self._execute(SystemVersionRequest())

    async def get_status(self) -> SystemStatus:
        return (await self._execute(SystemStatusRequest())).decode()

    async def set_ip_address(self, address: IPv4Address | str) -> None:
        await self._send(SetIpAddressRequest(IPv4Address(address)))

    async def get_ip_address(self) -> IPv4Address:
        return await self._execute(GetIpAddressRequest())

    async def set_subnet_mask(self, mask: IPv4Address | str) -> None:
        await self._send(SetSubnetMaskRequest(IPv4Address(mask)))

    async def get_subnet_mask(self) -> IPv4Address:
        return await self._execute(GetSubnetMaskRequest())

    async def set_gateway(self, gateway: IPv4Address | str) -> None:
        await self._send(SetGatewayRequest(IPv4Address(gateway)))

    async def get_gateway(self) -> IPv4Address:
        return await self._execute(GetGatewayRequest())

    async def set_dhcp(self, state: State) -> None:
        await self._send(SetDhcpRequest(state))

    async def get_dhcp(self) -> State:
        return await self._execute(GetDhcpRequest())

    async def get_output(self, channel: Channel) -> State:
        return (await self.get_status()).get(channel).output