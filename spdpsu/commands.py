"""Requests understood by the power supply and the responses they produce."""

from __future__ import annotations

import string
from abc import ABC, abstractmethod
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Any, ClassVar, Optional

from .scpi import U16_MAX, Reader, ResponseDecodingError
from .types import (
    Channel,
    ChannelMode,
    ChannelStatus,
    DisplayMode,
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
    parse_ipv4,
    serialize_ipv4,
)


def _is_hex_digit(char: str) -> bool:
    return char in string.hexdigits


class Request(ABC):
    """A command sent to the device as one line of text.

    Requests that make the device answer set ``expects_response`` and
    turn the answer into a value in :meth:`parse_response`.
    """

    expects_response: ClassVar[bool] = False

    @abstractmethod
    def serialize(self) -> str:
        """Return the command text, without the line terminator."""

    def parse_response(self, reader: Reader) -> Any:
        """Decode the device's answer; commands without one decode to ``None``."""
        return None


class _Query(Request):
    expects_response: ClassVar[bool] = True

    @abstractmethod
    def parse_response(self, reader: Reader) -> Any:
        """Decode the device's answer."""


@dataclass(frozen=True)
class IdentityResponse:
    company_name: str
    model_number: str
    serial_number: str
    software_version: str
    hardware_version: str

    @classmethod
    def deserialize(cls, reader: Reader) -> IdentityResponse:
        return cls(
            company_name=reader.read_until(",").strip(),
            model_number=reader.read_until(",").strip(),
            serial_number=reader.read_until(",").strip(),
            software_version=reader.read_until(",").strip(),
            hardware_version=reader.read_until("\n").strip(),
        )


@dataclass(frozen=True)
class IdentityRequest(_Query):
    def serialize(self) -> str:
        return "*IDN?"

    def parse_response(self, reader: Reader) -> IdentityResponse:
        return IdentityResponse.deserialize(reader)


@dataclass(frozen=True)
class SaveRequest(Request):
    slot: MemorySlot

    def serialize(self) -> str:
        return f"*SAV {self.slot.serialize()}"


@dataclass(frozen=True)
class RecallRequest(Request):
    slot: MemorySlot

    def serialize(self) -> str:
        return f"*RCL {self.slot.serialize()}"


@dataclass(frozen=True)
class SetInstrumentRequest(Request):
    channel: Channel

    def serialize(self) -> str:
        return f"INSTrument {self.channel.serialize()}"


@dataclass(frozen=True)
class GetInstrumentRequest(_Query):
    def serialize(self) -> str:
        return "INSTrument?"

    def parse_response(self, reader: Reader) -> Channel:
        return Channel.deserialize(reader)


@dataclass(frozen=True)
class MeasureRequest(_Query):
    quantity: Quantity
    channel: Optional[Channel] = None

    def serialize(self) -> str:
        channel = self.channel.serialize() if self.channel is not None else ""
        return f"MEASure:{self.quantity.serialize()}? {channel}"

    def parse_response(self, reader: Reader) -> Reading:
        value = Reading.deserialize(reader)
        reader.match_literal("\n")
        return value


def _channel_prefix(channel: Optional[Channel]) -> str:
    return f"{channel.serialize()}:" if channel is not None else ""


@dataclass(frozen=True)
class SetLimitRequest(Request):
    quantity: LimitQuantity
    value: Reading
    channel: Optional[Channel] = None

    def serialize(self) -> str:
        return (
            f"{_channel_prefix(self.channel)}{self.quantity.serialize()} "
            f"{self.value.serialize()}"
        )


@dataclass(frozen=True)
class GetLimitRequest(_Query):
    quantity: LimitQuantity
    channel: Optional[Channel] = None

    def serialize(self) -> str:
        return f"{_channel_prefix(self.channel)}{self.quantity.serialize()}?"

    def parse_response(self, reader: Reader) -> Reading:
        value = Reading.deserialize(reader)
        reader.match_literal("\n")
        return value


@dataclass(frozen=True)
class SetOutputStateRequest(Request):
    channel: OutputChannel
    state: State

    def serialize(self) -> str:
        return f"OUTPut {self.channel.serialize()},{self.state.serialize()}"


@dataclass(frozen=True)
class SetOperationModeRequest(Request):
    mode: OperationMode

    def serialize(self) -> str:
        return f"OUTPut:TRACK {self.mode.serialize()}"


@dataclass(frozen=True)
class WaveformDisplayRequest(Request):
    channel: Channel
    state: State

    def serialize(self) -> str:
        return f"OUTPut:WAVE {self.channel.serialize()},{self.state.serialize()}"


@dataclass(frozen=True)
class SetTimingParametersRequest(Request):
    channel: Channel
    group: TimingGroup
    voltage: Reading
    current: Reading
    time: TimeInterval

    def serialize(self) -> str:
        parts = (
            self.channel.serialize(),
            self.group.serialize(),
            self.voltage.serialize(),
            self.current.serialize(),
            self.time.serialize(),
        )
        return "TIMEr:SET " + ",".join(parts)


@dataclass(frozen=True)
class TimingParameters:
    voltage: Reading
    current: Reading
    time: Reading

    @classmethod
    def deserialize(cls, reader: Reader) -> TimingParameters:
        voltage = Reading.deserialize(reader)
        reader.match_literal(",")
        current = Reading.deserialize(reader)
        reader.match_literal(",")
        time = Reading.deserialize(reader)
        return cls(voltage=voltage, current=current, time=time)


@dataclass(frozen=True)
class GetTimingParametersRequest(_Query):
    channel: Channel
    group: TimingGroup

    def serialize(self) -> str:
        return f"TIMEr:SET? {self.channel.serialize()},{self.group.serialize()}"

    def parse_response(self, reader: Reader) -> TimingParameters:
        return TimingParameters.deserialize(reader)


@dataclass(frozen=True)
class SetTimerStateRequest(Request):
    channel: Channel
    state: State

    def serialize(self) -> str:
        return f"TIMEr {self.channel.serialize()},{self.state.serialize()}"


@dataclass(frozen=True)
class SystemErrorRequest(_Query):
    def serialize(self) -> str:
        return "SYSTem:ERRor?"

    def parse_response(self, reader: Reader) -> str:
        return reader.read_all()


@dataclass(frozen=True)
class SystemVersionRequest(_Query):
    def serialize(self) -> str:
        return "SYSTem:VERSion?"

    def parse_response(self, reader: Reader) -> str:
        rest = reader.remaining()
        return reader.read_exact(len(rest))


@dataclass(frozen=True)
class SystemStatusResponse:
    """The raw status word; bit meanings are applied by :meth:`decode`."""

    value: int

    _CHANNEL_1_MODE_BIT: ClassVar[int] = 0
    _CHANNEL_2_MODE_BIT: ClassVar[int] = 1
    _CHANNEL_1_OUTPUT_STATE: ClassVar[int] = 4
    _CHANNEL_2_OUTPUT_STATE: ClassVar[int] = 5
    _TIMER_1_STATE: ClassVar[int] = 6
    _TIMER_2_STATE: ClassVar[int] = 7
    _CHANNEL_1_DISPLAY: ClassVar[int] = 8
    _CHANNEL_2_DISPLAY: ClassVar[int] = 9

    @classmethod
    def deserialize(cls, reader: Reader) -> SystemStatusResponse:
        reader.match_literal("0x")
        digits = reader.read_while(_is_hex_digit)
        try:
            value = int(digits, 16)
        except ValueError as exc:
            raise ResponseDecodingError(f"Failed to parse hex: {exc}") from exc
        if value > U16_MAX:
            raise ResponseDecodingError(
                f"Failed to parse hex: {digits} is too large"
            )
        reader.match_literal("\n")
        return cls(value)

    def _bit(self, bit: int) -> bool:
        return bool(self.value & (1 << bit))

    def _operation_mode(self) -> OperationMode:
        pattern = self.value & 0b1100
        if pattern == 0b0100:
            return OperationMode.INDEPENDENT
        if pattern == 0b1000:
            return OperationMode.PARALLEL
        if pattern == 0b1100:
            return OperationMode.SERIES
        raise ResponseDecodingError(
            "Received unexpected, invalid bit pattern `00` for operation mode!"
        )

    def _channel(self, mode: int, output: int, timer: int, display: int) -> ChannelStatus:
        return ChannelStatus(
            mode=ChannelMode.from_bit(self._bit(mode)),
            output=State.from_bool(self._bit(output)),
            timer=State.from_bool(self._bit(timer)),
            display=DisplayMode.from_bit(self._bit(display)),
        )

    def decode(self) -> SystemStatus:
        return SystemStatus(
            operation_mode=self._operation_mode(),
            channel_one=self._channel(
                self._CHANNEL_1_MODE_BIT,
                self._CHANNEL_1_OUTPUT_STATE,
                self._TIMER_1_STATE,
                self._CHANNEL_1_DISPLAY,
            ),
            channel_two=self._channel(
                self._CHANNEL_2_MODE_BIT,
                self._CHANNEL_2_OUTPUT_STATE,
                self._TIMER_2_STATE,
                self._CHANNEL_2_DISPLAY,
            ),
        )


@dataclass(frozen=True)
class SystemStatusRequest(_Query):
    def serialize(self) -> str:
        return "SYSTem:STATus?"

    def parse_response(self, reader: Reader) -> SystemStatusResponse:
        return SystemStatusResponse.deserialize(reader)


def _parse_address_line(reader: Reader) -> IPv4Address:
    address = parse_ipv4(reader)
    reader.match_literal("\n")
    return address


@dataclass(frozen=True)
class SetIpAddressRequest(Request):
    address: IPv4Address

    def serialize(self) -> str:
        return f"IPaddr {serialize_ipv4(self.address)}"


@dataclass(frozen=True)
class GetIpAddressRequest(_Query):
    def serialize(self) -> str:
        return "IPaddr?"

    def parse_response(self, reader: Reader) -> IPv4Address:
        return _parse_address_line(reader)


@dataclass(frozen=True)
class SetSubnetMaskRequest(Request):
    mask: IPv4Address

    def serialize(self) -> str:
        return f"MASKaddr {serialize_ipv4(self.mask)}"


@dataclass(frozen=True)
class GetSubnetMaskRequest(_Query):
    def serialize(self) -> str:
        return "MASKaddr?"

    def parse_response(self, reader: Reader) -> IPv4Address:
        return _parse_address_line(reader)


@dataclass(frozen=True)
class SetGatewayRequest(Request):
    gateway: IPv4Address

    def serialize(self) -> str:
        return f"GATEaddr {serialize_ipv4(self.gateway)}"


@dataclass(frozen=True)
class GetGatewayRequest(_Query):
    def serialize(self) -> str:
        return "GATEaddr?"

    def parse_response(self, reader: Reader) -> IPv4Address:
        return _parse_address_line(reader)


@dataclass(frozen=True)
class SetDhcpRequest(Request):
    state: State

    def serialize(self) -> str:
        return f"DHCP {self.state.serialize()}"


@dataclass(frozen=True)
class GetDhcpRequest(_Query):
    def serialize(self) -> str:
        return "DHCP?"

    def parse_response(self, reader: Reader) -> State:
        reader.match_literal("DHCP:")
        state = State.deserialize(reader)
        reader.match_literal("\n")
        return state