"""Value types used in commands and responses of the power supply."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from ipaddress import IPv4Address

from .scpi import U16_MAX, Reader, ResponseDecodingError

TIME_INTERVAL_MAX = 10000


class ScpiEnum(Enum):
    """An enumeration whose values are the literal tokens used on the wire."""

    def serialize(self) -> str:
        return self.value

    @classmethod
    def deserialize(cls, reader: Reader):
        for member in cls:
            try:
                reader.match_literal(member.value)
            except ResponseDecodingError:
                continue
            return member
        raise ResponseDecodingError(
            f"Unexpected token for {cls.__name__}: `{reader.remaining()}`"
        )


class MemorySlot(ScpiEnum):
    ONE = "1"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"

    @classmethod
    def from_index(cls, value: int) -> MemorySlot:
        for member in cls:
            if member.value == str(value):
                return member
        raise ValueError(f"No memory slot {value}")


class Channel(ScpiEnum):
    ONE = "CH1"
    TWO = "CH2"

    @classmethod
    def from_index(cls, value: int) -> Channel:
        for member in cls:
            if member.value == f"CH{value}":
                return member
        raise ValueError(f"No channel {value}")

    @classmethod
    def from_output(cls, output: OutputChannel) -> Channel:
        if output is OutputChannel.THREE:
            raise ValueError("Output channel CH3 is not a controllable channel")
        return cls(output.value)


class Quantity(ScpiEnum):
    CURRENT = "CURRent"
    VOLTAGE = "VOLTage"
    POWER = "POWEr"


class LimitQuantity(Enum):
    """A quantity that can be set as a channel limit."""

    CURRENT = Quantity.CURRENT
    VOLTAGE = Quantity.VOLTAGE

    @property
    def quantity(self) -> Quantity:
        return self.value

    def serialize(self) -> str:
        return self.value.serialize()


class State(ScpiEnum):
    ON = "ON"
    OFF = "OFF"

    @classmethod
    def from_bool(cls, value: bool) -> State:
        return cls.ON if value else cls.OFF

    def __bool__(self) -> bool:
        return self is State.ON

    def __neg__(self) -> State:
        return State.OFF if self is State.ON else State.ON


class OutputChannel(ScpiEnum):
    ONE = "CH1"
    TWO = "CH2"
    THREE = "CH3"

    @classmethod
    def from_channel(cls, channel: Channel) -> OutputChannel:
        return cls(channel.value)


class OperationMode(ScpiEnum):
    INDEPENDENT = "0"
    SERIES = "1"
    PARALLEL = "2"


class TimingGroup(ScpiEnum):
    ONE = "1"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"


class ChannelMode(Enum):
    CONSTANT_VOLTAGE = "CV"
    CONSTANT_CURRENT = "CC"

    @classmethod
    def from_bit(cls, value: bool) -> ChannelMode:
        return cls.CONSTANT_CURRENT if value else cls.CONSTANT_VOLTAGE


class DisplayMode(Enum):
    DIGITAL_DISPLAY = "digital"
    WAVEFORM_DISPLAY = "waveform"

    @classmethod
    def from_bit(cls, value: bool) -> DisplayMode:
        return cls.WAVEFORM_DISPLAY if value else cls.DIGITAL_DISPLAY


@dataclass(frozen=True)
class Reading:
    """A non-negative value with millis resolution, as exchanged with the device."""

    millis: int

    def __post_init__(self) -> None:
        if not 0 <= self.millis <= U16_MAX:
            raise ValueError(f"Reading of {self.millis} millis is out of range")

    @classmethod
    def from_millis(cls, millis: int) -> Reading:
        return cls(millis)

    @classmethod
    def from_float(cls, value: float) -> Reading:
        """Round to the nearest milli, saturating at the representable range."""
        scaled = value * 1000.0
        if math.isnan(scaled) or scaled <= 0.0:
            return cls(0)
        if scaled >= U16_MAX:
            return cls(U16_MAX)
        return cls(min(math.floor(scaled + 0.5), U16_MAX))

    def __float__(self) -> float:
        return self.millis / 1000.0

    def serialize(self) -> str:
        whole, frac = divmod(self.millis, 1000)
        return f"{whole}.{frac:03d}"

    @classmethod
    def deserialize(cls, reader: Reader) -> Reading:
        whole = reader.read_u16()
        reader.match_literal(".")
        frac = reader.read_u16()
        millis = whole * 1000 + frac
        if millis > U16_MAX:
            raise ResponseDecodingError(f"Reading {whole}.{frac} is out of range")
        return cls(millis)


@dataclass(frozen=True)
class TimeInterval:
    """Duration of one timer step, at most 10000."""

    seconds: int

    def __post_init__(self) -> None:
        if not 0 <= self.seconds <= TIME_INTERVAL_MAX:
            raise ValueError(
                f"Time interval value {self.seconds} exceeds accepted range "
                f"(max. {TIME_INTERVAL_MAX})"
            )

    def serialize(self) -> str:
        return str(self.seconds)

    @classmethod
    def deserialize(cls, reader: Reader) -> TimeInterval:
        value = reader.read_u16()
        try:
            return cls(value)
        except ValueError as exc:
            raise ResponseDecodingError(str(exc)) from exc


@dataclass(frozen=True)
class ChannelStatus:
    mode: ChannelMode
    output: State
    timer: State
    display: DisplayMode


@dataclass(frozen=True)
class SystemStatus:
    operation_mode: OperationMode
    channel_one: ChannelStatus
    channel_two: ChannelStatus

    def get(self, channel: Channel) -> ChannelStatus:
        return self.channel_one if channel is Channel.ONE else self.channel_two


def serialize_ipv4(address: IPv4Address) -> str:
    """Return the dotted-quad form of ``address``."""
    return str(IPv4Address(address))


def parse_ipv4(reader: Reader) -> IPv4Address:
    """Parse the rest of the input as an IPv4 address and consume the address."""
    try:
        address = IPv4Address(reader.remaining().strip())
    except ValueError as exc:
        raise ResponseDecodingError(f"Failed to parse IPv4 Address: {exc}") from exc
    for _ in range(3):
        reader.read_while(str.isnumeric)
        reader.match_literal(".")
    reader.read_while(str.isnumeric)
    return address