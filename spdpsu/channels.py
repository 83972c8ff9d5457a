"""Per-channel views onto a shared power supply connection."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from .commands import TimingParameters
from .types import (
    Channel,
    LimitQuantity,
    OutputChannel,
    Quantity,
    Reading,
    State,
    TimeInterval,
    TimingGroup,
)

if TYPE_CHECKING:
    from .device import Spd3303x


class ChannelControl:
    """Controls one adjustable channel; the device is shared through ``lock``."""

    def __init__(self, device: Spd3303x, lock: asyncio.Lock, channel: Channel) -> None:
        self._device = device
        self._lock = lock
        self._channel = channel

    @property
    def channel(self) -> Channel:
        return self._channel

    async def measure(self, quantity: Quantity) -> float:
        async with self._lock:
            return await self._device.measure(self._channel, quantity)

    async def set_limit(self, quantity: LimitQuantity, value: Reading) -> None:
        async with self._lock:
            await self._device.set_limit(self._channel, quantity, value)

    async def get_limit(self, quantity: LimitQuantity) -> float:
        async with self._lock:
            return await self._device.get_limit(self._channel, quantity)

    async def set_output(self, state: State) -> None:
        async with self._lock:
            await self._device.set_output(OutputChannel.from_channel(self._channel), state)

    async def get_output(self) -> State:
        async with self._lock:
            return await self._device.get_output(self._channel)

    async def set_waveform_display(self, state: State) -> None:
        async with self._lock:
            await self._device.set_waveform_display(self._channel, state)

    async def set_timing_parameters(
        self,
        group: TimingGroup,
        voltage: Reading,
        current: Reading,
        time: TimeInterval,
    ) -> None:
        async with self._lock:
            await self._device.set_timing_parameters(
                self._channel, group, voltage, current, time
            )

    async def get_timing_parameters(self, group: TimingGroup) -> TimingParameters:
        async with self._lock:
            return await self._device.get_timing_parameters(self._channel, group)

    async def set_timer(self, state: State) -> None:
        async with self._lock:
            await self._device.set_timer(self._channel, state)

    def to_fixed(self) -> FixedChannelControl:
        """Return a view of this channel that can only switch its output."""
        return FixedChannelControl(
            self._device, self._lock, OutputChannel.from_channel(self._channel)
        )


class FixedChannelControl:
    """Controls a channel whose only adjustable setting is its output state."""

    def __init__(
        self, device: Spd3303x, lock: asyncio.Lock, channel: OutputChannel
    ) -> None:
        self._device = device
        self._lock = lock
        self._channel = channel

    @property
    def channel(self) -> OutputChannel:
        return self._channel

    async def set_output(self, state: State) -> None:
        async with self._lock:
            await self._device.set_output(self._channel, state)