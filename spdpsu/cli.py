"""Command that exercises a power supply: limits, a measurement and output toggling."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Optional, Sequence

from .device import Spd3303x
from .scpi import SpdError
from .types import LimitQuantity, Quantity, Reading, State

HOST_VARIABLE = "TEST_SPD3303X"
SERIAL_VARIABLE = "TEST_SPD3303X_SERIAL"


async def run(hostname: str, serial_number: str) -> float:
    """Drive the device at ``hostname`` and return the measured CH1 voltage."""
    async with await Spd3303x.connect_hostname(hostname) as power_supply:
        # Guards against talking to the wrong device by accident.
        await power_supply.verify_serial_number(serial_number)

        ch1, _ch2, ch3 = power_supply.into_channels()

        await ch1.set_limit(LimitQuantity.VOLTAGE, Reading.from_float(1.0))
        await ch1.set_limit(LimitQuantity.CURRENT, Reading.from_float(0.1))

        voltage = await ch1.measure(Quantity.VOLTAGE)
        print(f"V {voltage}")

        await ch3.set_output(State.ON)
        await ch3.set_output(State.OFF)

        await ch1.set_output(State.ON)
        await ch1.set_output(State.OFF)
    return voltage


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="spdpsu", description="Exercise a power supply over the network."
    )
    parser.add_argument("--host", default=os.environ.get(HOST_VARIABLE),
                        help=f"host:port of the device (default: ${HOST_VARIABLE})")
    parser.add_argument("--serial", default=os.environ.get(SERIAL_VARIABLE),
                        help=f"expected serial number (default: ${SERIAL_VARIABLE})")
    args = parser.parse_args(argv)
    try:
        if args.host is None:
            raise SpdError(f"Environment variable {HOST_VARIABLE} not set!")
        if args.serial is None:
            raise SpdError(f"Environment variable {SERIAL_VARIABLE} not set!")
        asyncio.run(run(args.host, args.serial))
    except (SpdError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())