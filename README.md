# spdpsu

An asyncio client for SPD3303X programmable bench power supplies. It sends
SCPI command lines to the instrument over a plain TCP connection and gives
typed access to measurements, voltage and current limits, outputs, timers,
stored setups and network settings.

It needs nothing beyond the Python standard library (Python 3.10 or later).

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Usage

```python
import asyncio

from spdpsu.device import Spd3303x
from spdpsu.types import LimitQuantity, Quantity, Reading, State


async def demo() -> None:
    async with await Spd3303x.connect_address("192.168.1.50", 5025) as supply:
        # Make sure you are talking to the device you expect.
        await supply.verify_serial_number("SPD3EXAMPLE0001")

        ch1, ch2, ch3 = supply.into_channels()

        await ch1.set_limit(LimitQuantity.VOLTAGE, Reading.from_float(1.0))
        await ch1.set_limit(LimitQuantity.CURRENT, Reading.from_float(0.1))

        await ch1.set_output(State.ON)
        print("V", await ch1.measure(Quantity.VOLTAGE))
        print("output:", await ch1.get_output())
        await ch1.set_output(State.OFF)

        # Channel 3 is a fixed output that can only be switched on and off.
        await ch3.set_output(State.ON)
        await ch3.set_output(State.OFF)


asyncio.run(demo())
```

### Connecting

- `Spd3303x.connect_address(host, port)` connects to an IPv4 address and port.
- `Spd3303x.connect_hostname("name:port")` resolves the name and tries each
  IPv4 address in turn until one accepts the connection.
- `Spd3303x` is an async context manager; leaving the block calls `close()`.

### Channels

`into_channels()` returns two `ChannelControl` objects (CH1, CH2) and one
`FixedChannelControl` (CH3) from `spdpsu.channels`. They share the
connection, and an `asyncio.Lock` keeps their requests from interleaving.
A `ChannelControl` can measure, set and read limits, switch its output,
read its output state, toggle the waveform display, program and read timer
groups and switch the timer. `to_fixed()` turns it into an output-only
control.

### Device operations

`Spd3303x` also offers `get_identity()`, `get_version()`, `get_error()`,
`save()` / `recall()` of a `MemorySlot`, `get_selected_channel()`,
`set_output_mode()` with an `OperationMode`, `get_status()` (a decoded
`SystemStatus` with per-channel `ChannelStatus`), and the network settings
`set_ip_address` / `get_ip_address`, `set_subnet_mask` / `get_subnet_mask`,
`set_gateway` / `get_gateway` and `set_dhcp` / `get_dhcp`.

### Values

`spdpsu.types` holds the wire types. `Reading` stores a value in
thousandths (0 to 65535); `Reading.from_float` rounds to the nearest
thousandth and clamps to that range. `TimeInterval` accepts 0 to 10000 and
raises `ValueError` outside it. The request and response classes themselves
live in `spdpsu.commands`.

### Errors

All errors of this package derive from `SpdError` in `spdpsu.scpi`:

- `ResponseDecodingError` — a reply from the instrument did not have the
  expected shape (including an invalid operation-mode pattern in the status
  word).
- `ConnectFailedError` — `connect_hostname` got a malformed `name:port`, no
  addresses, or no address accepted the connection.
- `SerialMismatchError` — `verify_serial_number` found a different serial.

Socket-level failures (for example in `connect_address` or name resolution)
surface as `OSError`.

## Command line

The `spdpsu` command runs a short exercise against a real supply: it
connects, verifies the serial number, sets channel 1 to 1 V / 0.1 A, prints
the measured voltage and toggles the outputs of channels 3 and 1.

```
spdpsu --host 192.168.1.50:5025 --serial SPD3EXAMPLE0001
```

Without the options it reads the host and serial number from the
environment:

```
export TEST_SPD3303X=192.168.1.50:5025
export TEST_SPD3303X_SERIAL=SPD3EXAMPLE0001
spdpsu
```

It exits with status 1 and a message on standard error if either value is
missing or the device cannot be reached or verified.

## Limitations

Only the network (TCP) interface of the instrument is supported; there is no
USB or serial transport. The command line tool runs the fixed exercise
above and nothing else.