"""Errors and a cursor-style reader for SCPI response text."""

from __future__ import annotations

from itertools import takewhile
from typing import Callable

U16_MAX = 0xFFFF


class SpdError(Exception):
    """Base class for every error raised by this package."""

    prefix = "Other"

    def __init__(self, detail: str) -> None:
        super().__init__(f"{self.prefix}: {detail}")
        self.detail = detail


class ResponseDecodingError(SpdError):
    """A response from the device did not have the expected shape."""

    prefix = "Received data does not match expected format"


class ConnectFailedError(SpdError):
    """No connection to the device could be established."""

    prefix = "Failed to connect"


class SerialMismatchError(SpdError):
    """The connected device reported an unexpected serial number."""

    prefix = "Serial mismatch"


class Reader:
    """Consumes a response string piece by piece.

    Failed reads raise :class:`ResponseDecodingError` and leave the
    position unchanged.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def remaining(self) -> str:
        """Return the text that has not been consumed yet."""
        return self._text[self._pos:]

    def match_literal(self, literal: str) -> None:
        """Consume ``literal`` or raise if the input does not start with it."""
        if not self._text.startswith(literal, self._pos):
            raise ResponseDecodingError(
                f"Expected literal `{literal}` not matched `{self.remaining()}`"
            )
        self._pos += len(literal)

    def read_until(self, delimiter: str) -> str:
        """Return the text before ``delimiter`` and consume both."""
        index = self._text.find(delimiter, self._pos)
        if index < 0:
            raise ResponseDecodingError(
                f"Expected `{delimiter}` in `{self.remaining()}`"
            )
        head = self._text[self._pos:index]
        self._pos = index + len(delimiter)
        return head

    def read_while(self, predicate: Callable[[str], bool]) -> str:
        """Consume and return the longest prefix whose characters satisfy ``predicate``."""
        head = "".join(takewhile(predicate, self.remaining()))
        self._pos += len(head)
        return head

    def read_exact(self, length: int) -> str:
        """Consume and return exactly ``length`` characters."""
        rest = self.remaining()
        if len(rest) < length:
            raise ResponseDecodingError(
                f"Failed to read {length} characters from `{rest}`"
            )
        self._pos += length
        return rest[:length]

    def read_all(self) -> str:
        """Return the rest of the current line, consuming the newline."""
        return self.read_until("\n")

    def read_u16(self) -> int:
        """Consume a run of digits and return it as an unsigned 16-bit integer."""
        start = self._pos
        digits = self.read_while(str.isnumeric)
        try:
            value = int(digits)
        except ValueError:
            value = -1
        if not 0 <= value <= U16_MAX:
            self._pos = start
            raise ResponseDecodingError(f"Number parsing failed: {digits}")
        return value

    def check_empty(self) -> None:
        """Raise unless the whole input has been consumed."""
        rest = self.remaining()
        if rest:
            raise ResponseDecodingError(
                "Response should be empty/fully deserialized, "
                f"but still has content: `{rest}`"
            )