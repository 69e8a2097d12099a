"""Little-endian primitive reads over a sequential byte source."""

from __future__ import annotations

import logging
import struct
from typing import Protocol, Tuple

from .errors import FormatMismatch, RecordParsingError, ShortRead

logger = logging.getLogger(__name__)

TAGGED_STRING_MAGIC = b"\x60\x0a"
"""Prefix of every length-prefixed string in the header"""

SEPARATOR = b"\xa3\x5f\x02\x00"
"""Structural checkpoint found between sections of the header"""


class ByteSource(Protocol):
    def read(self, size: int) -> bytes: ...


class RecordReader:
    """Reads typed values from a byte source, tracking the current offset.

    The offset only moves when a read succeeds, so an exception always
    reports the position of the field that could not be decoded."""

    def __init__(self, source: ByteSource):
        self.source = source
        self.position = 0

    def read_fixed(self, n: int) -> bytes:
        if n < 0:
            raise ValueError(f"Cannot read a negative number of bytes ({n})")
        data = self.source.read(n) if n else b""
        if len(data) != n:
            raise ShortRead(n, len(data), self.position)
        self.position += n
        return data

    def skip(self, n: int) -> None:
        self.read_fixed(n)

    def _unpack(self, fmt: str):
        (value,) = struct.unpack(fmt, self.read_fixed(struct.calcsize(fmt)))
        return value

    def read_uint8(self) -> int:
        return self._unpack("<B")

    def read_uint16(self) -> int:
        return self._unpack("<H")

    def read_uint32(self) -> int:
        return self._unpack("<I")

    def read_uint64(self) -> int:
        return self._unpack("<Q")

    def read_int32(self) -> int:
        return self._unpack("<i")

    def read_float32(self) -> float:
        return self._unpack("<f")

    def read_bool(self) -> bool:
        # Only 0x01 is true; every other byte value reads as false.
        return self.read_fixed(1) == b"\x01"

    def read_cstring(self) -> str:
        """Read bytes up to (not including) a NUL terminator."""
        buf = bytearray()
        while True:
            byte = self.source.read(1)
            if not byte:
                raise ShortRead(len(buf) + 1, len(buf), self.position)
            if byte == b"\x00":
                break
            buf += byte
        self.position += len(buf) + 1
        return buf.decode("latin-1")

    def read_tagged_string(self) -> Tuple[int, bytes]:
        """Read a magic-prefixed string, returning its declared length and raw bytes."""
        offset = self.position
        try:
            magic = self.read_fixed(len(TAGGED_STRING_MAGIC))
            if magic != TAGGED_STRING_MAGIC:
                raise FormatMismatch(
                    "tagged string marker", TAGGED_STRING_MAGIC, magic, offset
                )
            length = self.read_uint16()
            value = self.read_fixed(length)
        except RecordParsingError:
            self.position = offset
            raise
        return length, value

    def expect_separator(self) -> None:
        offset = self.position
        got = self.read_fixed(len(SEPARATOR))
        if got != SEPARATOR:
            self.position = offset
            raise FormatMismatch("separator", SEPARATOR, got, offset)
        logger.debug(f"Separator ok at offset {offset}")

    def peek(self, n: int) -> bytes:
        """Return up to n upcoming bytes without consuming them, if the source allows it."""
        peek = getattr(self.source, "peek", None)
        if peek is None:
            return b""
        return peek(n)[:n]
