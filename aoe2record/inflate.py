"""Access to the raw-deflate compressed header block of a recorded game."""

from __future__ import annotations

import logging
import zlib
from io import BytesIO
from typing import BinaryIO, Optional, Tuple

from .errors import DecompressionFailure, RecordParsingError
from .reader import RecordReader

logger = logging.getLogger(__name__)

ZLIB_WBITS = -15
"""Negative window bits: raw deflate, no zlib or gzip framing"""

CHUNK_SIZE = 16 * 1024

OUTER_PREFIX_LENGTH = 8
"""Block length (u32) plus a 4-byte field we don't interpret"""


class DeflateStream:
    """Lazily inflates a raw deflate stream, exposing it as a file-like byte source.

    Use as a context manager; the inflater is released on exit whether or
    not decoding succeeded."""

    def __init__(self, compressed: bytes):
        self._input = BytesIO(compressed)
        self._inflater = zlib.decompressobj(ZLIB_WBITS)
        self._buffer = bytearray()
        self.closed = False

    def __enter__(self) -> DeflateStream:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._inflater = None
            self._input.close()
            self._buffer.clear()

    @property
    def eof(self) -> bool:
        """True once the deflate stream has signalled its end."""
        return self._inflater is None or self._inflater.eof

    @property
    def unused_data(self) -> bytes:
        """Bytes of the compressed block found after the end of the deflate stream."""
        if self._inflater is None or not self._inflater.eof:
            return b""
        return self._inflater.unused_data + self._input.getvalue()[self._input.tell() :]

    def _fill(self, size: Optional[int]) -> None:
        """Inflate until at least size bytes are buffered, or everything if size is None."""
        if self.closed:
            raise ValueError("I/O operation on closed DeflateStream")
        while (size is None or len(self._buffer) < size) and not self._inflater.eof:
            chunk = self._input.read(CHUNK_SIZE)
            if not chunk:
                break
            try:
                self._buffer += self._inflater.decompress(chunk)
            except zlib.error as e:
                raise DecompressionFailure(f"Header block is not valid deflate data: {e}") from e

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            self._fill(None)
            size = len(self._buffer)
        else:
            self._fill(size)
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data

    def peek(self, size: int = 1) -> bytes:
        self._fill(size)
        return bytes(self._buffer[:size])


def read_header_block(f: BinaryIO) -> Tuple[int, bytes]:
    """Read the outer envelope, returning the declared block length and the compressed payload."""
    outer = RecordReader(f)
    length = outer.read_uint32()
    outer.skip(OUTER_PREFIX_LENGTH - 4)
    if length < OUTER_PREFIX_LENGTH:
        raise RecordParsingError(
            f"Header block length {length} is smaller than its own {OUTER_PREFIX_LENGTH}-byte prefix"
        )
    compressed = outer.read_fixed(length - OUTER_PREFIX_LENGTH)
    logger.debug(f"Header block: {length} bytes, {len(compressed)} compressed")
    return length, compressed


def inflate_header(f: BinaryIO) -> bytes:
    """Return the whole decompressed header payload."""
    _, compressed = read_header_block(f)
    with DeflateStream(compressed) as stream:
        return stream.read()

