"""Decoder for the header block of Age of Empires II DE recorded games."""

__version__ = "0.1.0"

from .errors import (
    DecompressionFailure,
    FormatMismatch,
    RecordParsingError,
    ShortRead,
    UnmappedCode,
)
from .header import decode
from .model import Header, RecordedGame

__all__ = [
    "DecompressionFailure",
    "FormatMismatch",
    "Header",
    "RecordParsingError",
    "RecordedGame",
    "ShortRead",
    "UnmappedCode",
    "decode",
]
