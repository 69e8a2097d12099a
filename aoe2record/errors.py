"""Exceptions raised while decoding a recorded game header."""


class RecordParsingError(Exception):
    """Base class for every failure raised by the header decoder."""


class ShortRead(RecordParsingError, EOFError):
    """Fewer bytes were available than a field requires."""

    def __init__(self, wanted: int, got: int, offset: int):
        super().__init__(
            f"Wanted {wanted} bytes at offset {offset}, only {got} available"
        )
        self.wanted = wanted
        self.got = got
        self.offset = offset


class FormatMismatch(RecordParsingError):
    """A magic marker did not match its required constant."""

    def __init__(self, what: str, expected: bytes, got: bytes, offset: int):
        super().__init__(
            f"Bad {what} at offset {offset}: expected {expected.hex()}, got {got.hex()}"
        )
        self.expected = expected
        self.got = got
        self.offset = offset


class DecompressionFailure(RecordParsingError):
    """The compressed header block is not a valid raw deflate stream."""


class UnmappedCode(RecordParsingError):
    """An enumeration code has no known label and strict decoding was requested."""

    def __init__(self, enum_name: str, code: int):
        super().__init__(f"Unknown {enum_name} code {code}")
        self.enum_name = enum_name
        self.code = code
