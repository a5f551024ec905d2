# ==================================================
# lang_table/errors.py
# ==================================================
from __future__ import annotations


class LangTableError(Exception):
    """Base class for every failure raised by lang_table."""


class TruncatedInput(LangTableError, EOFError):
    """Stream ended before a field or payload was fully read."""

    def __init__(self, expected: int, got: int, what: str = "bytes"):
        self.expected = expected
        self.got      = got
        self.what     = what
        super().__init__(f"truncated input: expected {expected} {what}, got {got}")


class InvalidEncoding(LangTableError, ValueError):
    """String payload is not valid UTF-8."""


class StringTooLong(LangTableError, ValueError):
    """Encoded string does not fit the uint16 length prefix."""

    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit  = limit
        super().__init__(f"string is {length} UTF-8 bytes, limit is {limit}")


class DecompressionError(LangTableError):
    """Compressed region is malformed."""


class InvalidState(LangTableError):
    """Operation attempted on a closed reader/writer."""
