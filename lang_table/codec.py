# ==================================================
# lang_table/codec.py
# ==================================================
"""
Length-prefixed UTF-8 string codec.

Framing is written once, as generator "steps" that yield memoryviews:
a read step yields views that must be filled completely, a write step
yields views that must be sent completely.  ``drive`` runs a step against a
blocking channel, ``drive_async`` against a suspend-capable one, so both
call styles produce identical bytes.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generator, Optional

from .const  import (BUFFER_GROWTH_FACTOR, COUNT_SIZE, INITIAL_BUFFER_SIZE,
                     LENGTH, LENGTH_SIZE, MAX_STRING_LENGTH)
from .errors import InvalidEncoding, StringTooLong

logger = logging.getLogger(__name__)

Step = Generator[memoryview, None, object]


# ── drivers ──────────────────────────────────────────────────
def drive(step: Step, transfer: Callable[[memoryview], None]):
    try:
        view = next(step)
        while True:
            transfer(view)
            view = step.send(None)
    except StopIteration as stop:
        return stop.value
    finally:
        step.close()


async def drive_async(step: Step, transfer: Callable[[memoryview], Awaitable[None]]):
    try:
        view = next(step)
        while True:
            await transfer(view)
            view = step.send(None)
    except StopIteration as stop:
        return stop.value
    finally:
        step.close()


async def checkpoint(cancel: Optional[asyncio.Event] = None) -> None:
    """Give the loop a chance to deliver a pending cancellation, before any I/O."""
    await asyncio.sleep(0)
    if cancel is not None and cancel.is_set():
        raise asyncio.CancelledError("operation cancelled")


# ── codec ────────────────────────────────────────────────────
class StringCodec:
    """
    Reads/writes ``uint16 BE length + UTF-8 bytes`` through a reusable
    scratch buffer.

    The buffer starts at ``initial_size`` and doubles until a string fits;
    it never shrinks.  ``errors`` is passed to the UTF-8 decoder: the default
    ``"strict"`` raises :class:`InvalidEncoding`, ``"replace"`` keeps the
    lossy behaviour some existing tables rely on.
    """

    def __init__(self, initial_size: int = INITIAL_BUFFER_SIZE, errors: str = "strict"):
        if initial_size < COUNT_SIZE:
            raise ValueError(f"initial_size must be at least {COUNT_SIZE}")
        self._buffer = bytearray(initial_size)
        self.errors  = errors

    @property
    def capacity(self) -> int:
        return len(self._buffer)

    def reserve(self, length: int) -> memoryview:
        """Scratch view of at least ``length`` bytes, growing the buffer if needed."""
        size = len(self._buffer)
        if size < length:
            while size < length:
                size *= BUFFER_GROWTH_FACTOR
            logger.debug("scratch buffer %d -> %d bytes", len(self._buffer), size)
            self._buffer = bytearray(size)
        return memoryview(self._buffer)

    # ------------------------------------------------------------------
    def encode(self, value: str) -> bytes:
        try:
            data = value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise InvalidEncoding(f"string is not encodable as UTF-8: {e}") from e
        if len(data) > MAX_STRING_LENGTH:
            raise StringTooLong(len(data), MAX_STRING_LENGTH)
        return data

    # ------------------------------------------------------------------
    def read_string(self) -> Step:
        view = memoryview(self._buffer)[:LENGTH_SIZE]
        yield view
        (length,) = LENGTH.unpack(view)

        view = self.reserve(length)[:length]
        yield view
        try:
            return str(view, "utf-8", self.errors)
        except UnicodeDecodeError as e:
            raise InvalidEncoding(f"invalid UTF-8 in {length}-byte string: {e.reason}") from e

    def write_encoded(self, data: bytes) -> Step:
        length = len(data)
        if length > MAX_STRING_LENGTH:
            raise StringTooLong(length, MAX_STRING_LENGTH)
        view = self.reserve(length)
        LENGTH.pack_into(view, 0, length)
        yield view[:LENGTH_SIZE]

        view[:length] = data
        yield view[:length]

    def write_string(self, value: str) -> Step:
        return self.write_encoded(self.encode(value))
