# ==================================================
# lang_table/records.py
# ==================================================
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import AsyncIterator, Iterable, Iterator, Optional, Tuple, Union

from .channel import AsyncByteChannel, AsyncStreamChannel, ByteChannel, StreamChannel
from .codec   import StringCodec, Step, checkpoint, drive, drive_async
from .const   import COUNT, COUNT_SIZE, INITIAL_BUFFER_SIZE
from .errors  import InvalidState

logger = logging.getLogger(__name__)

Record  = Tuple[str, str]
Records = Union[Mapping, Iterable[Record]]

INT32_MIN, INT32_MAX = -2**31, 2**31 - 1


def _as_list(records: Records) -> list:
    if isinstance(records, Mapping):
        return list(records.items())
    return list(records)


# ── shared state / steps ─────────────────────────────────────
class _RecordStream:
    def __init__(self, channel, leave_open: bool, initial_size: int, errors: str):
        self._channel   = channel
        self._codec     = StringCodec(initial_size, errors)
        self.leave_open = leave_open
        self.closed     = False

    @property
    def codec(self) -> StringCodec:
        return self._codec

    def _ensure_open(self):
        if self.closed:
            raise InvalidState(f"{type(self).__name__} is closed")

    def _release(self) -> bool:
        """Mark closed; True if the caller should close the channel."""
        if self.closed:
            return False
        self.closed = True
        return not self.leave_open

    def _read_count_step(self) -> Step:
        view = self._codec.reserve(COUNT_SIZE)[:COUNT_SIZE]
        yield view
        (count,) = COUNT.unpack(view)
        return count

    def _write_count_step(self, count: int) -> Step:
        if not INT32_MIN <= count <= INT32_MAX:
            raise ValueError(f"entry count {count} does not fit int32")
        view = self._codec.reserve(COUNT_SIZE)[:COUNT_SIZE]
        COUNT.pack_into(view, 0, count)
        yield view


class _ReaderBase(_RecordStream):
    def __init__(self, channel, leave_open, initial_size, errors):
        super().__init__(channel, leave_open, initial_size, errors)
        self.count: Optional[int] = None
        self.records_read = 0

    @property
    def exhausted(self) -> bool:
        # loop condition is records_read < count, so a negative count yields nothing
        return self.count is not None and self.records_read >= self.count

    def _got_count(self, count: int) -> int:
        self.count = count
        logger.debug("entry count %d", count)
        return count


class _WriterBase(_RecordStream):
    def __init__(self, channel, leave_open, initial_size, errors="strict"):
        super().__init__(channel, leave_open, initial_size, errors)
        self.records_written = 0


# ── blocking ─────────────────────────────────────────────────
class RecordReader(_ReaderBase):
    """
    Reads the entry count, then (key, text) pairs, from a blocking stream.

    Iteration is lazy and not restartable: every pair consumes stream bytes,
    and progress is kept on the reader, so a partly consumed reader picks up
    where it stopped.
    """

    def __init__(self, stream, leave_open: bool = False,
                 initial_size: int = INITIAL_BUFFER_SIZE, errors: str = "strict"):
        channel = stream if isinstance(stream, ByteChannel) else StreamChannel(stream)
        super().__init__(channel, leave_open, initial_size, errors)

    def read_count(self) -> int:
        self._ensure_open()
        if self.count is None:
            self._got_count(drive(self._read_count_step(), self._channel.read_into))
        return self.count

    def read_record(self) -> Optional[Record]:
        self.read_count()
        if self.exhausted:
            return None
        key  = drive(self._codec.read_string(), self._channel.read_into)
        text = drive(self._codec.read_string(), self._channel.read_into)
        self.records_read += 1
        return key, text

    def read_records(self) -> Iterator[Record]:
        self.read_count()
        while not self.exhausted:
            yield self.read_record()

    __iter__ = read_records

    def close(self):
        if self._release():
            self._channel.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class RecordWriter(_WriterBase):
    """Writes the entry count and (key, text) pairs in the order given."""

    def __init__(self, stream, leave_open: bool = False,
                 initial_size: int = INITIAL_BUFFER_SIZE):
        channel = stream if isinstance(stream, ByteChannel) else StreamChannel(stream)
        super().__init__(channel, leave_open, initial_size)

    def write_count(self, count: int):
        self._ensure_open()
        drive(self._write_count_step(count), self._channel.write)

    def write_record(self, key: str, text: str):
        self._ensure_open()
        # encode both first: a bad text must not leave a dangling key behind
        key_data, text_data = self._codec.encode(key), self._codec.encode(text)
        drive(self._codec.write_encoded(key_data), self._channel.write)
        drive(self._codec.write_encoded(text_data), self._channel.write)
        self.records_written += 1

    def write_all(self, records: Records):
        records = _as_list(records)
        self.write_count(len(records))
        for key, text in records:
            self.write_record(key, text)

    def close(self):
        if self._release():
            self._channel.flush()
            self._channel.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


# ── suspend-capable ──────────────────────────────────────────
class AsyncRecordReader(_ReaderBase):
    """
    Async twin of :class:`RecordReader`.

    Every logical operation (count read, each string read) starts with a
    cancellation checkpoint; a cancelled read never touches the stream, so
    the position stays right after the last completed operation.
    """

    def __init__(self, stream, leave_open: bool = False,
                 initial_size: int = INITIAL_BUFFER_SIZE, errors: str = "strict",
                 cancel: Optional[asyncio.Event] = None):
        channel = stream if isinstance(stream, AsyncByteChannel) else AsyncStreamChannel(stream)
        super().__init__(channel, leave_open, initial_size, errors)
        self.cancel = cancel

    async def _run(self, step: Step):
        await checkpoint(self.cancel)
        return await drive_async(step, self._channel.read_into)

    async def read_count(self) -> int:
        self._ensure_open()
        if self.count is None:
            self._got_count(await self._run(self._read_count_step()))
        return self.count

    async def read_record(self) -> Optional[Record]:
        await self.read_count()
        if self.exhausted:
            return None
        key  = await self._run(self._codec.read_string())
        text = await self._run(self._codec.read_string())
        self.records_read += 1
        return key, text

    async def read_records(self) -> AsyncIterator[Record]:
        await self.read_count()
        while not self.exhausted:
            yield await self.read_record()

    def __aiter__(self):
        return self.read_records()

    async def close(self):
        if self._release():
            await self._channel.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()


class AsyncRecordWriter(_WriterBase):
    def __init__(self, stream, leave_open: bool = False,
                 initial_size: int = INITIAL_BUFFER_SIZE,
                 cancel: Optional[asyncio.Event] = None):
        channel = stream if isinstance(stream, AsyncByteChannel) else AsyncStreamChannel(stream)
        super().__init__(channel, leave_open, initial_size)
        self.cancel = cancel

    async def _run(self, step: Step):
        await checkpoint(self.cancel)
        await drive_async(step, self._channel.write)

    async def write_count(self, count: int):
        self._ensure_open()
        await self._run(self._write_count_step(count))

    async def write_record(self, key: str, text: str):
        self._ensure_open()
        key_data, text_data = self._codec.encode(key), self._codec.encode(text)
        await self._run(self._codec.write_encoded(key_data))
        await self._run(self._codec.write_encoded(text_data))
        self.records_written += 1

    async def write_all(self, records: Records):
        records = _as_list(records)
        await self.write_count(len(records))
        for key, text in records:
            await self.write_record(key, text)

    async def close(self):
        if self._release():
            await self._channel.flush()
            await self._channel.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()
