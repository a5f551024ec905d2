# ==================================================
# lang_table/table.py
# ==================================================
from __future__ import annotations

import asyncio
import io
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from .channel     import AsyncStreamChannel, StreamChannel, ThreadedChannel
from .codec       import checkpoint
from .compression import (AsyncDeflateChannel, AsyncInflateChannel,
                          DeflateChannel, InflateChannel)
from .const       import COMPRESSION_LEVEL, HEADER, HEADER_SIZE
from .records     import (AsyncRecordReader, AsyncRecordWriter,
                          RecordReader, RecordWriter)

logger = logging.getLogger(__name__)


def _is_path(obj) -> bool:
    return isinstance(obj, (str, bytes, os.PathLike))


def _pack_header(header: int) -> bytes:
    if not 0 <= header <= 0xFFFFFFFF:
        raise ValueError(f"header {header:#x} does not fit uint32")
    return HEADER.pack(header)


@dataclass
class TableFile:
    """
    One decoded string table: the opaque outer header plus key -> text.

    On-disk layout::

        uint32 LE header                     (uncompressed)
        zlib {
            int32 BE entry_count
            entry_count x (uint16 BE len, UTF-8 key, uint16 BE len, UTF-8 text)
        }

    The header is carried verbatim and never interpreted.  Duplicate keys in
    a file collapse to the last one read.
    """
    header: int = 0
    entries: Dict[str, str] = field(default_factory=dict)

    # ------------------------------------------------------------------
    @classmethod
    def load(cls, source, errors: str = "strict") -> "TableFile":
        """Decode from a binary stream (left open) or a file path."""
        if _is_path(source):
            with open(source, "rb") as f:
                return cls.load(f, errors=errors)

        raw = StreamChannel(source)
        head = bytearray(HEADER_SIZE)
        raw.read_into(memoryview(head))
        (header,) = HEADER.unpack(head)

        entries: Dict[str, str] = {}
        with RecordReader(InflateChannel(raw), leave_open=True, errors=errors) as reader:
            for key, text in reader:
                entries[key] = text
            read = reader.records_read
        logger.debug("loaded %d entries (%d records) header=%#010x",
                     len(entries), read, header)
        return cls(header, entries)

    @classmethod
    async def load_async(cls, source, errors: str = "strict",
                         cancel: Optional[asyncio.Event] = None) -> "TableFile":
        """
        Suspend-capable :meth:`load`.  ``source`` is an asyncio-style reader
        or a path; paths are read through worker threads.
        """
        await checkpoint(cancel)
        if _is_path(source):
            f = await asyncio.to_thread(open, source, "rb")
            try:
                return await cls._load_async(ThreadedChannel(f), errors, cancel)
            finally:
                await asyncio.to_thread(f.close)
        return await cls._load_async(AsyncStreamChannel(source), errors, cancel)

    @classmethod
    async def _load_async(cls, raw, errors, cancel) -> "TableFile":
        head = bytearray(HEADER_SIZE)
        await raw.read_into(memoryview(head))
        (header,) = HEADER.unpack(head)

        entries: Dict[str, str] = {}
        async with AsyncRecordReader(AsyncInflateChannel(raw), leave_open=True,
                                     errors=errors, cancel=cancel) as reader:
            async for key, text in reader:
                entries[key] = text
            read = reader.records_read
        logger.debug("loaded %d entries (%d records) header=%#010x",
                     len(entries), read, header)
        return cls(header, entries)

    @classmethod
    def from_bytes(cls, data: bytes, errors: str = "strict") -> "TableFile":
        return cls.load(io.BytesIO(data), errors=errors)

    # ------------------------------------------------------------------
    def save(self, target, level: int = COMPRESSION_LEVEL) -> None:
        """Encode to a binary stream (left open, flushed) or a file path."""
        if _is_path(target):
            with open(target, "wb") as f:
                self.save(f, level=level)
            return

        raw = StreamChannel(target)
        raw.write(_pack_header(self.header))
        deflate = DeflateChannel(raw, level)
        with RecordWriter(deflate, leave_open=True) as writer:
            writer.write_all(self.entries)
        deflate.finish()
        logger.debug("saved %d entries header=%#010x", len(self.entries), self.header)

    async def save_async(self, target, level: int = COMPRESSION_LEVEL,
                         cancel: Optional[asyncio.Event] = None) -> None:
        await checkpoint(cancel)
        if _is_path(target):
            f = await asyncio.to_thread(open, target, "wb")
            try:
                await self._save_async(ThreadedChannel(f), level, cancel)
            finally:
                await asyncio.to_thread(f.close)
            return
        await self._save_async(AsyncStreamChannel(target), level, cancel)

    async def _save_async(self, raw, level, cancel) -> None:
        await raw.write(_pack_header(self.header))
        deflate = AsyncDeflateChannel(raw, level)
        async with AsyncRecordWriter(deflate, leave_open=True, cancel=cancel) as writer:
            await writer.write_all(self.entries)
        await deflate.finish()
        logger.debug("saved %d entries header=%#010x", len(self.entries), self.header)

    def to_bytes(self, level: int = COMPRESSION_LEVEL) -> bytes:
        buf = io.BytesIO()
        self.save(buf, level=level)
        return buf.getvalue()
