# ==================================================
# lang_table/compression.py
# ==================================================
from __future__ import annotations

import zlib

from .channel import AsyncByteChannel, ByteChannel
from .const   import COMPRESSION_LEVEL, READ_CHUNK_SIZE
from .errors  import DecompressionError, TruncatedInput

# -------- whole-buffer helpers --------------------------------------------

def compress(data: bytes, level: int = COMPRESSION_LEVEL) -> bytes:
    return zlib.compress(data, level)

def decompress(data: bytes) -> bytes:
    try:
        return zlib.decompress(data)
    except zlib.error as e:
        raise DecompressionError(str(e)) from e


# -------- sans-IO cores ---------------------------------------------------

class Inflater:
    """zlib decompressor that hands out exact-size slices of its output."""

    def __init__(self):
        self._z   = zlib.decompressobj()
        self._out = bytearray()
        self._pos = 0                       # consumed prefix of _out

    @property
    def eof(self) -> bool:
        return self._z.eof

    def available(self) -> int:
        return len(self._out) - self._pos

    def feed(self, chunk: bytes) -> None:
        try:
            data = self._z.decompress(chunk)
        except zlib.error as e:
            raise DecompressionError(str(e)) from e
        if self._pos:
            del self._out[:self._pos]
            self._pos = 0
        self._out += data

    def take_into(self, view: memoryview) -> None:
        n = len(view)
        view[:] = self._out[self._pos:self._pos + n]
        self._pos += n


class Deflater:
    def __init__(self, level: int = COMPRESSION_LEVEL):
        self._z       = zlib.compressobj(level)
        self.finished = False

    def compress(self, data) -> bytes:
        return self._z.compress(data)

    def finish(self) -> bytes:
        self.finished = True
        return self._z.flush(zlib.Z_FINISH)


# -------- channel adapters ------------------------------------------------
# The adapters never close the channel underneath them unless asked to via
# close(); the outer header shares that channel.

class InflateChannel(ByteChannel):
    def __init__(self, source: ByteChannel, chunk_size: int = READ_CHUNK_SIZE):
        self._source     = source
        self._inflater   = Inflater()
        self._chunk_size = chunk_size

    def read_into(self, view: memoryview) -> None:
        need = len(view)
        while self._inflater.available() < need:
            if self._inflater.eof:
                raise TruncatedInput(need, self._inflater.available())
            chunk = self._source.read(self._chunk_size)
            if not chunk:
                raise TruncatedInput(need, self._inflater.available())
            self._inflater.feed(chunk)
        self._inflater.take_into(view)

    def close(self) -> None:
        self._source.close()


class DeflateChannel(ByteChannel):
    def __init__(self, sink: ByteChannel, level: int = COMPRESSION_LEVEL):
        self._sink     = sink
        self._deflater = Deflater(level)

    def write(self, data) -> None:
        out = self._deflater.compress(data)
        if out:
            self._sink.write(out)

    def finish(self) -> None:
        """Emit the zlib trailer and flush the sink. Safe to call twice."""
        if self._deflater.finished:
            return
        self._sink.write(self._deflater.finish())
        self._sink.flush()

    def flush(self) -> None:
        self._sink.flush()

    def close(self) -> None:
        self.finish()
        self._sink.close()


class AsyncInflateChannel(AsyncByteChannel):
    def __init__(self, source: AsyncByteChannel, chunk_size: int = READ_CHUNK_SIZE):
        self._source     = source
        self._inflater   = Inflater()
        self._chunk_size = chunk_size

    async def read_into(self, view: memoryview) -> None:
        need = len(view)
        while self._inflater.available() < need:
            if self._inflater.eof:
                raise TruncatedInput(need, self._inflater.available())
            chunk = await self._source.read(self._chunk_size)
            if not chunk:
                raise TruncatedInput(need, self._inflater.available())
            self._inflater.feed(chunk)
        self._inflater.take_into(view)

    async def close(self) -> None:
        await self._source.close()


class AsyncDeflateChannel(AsyncByteChannel):
    def __init__(self, sink: AsyncByteChannel, level: int = COMPRESSION_LEVEL):
        self._sink     = sink
        self._deflater = Deflater(level)

    async def write(self, data) -> None:
        out = self._deflater.compress(data)
        if out:
            await self._sink.write(out)

    async def finish(self) -> None:
        if self._deflater.finished:
            return
        await self._sink.write(self._deflater.finish())
        await self._sink.flush()

    async def flush(self) -> None:
        await self._sink.flush()

    async def close(self) -> None:
        await self.finish()
        await self._sink.close()
