# ==================================================
# lang_table/channel.py
# ==================================================
"""
Exact-size byte channels.

Everything above this layer only ever asks for "fill this view completely"
or "send these bytes", so the same framing code runs over a blocking file,
an asyncio stream, or a blocking file driven from worker threads.
"""
from __future__ import annotations

import asyncio
import inspect
import io

from .errors import TruncatedInput


async def _maybe_await(result):
    if inspect.isawaitable(result):
        return await result
    return result


# ── blocking ─────────────────────────────────────────────────
class ByteChannel:
    def read_into(self, view: memoryview) -> None:
        raise NotImplementedError

    def read(self, size: int) -> bytes:
        raise NotImplementedError

    def write(self, data) -> None:
        raise NotImplementedError

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class StreamChannel(ByteChannel):
    """Wraps a blocking binary file-like object (file, BytesIO, socket file)."""

    def __init__(self, stream):
        self.stream    = stream
        self._readinto = getattr(stream, "readinto", None)
        self._raw      = isinstance(stream, io.RawIOBase)

    def read_into(self, view: memoryview) -> None:
        need = len(view)
        got  = 0
        while got < need:
            if self._readinto is not None:
                n = self._readinto(view[got:]) or 0
            else:
                chunk = self.stream.read(need - got) or b""
                n = len(chunk)
                view[got:got + n] = chunk
            if not n:
                raise TruncatedInput(need, got)
            got += n

    def read(self, size: int) -> bytes:
        return self.stream.read(size) or b""

    def write(self, data) -> None:
        view = memoryview(data)
        while view:
            n = self.stream.write(view)
            if n is None:
                if self._raw:
                    raise BlockingIOError(f"raw stream accepted none of {len(view)} bytes")
                break                           # non-raw file-likes take it all
            if n == 0:
                raise OSError(f"stream accepted 0 of {len(view)} bytes")
            view = view[n:]

    def flush(self) -> None:
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()

    def close(self) -> None:
        self.stream.close()


# ── suspend-capable ──────────────────────────────────────────
class AsyncByteChannel:
    async def read_into(self, view: memoryview) -> None:
        raise NotImplementedError

    async def read(self, size: int) -> bytes:
        raise NotImplementedError

    async def write(self, data) -> None:
        raise NotImplementedError

    async def flush(self) -> None:
        pass

    async def close(self) -> None:
        pass


class AsyncStreamChannel(AsyncByteChannel):
    """
    Wraps asyncio-style streams.

    Reading: ``asyncio.StreamReader`` (``readexactly``) or anything with a
    coroutine ``read(n)``.  Writing: ``asyncio.StreamWriter`` (plain
    ``write`` + ``drain``) or anything whose ``write`` is a coroutine.
    """

    def __init__(self, stream):
        self.stream       = stream
        self._readexactly = getattr(stream, "readexactly", None)

    async def read_into(self, view: memoryview) -> None:
        need = len(view)
        if self._readexactly is not None:
            try:
                data = await self._readexactly(need)
            except asyncio.IncompleteReadError as e:
                raise TruncatedInput(need, len(e.partial)) from e
            view[:] = data
            return
        got = 0
        while got < need:
            chunk = await _maybe_await(self.stream.read(need - got)) or b""
            if not chunk:
                raise TruncatedInput(need, got)
            view[got:got + len(chunk)] = chunk
            got += len(chunk)

    async def read(self, size: int) -> bytes:
        return await _maybe_await(self.stream.read(size)) or b""

    async def write(self, data) -> None:
        # transports may hold on to the object; never hand them the scratch buffer
        await _maybe_await(self.stream.write(bytes(data)))
        drain = getattr(self.stream, "drain", None)
        if drain is not None:
            await drain()

    async def flush(self) -> None:
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            await _maybe_await(flush())

    async def close(self) -> None:
        close = getattr(self.stream, "close", None)      # StreamReader has none
        if close is not None:
            await _maybe_await(close())
        wait_closed = getattr(self.stream, "wait_closed", None)
        if wait_closed is not None:
            await wait_closed()


class ThreadedChannel(AsyncByteChannel):
    """Blocking file object driven from worker threads."""

    def __init__(self, stream):
        self._inner = StreamChannel(stream)

    @property
    def stream(self):
        return self._inner.stream

    async def read_into(self, view: memoryview) -> None:
        await asyncio.to_thread(self._inner.read_into, view)

    async def read(self, size: int) -> bytes:
        return await asyncio.to_thread(self._inner.read, size)

    async def write(self, data) -> None:
        await asyncio.to_thread(self._inner.write, bytes(data))

    async def flush(self) -> None:
        await asyncio.to_thread(self._inner.flush)

    async def close(self) -> None:
        await asyncio.to_thread(self._inner.close)
