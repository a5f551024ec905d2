import io

import pytest

from lang_table.channel import StreamChannel


class TrickleRaw(io.RawIOBase):
    """Raw sink that accepts at most ``limit`` bytes per write."""

    def __init__(self, limit):
        self.limit = limit
        self.data = bytearray()

    def writable(self):
        return True

    def write(self, b):
        chunk = bytes(b[:self.limit])
        self.data += chunk
        return len(chunk)


class WouldBlockRaw(io.RawIOBase):
    def writable(self):
        return True

    def write(self, b):
        return None


class LegacyWriter:
    """Non-raw file-like whose write() returns nothing."""

    def __init__(self):
        self.data = bytearray()

    def write(self, b):
        self.data += b


def test_partial_raw_writes_are_completed():
    raw = TrickleRaw(3)
    StreamChannel(raw).write(b"abcdefgh")
    assert raw.data == b"abcdefgh"


def test_raw_write_returning_none_is_an_error():
    with pytest.raises(BlockingIOError):
        StreamChannel(WouldBlockRaw()).write(b"abc")


def test_raw_write_returning_zero_is_an_error():
    with pytest.raises(OSError):
        StreamChannel(TrickleRaw(0)).write(b"abc")


def test_non_raw_writer_returning_none_takes_everything():
    sink = LegacyWriter()
    StreamChannel(sink).write(b"abc")
    assert sink.data == b"abc"


def test_empty_write_touches_nothing():
    StreamChannel(WouldBlockRaw()).write(b"")
