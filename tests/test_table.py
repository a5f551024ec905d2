import asyncio
import io
import struct
import zlib

import pytest

from lang_table import (DecompressionError, InvalidEncoding, StringTooLong,
                        TableFile, TruncatedInput)
from lang_table.compression import decompress
from lang_table.examples.extract_table import main as extract_main


def frame(*strings):
    out = b""
    for s in strings:
        data = s.encode("utf-8")
        out += struct.pack(">H", len(data)) + data
    return out


def lang_file(header, count, body):
    return struct.pack("<I", header) + zlib.compress(struct.pack(">i", count) + body)


class AsyncBytesWriter:
    def __init__(self):
        self.data = bytearray()

    def write(self, data):
        self.data += data

    async def drain(self):
        pass


SAMPLE = TableFile(
    header=0x0102_0304,
    entries={
        "UI_Play": "Play",
        "UI_Quit": "Выход",
        "Empty": "",
        "Long": "ы" * 30000,
        "Emoji": "⚔️ ready",
    },
)


def test_roundtrip_stream():
    buf = io.BytesIO()
    SAMPLE.save(buf)
    assert not buf.closed
    buf.seek(0)
    assert TableFile.load(buf) == SAMPLE


def test_roundtrip_path(tmp_path):
    path = tmp_path / "language.1.bin"
    SAMPLE.save(path)
    assert TableFile.load(path) == SAMPLE
    assert TableFile.load(str(path)) == SAMPLE


def test_header_is_little_endian_outside_compression():
    data = TableFile(0xDEADBEEF, {"k": "v"}).to_bytes()
    assert data[:4] == b"\xef\xbe\xad\xde"
    assert TableFile.from_bytes(data).header == 0xDEADBEEF


def test_payload_is_zlib_at_max_level():
    data = SAMPLE.to_bytes()
    assert data[4] == 0x78 and data[5] == 0xDA


def test_endianness_distinction():
    # header LE 1, count BE 1, lengths BE
    payload = b"\x00\x00\x00\x01" + b"\x00\x01k" + b"\x00\x02hi"
    data = b"\x01\x00\x00\x00" + zlib.compress(payload)
    table = TableFile.from_bytes(data)
    assert table.header == 1
    assert table.entries == {"k": "hi"}


def test_empty_table():
    data = TableFile(7).to_bytes()
    assert zlib.decompress(data[4:]) == b"\x00\x00\x00\x00"
    assert TableFile.from_bytes(data) == TableFile(7, {})


def test_duplicate_keys_last_wins():
    data = lang_file(0, 2, frame("k", "first", "k", "second"))
    assert TableFile.from_bytes(data).entries == {"k": "second"}


def test_truncated_key():
    data = lang_file(0, 1, b"\x00\x0aabc")
    with pytest.raises(TruncatedInput):
        TableFile.from_bytes(data)


def test_more_records_declared_than_present():
    data = lang_file(0, 3, frame("a", "1"))
    with pytest.raises(TruncatedInput):
        TableFile.from_bytes(data)


def test_truncated_header():
    with pytest.raises(TruncatedInput):
        TableFile.from_bytes(b"\x01\x02")


def test_header_without_compressed_region():
    with pytest.raises(TruncatedInput):
        TableFile.from_bytes(b"\x00\x00\x00\x00")


def test_malformed_compressed_region():
    with pytest.raises(DecompressionError):
        TableFile.from_bytes(b"\x00\x00\x00\x00" + b"definitely not zlib")
    with pytest.raises(DecompressionError):
        decompress(b"garbage")


def test_invalid_utf8_strict_and_lenient():
    data = lang_file(0, 1, b"\x00\x01k" + b"\x00\x01\xff")
    with pytest.raises(InvalidEncoding):
        TableFile.from_bytes(data)
    assert TableFile.from_bytes(data, errors="replace").entries == {"k": "�"}


def test_oversized_value_fails_save():
    table = TableFile(0, {"ok": "fine", "big": "x" * 65536})
    with pytest.raises(StringTooLong):
        table.to_bytes()


def test_header_must_fit_uint32():
    with pytest.raises(ValueError):
        TableFile(2**32).to_bytes()


def test_async_save_is_byte_identical():
    sink = AsyncBytesWriter()
    asyncio.run(SAMPLE.save_async(sink))
    assert bytes(sink.data) == SAMPLE.to_bytes()


def test_async_load_from_stream_reader():
    data = SAMPLE.to_bytes()

    async def run():
        stream = asyncio.StreamReader()
        stream.feed_data(data)
        stream.feed_eof()
        return await TableFile.load_async(stream)

    assert asyncio.run(run()) == SAMPLE


def test_async_path_roundtrip(tmp_path):
    path = tmp_path / "language.bin"
    asyncio.run(SAMPLE.save_async(path))
    assert path.read_bytes() == SAMPLE.to_bytes()
    assert asyncio.run(TableFile.load_async(path)) == SAMPLE


def test_async_load_cancelled_before_io(tmp_path):
    path = tmp_path / "language.bin"
    SAMPLE.save(path)

    async def run():
        cancel = asyncio.Event()
        cancel.set()
        return await TableFile.load_async(path, cancel=cancel)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(run())


def test_extract_table(tmp_path):
    src = tmp_path / "language.bin"
    out = tmp_path / "language.txt"
    TableFile(0, {"a": "1", "b": "two words"}).save(src)

    assert extract_main([str(src), str(out)]) == 0
    assert out.read_text(encoding="utf-8").splitlines() == ["a\t1", "b\ttwo words"]


def test_extract_table_missing_file(tmp_path):
    assert extract_main([str(tmp_path / "nope.bin"), str(tmp_path / "out.txt")]) == 1


def test_async_path_io_opens_files_off_the_loop(tmp_path, monkeypatch):
    path = tmp_path / "language.bin"
    offloaded = []
    real_to_thread = asyncio.to_thread

    async def spy(func, *args, **kwargs):
        offloaded.append(func)
        return await real_to_thread(func, *args, **kwargs)

    monkeypatch.setattr(asyncio, "to_thread", spy)
    asyncio.run(SAMPLE.save_async(path))
    assert offloaded[0] is open
    offloaded.clear()
    assert asyncio.run(TableFile.load_async(path)) == SAMPLE
    assert offloaded[0] is open
