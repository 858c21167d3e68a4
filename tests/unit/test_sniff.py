"""Unit tests for gzip sniffing (no compression decoding)."""

import gzip
import io

import pytest

from transopen.sniff import GZIP_MAGIC, PeekableStream, check_bytes, is_gzip


class TrickleStream(io.RawIOBase):
    """Raw stream that hands out one byte per read, like a slow pipe."""

    def __init__(self, data):
        self._data = data

    def readable(self):
        return True

    def readinto(self, buffer):
        if not self._data:
            return 0
        buffer[0] = self._data[0]
        self._data = self._data[1:]
        return 1


class PipeLikeStream(io.RawIOBase):
    """Hands out its data, then fails where a stalled pipe would block."""

    def __init__(self, data):
        self._data = data

    def readable(self):
        return True

    def readinto(self, buffer):
        if not self._data:
            raise AssertionError("read past the available data")
        n = min(len(buffer), len(self._data))
        buffer[:n] = self._data[:n]
        self._data = self._data[n:]
        return n


class FailingStream(io.RawIOBase):
    def readable(self):
        return True

    def readinto(self, buffer):
        raise OSError("device unplugged")


def test_plain_text_is_not_gzip():
    assert is_gzip(PeekableStream(io.BytesIO(b"asdf"))) is False


def test_gzip_payload_is_gzip():
    assert is_gzip(PeekableStream(io.BytesIO(gzip.compress(b"asdf")))) is True


def test_empty_input_is_not_gzip():
    assert is_gzip(PeekableStream(io.BytesIO(b""))) is False


def test_single_byte_input_is_not_gzip():
    """One byte, even the first magic byte, cannot match a two-byte signature."""
    assert is_gzip(PeekableStream(io.BytesIO(b"\x1f"))) is False


def test_magic_arriving_one_byte_at_a_time():
    stream = PeekableStream(TrickleStream(gzip.compress(b"asdf")))
    assert is_gzip(stream) is True


@pytest.mark.parametrize(
    "payload",
    [b"", b"a", b"\x1f", GZIP_MAGIC, b"asdf", gzip.compress(b"asdf"), bytes(range(256))],
)
def test_sniffing_does_not_consume(payload):
    stream = PeekableStream(io.BytesIO(payload))
    is_gzip(stream)
    is_gzip(stream)
    assert stream.read() == payload


def test_check_bytes_with_longer_signature():
    stream = PeekableStream(io.BytesIO(b"%PDF-1.7 ..."))
    assert check_bytes(stream, b"%PDF") is True
    assert check_bytes(stream, b"%PS") is False
    assert stream.read(4) == b"%PDF"


def test_check_bytes_accepts_buffered_reader():
    """Any stream with peek() works; BufferedReader may return extra bytes."""
    reader = io.BufferedReader(io.BytesIO(gzip.compress(b"payload")))
    assert is_gzip(reader) is True
    assert reader.read(2) == GZIP_MAGIC


def test_peek_error_propagates():
    with pytest.raises(OSError, match="device unplugged"):
        is_gzip(PeekableStream(FailingStream()))


def test_peekable_stream_uses_read_when_no_readinto():
    class ReadOnly:
        def __init__(self, data):
            self._buf = io.BytesIO(data)

        def read(self, size=-1):
            return self._buf.read(size)

    stream = PeekableStream(ReadOnly(b"hello world"))
    assert stream.peek(5) == b"hello"
    assert stream.read(8) == b"hello"
    assert stream.read() == b" world"


def test_closing_peekable_stream_leaves_source_open():
    source = io.BytesIO(b"data")
    stream = PeekableStream(source)
    stream.close()
    assert not source.closed


def test_read_returns_what_a_buffered_source_has():
    stream = PeekableStream(io.BufferedReader(PipeLikeStream(b"first line\n"), 8192))
    assert stream.peek(2) == b"fi"
    assert stream.read(100) == b"fi"
    assert stream.read(100) == b"rst line\n"


def test_pending_counts_peeked_bytes():
    stream = PeekableStream(io.BytesIO(b"abcdef"))
    assert stream.pending == 0
    stream.peek(3)
    assert stream.pending == 3
    stream.read(2)
    assert stream.pending == 1
