"""Format sniffing: inspect leading bytes of a stream without consuming them."""

from __future__ import annotations

import io
from typing import BinaryIO, Protocol

GZIP_MAGIC = b"\x1f\x8b"


class Peekable(Protocol):
    def peek(self, size: int = ...) -> bytes: ...


class PeekableStream(io.RawIOBase):
    """Raw stream that can look ahead a fixed number of bytes.

    Unlike ``io.BufferedReader.peek``, ``peek(n)`` keeps reading until it holds
    ``n`` bytes or the wrapped stream is exhausted. Peeked bytes are replayed by
    subsequent reads.

    Closing a PeekableStream does not close the wrapped stream; its owner does.
    """

    def __init__(self, stream: BinaryIO):
        super().__init__()
        self._stream = stream
        self._pending = b""

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    @property
    def pending(self) -> int:
        """Number of peeked bytes not yet handed out."""
        return len(self._pending)

    def readable(self) -> bool:
        return True

    def _read_some(self, size: int) -> bytes:
        # read1 returns what a buffered stream already has instead of
        # waiting for size bytes
        read1 = getattr(self._stream, "read1", None)
        if read1 is not None:
            return read1(size)
        return self._stream.read(size)

    def peek(self, size: int = 1) -> bytes:
        while len(self._pending) < size:
            chunk = self._read_some(size - len(self._pending))
            if not chunk:
                break
            self._pending += chunk
        return self._pending[:size]

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file")
        if self._pending:
            n = min(len(buffer), len(self._pending))
            buffer[:n] = self._pending[:n]
            self._pending = self._pending[n:]
            return n
        readinto1 = getattr(self._stream, "readinto1", None)
        if readinto1 is not None:
            return readinto1(buffer) or 0
        if not hasattr(self._stream, "read1"):
            readinto = getattr(self._stream, "readinto", None)
            if readinto is not None:
                return readinto(buffer) or 0
        chunk = self._read_some(len(buffer))
        if not chunk:
            return 0
        n = len(chunk)
        buffer[:n] = chunk
        return n


def check_bytes(stream: Peekable, signature: bytes) -> bool:
    """Report whether the stream starts with ``signature``.

    Args:
        stream: Any object with a non-consuming ``peek(n)``
        signature: Expected leading bytes

    Returns:
        True on an exact match. Empty input or input shorter than the
        signature is not a match.

    Raises:
        OSError: If the underlying stream fails while peeking
    """
    head = stream.peek(len(signature))[: len(signature)]
    return head == signature


def is_gzip(stream: Peekable) -> bool:
    """Report whether the stream starts with the gzip magic bytes."""
    return check_bytes(stream, GZIP_MAGIC)


__all__ = ["GZIP_MAGIC", "Peekable", "PeekableStream", "check_bytes", "is_gzip"]
