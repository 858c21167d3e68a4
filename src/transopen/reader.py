"""Transparent buffered reader.

``ropen`` opens a file, URL, process pipe or stdin; ``buf`` wraps a stream the
caller already has. Either way gzip input is detected by its magic bytes and
decoded on the fly, so callers always read plain bytes.

Example::

    rdr = ropen("reads.fastq.gz")
    try:
        for line in rdr:
            handle(line)
    finally:
        rdr.close()
"""

from __future__ import annotations

import io
from typing import BinaryIO, Iterator, Optional

from loguru import logger

from .config import Settings, load_settings
from .decompress import ZcatReader, open_gzip
from .sniff import PeekableStream, is_gzip
from .sources import open_source


class Reader:
    """Buffered reader over a raw stream, decoding gzip when present.

    Owns the raw stream, the optional decoder and the buffer in front of them.
    ``close()`` releases the decoder first and then the raw stream.
    """

    def __init__(
        self,
        raw: BinaryIO,
        settings: Optional[Settings] = None,
        *,
        close_raw: bool = True,
    ):
        settings = settings or load_settings()
        self._raw = raw
        self._close_raw = close_raw
        self._decoder: Optional[BinaryIO] = None
        self._closed = False
        try:
            peekable = PeekableStream(raw)
            self._compressed = is_gzip(peekable)
            source: BinaryIO = peekable
            if self._compressed:
                self._decoder = open_gzip(peekable, settings)
                source = self._decoder
                if not isinstance(source, io.RawIOBase):
                    # GzipFile.readinto waits for a full buffer; read1 does not
                    source = PeekableStream(source)
            self._buffer = io.BufferedReader(source, settings.buffer_size)
        except BaseException:
            self._release_raw()
            raise

    @property
    def compressed(self) -> bool:
        """True if the input was gzip and is being decoded."""
        return self._compressed

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_closed(self) -> None:
        if self._closed:
            msg = "I/O operation on closed file"
            raise ValueError(msg)

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` decoded bytes; ``b""`` at end of data."""
        self._check_closed()
        return self._buffer.read(size)

    def read1(self, size: int = -1) -> bytes:
        self._check_closed()
        return self._buffer.read1(size)

    def readinto(self, buffer) -> int:
        self._check_closed()
        return self._buffer.readinto(buffer)

    def readline(self, size: int = -1) -> bytes:
        self._check_closed()
        return self._buffer.readline(size)

    def readlines(self, hint: int = -1) -> list[bytes]:
        self._check_closed()
        return self._buffer.readlines(hint)

    def peek(self, size: int = 0) -> bytes:
        """Return buffered decoded bytes without advancing."""
        self._check_closed()
        return self._buffer.peek(size)

    def __iter__(self) -> Iterator[bytes]:
        self._check_closed()
        return iter(self._buffer)

    def __enter__(self) -> Reader:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the decoder (if any), then the raw stream.

        With ``zcat`` the raw stream is released once the feeder thread lets
        go of it, which for a stalled producer is after ``close()`` returns.
        """
        if self._closed:
            return
        self._closed = True
        try:
            if self._decoder is not None:
                self._decoder.close()
        finally:
            if isinstance(self._decoder, ZcatReader):
                self._decoder.after_feed(self._release_raw)
            else:
                self._release_raw()

    def _release_raw(self) -> None:
        if not self._close_raw:
            return
        close = getattr(self._raw, "close", None)
        if callable(close):
            close()


def buf(
    raw: BinaryIO, settings: Optional[Settings] = None, *, close_raw: bool = True
) -> Reader:
    """Wrap an open byte stream in a transparent Reader."""
    return Reader(raw, settings, close_raw=close_raw)


def ropen(name: str, settings: Optional[Settings] = None) -> Reader:
    """Open ``name`` for buffered, gzip-transparent reading.

    Args:
        name: ``-`` for stdin, an http(s) URL, ``|command args`` for a
            process's stdout, or a local path (``~`` is expanded)
        settings: Options; read from the environment when omitted

    Returns:
        Reader positioned at the first decoded byte

    Raises:
        StdinNotDetectedError: ``-`` given while stdin is a terminal
        HTTPStatusError: URL answered with a non-200 status
        OSError: File or process could not be opened
    """
    settings = settings or load_settings()
    source = open_source(name, settings)
    reader = Reader(source.stream, settings, close_raw=source.owned)
    logger.debug(
        f"opened {name!r} for reading ({'gzip' if reader.compressed else 'plain'})"
    )
    return reader


__all__ = ["Reader", "buf", "ropen"]
