"""Transparent buffered writer; ``.gz`` destinations are gzip-compressed."""

from __future__ import annotations

import gzip
import io
import sys
from typing import BinaryIO, Iterable, Optional

from loguru import logger

from .config import Settings, load_settings
from .sources import expand_user


class Writer:
    """Buffered writer with an optional gzip stage before the destination.

    Chain: buffer -> compressor (optional) -> destination handle.
    ``flush()`` walks it front to back; ``close()`` flushes, finishes the
    compressor, then closes the handle. Nothing happens on garbage collection,
    so callers must close explicitly.
    """

    def __init__(
        self,
        handle: BinaryIO,
        settings: Optional[Settings] = None,
        *,
        compress: bool = False,
        close_handle: bool = True,
    ):
        settings = settings or load_settings()
        self._handle = handle
        self._close_handle = close_handle
        self._gz: Optional[gzip.GzipFile] = None
        self._closed = False
        target: BinaryIO = handle
        if compress:
            self._gz = gzip.GzipFile(
                fileobj=handle, mode="wb", compresslevel=settings.compress_level
            )
            target = self._gz
        self._buffer = io.BufferedWriter(target, settings.buffer_size)

    @property
    def compressed(self) -> bool:
        return self._gz is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_closed(self) -> None:
        if self._closed:
            msg = "I/O operation on closed file"
            raise ValueError(msg)

    def write(self, data: bytes) -> int:
        """Write bytes; returns the number of bytes accepted."""
        self._check_closed()
        return self._buffer.write(data)

    def writelines(self, lines: Iterable[bytes]) -> None:
        self._check_closed()
        self._buffer.writelines(lines)

    def flush(self) -> None:
        """Push buffered bytes through the compressor to the destination."""
        self._check_closed()
        self._buffer.flush()
        if self._gz is not None:
            self._gz.flush()
        self._handle.flush()

    def __enter__(self) -> Writer:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Flush, finish the gzip stream, then close the destination."""
        if self._closed:
            return
        try:
            self.flush()
            # Detach so the buffer never closes what it wraps
            self._buffer.detach()
            if self._gz is not None:
                self._gz.close()
        finally:
            self._closed = True
            if self._close_handle:
                self._handle.close()


def wopen(name: str, settings: Optional[Settings] = None) -> Writer:
    """Open ``name`` for buffered writing.

    ``-`` writes to stdout (left open on close). Any other name is created or
    truncated; a name ending in ``.gz`` is gzip-compressed.

    Raises:
        OSError: If the file cannot be created
    """
    settings = settings or load_settings()
    compress = name.endswith(".gz")
    if name == "-":
        handle = getattr(sys.stdout, "buffer", sys.stdout)
        close_handle = False
    else:
        handle = open(expand_user(name), "wb", buffering=0)
        close_handle = True
    try:
        writer = Writer(
            handle, settings, compress=compress, close_handle=close_handle
        )
    except BaseException:
        if close_handle:
            handle.close()
        raise
    logger.debug(
        f"opened {name!r} for writing ({'gzip' if compress else 'plain'})"
    )
    return writer


__all__ = ["Writer", "wopen"]
