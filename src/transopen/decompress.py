"""Gzip decoders: in-process ``gzip`` or an external ``zcat`` pipe.

Both variants are readable binary streams with ``close()``; callers pick one
through :func:`open_gzip` and never need to know which they got.
"""

from __future__ import annotations

import gzip
import io
import os
import select
import subprocess
import threading
from typing import BinaryIO, Callable, Optional

from loguru import logger

from .config import Settings
from .errors import DecompressionError
from .probe import has_program
from .process_utils import popen_with_validation, reap
from .sniff import PeekableStream

CHUNK_SIZE = 64 * 1024
# How often an idle feeder checks whether its reader was closed
POLL_INTERVAL = 0.1
FEEDER_JOIN_TIMEOUT = 1.0


def _selectable_fileno(source) -> Optional[int]:
    """Descriptor the feeder can wait on, or None.

    Only unbuffered streams qualify: a buffered stream may hold data that
    ``select`` cannot see.
    """
    stream = source.stream if isinstance(source, PeekableStream) else source
    if os.name != "posix" or not isinstance(stream, io.RawIOBase):
        return None
    try:
        return stream.fileno()
    except (OSError, ValueError):
        return None


def _write_all(target, data: bytes) -> None:
    view = memoryview(data)
    while view:
        view = view[target.write(view) :]


class ZcatReader(io.RawIOBase):
    """Decode gzip by piping the compressed stream through ``zcat``.

    A feeder thread copies ``source`` into the child's stdin while the caller
    reads decoded bytes from its stdout. The pipe between them supplies the
    backpressure in both directions.

    ``close()`` stops the feeder and waits a bounded time for it. A feeder
    still blocked reading a buffered source at that point keeps the source
    until its read returns; use :meth:`after_feed` to release the source
    only once the feeder is done with it.
    """

    def __init__(self, source: BinaryIO, program: str = "zcat"):
        super().__init__()
        self._source = source
        self._program = program
        self._error: Optional[BaseException] = None
        self._done = False
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._fed = False
        self._on_fed: Optional[Callable[[], None]] = None
        self._poll_fd = _selectable_fileno(source)
        self._proc = popen_with_validation(
            [program],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            bufsize=0,
        )
        logger.debug(f"started {program} (pid {self._proc.pid})")
        self._feeder = threading.Thread(
            target=self._feed, name=f"{program}-feeder", daemon=True
        )
        self._feeder.start()

    def _wait_readable(self) -> bool:
        """Block until the source has data to read; False once closed."""
        if self._poll_fd is None or getattr(self._source, "pending", 0):
            return not self._stop.is_set()
        while not self._stop.is_set():
            ready, _, _ = select.select([self._poll_fd], [], [], POLL_INTERVAL)
            if ready:
                return True
        return False

    def _feed(self) -> None:
        stdin = self._proc.stdin
        try:
            while self._wait_readable():
                chunk = self._source.read(CHUNK_SIZE)
                if not chunk or self._stop.is_set():
                    break
                _write_all(stdin, chunk)
        except BrokenPipeError:
            # Reader closed early or the decoder died; the exit status says which
            pass
        except (OSError, ValueError) as e:
            if not self._stop.is_set():
                self._error = e
        finally:
            try:
                stdin.close()
            except BrokenPipeError:
                pass
            with self._lock:
                self._fed = True
                on_fed, self._on_fed = self._on_fed, None
            if on_fed is not None:
                try:
                    on_fed()
                except (OSError, ValueError) as e:
                    logger.warning(f"releasing {self._program} input failed: {e}")

    def after_feed(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` once the feeder no longer touches the source.

        Runs it right away when the feeder has already stopped, otherwise on
        the feeder thread as it exits.
        """
        with self._lock:
            if not self._fed:
                self._on_fed = callback
                return
        callback()

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file")
        if self._done:
            return 0
        n = self._proc.stdout.readinto(buffer)
        if n:
            return n
        self._finish()
        return 0

    def _finish(self) -> None:
        self._done = True
        stderr = self._proc.stderr.read()
        returncode = self._proc.wait()
        if returncode == 0:
            self._feeder.join()
        else:
            # zcat gave up; the feeder may be stuck on a quiet source
            self._stop.set()
            self._feeder.join(FEEDER_JOIN_TIMEOUT)
        if self._error is not None:
            raise self._error
        if returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            msg = f"{self._program} exited with status {returncode}"
            if detail:
                msg = f"{msg}: {detail}"
            raise DecompressionError(msg)

    def close(self) -> None:
        if self.closed:
            return
        self._stop.set()
        try:
            self._proc.stdout.close()
            self._proc.stderr.close()
            reap(self._proc)
            self._feeder.join(FEEDER_JOIN_TIMEOUT)
        finally:
            super().close()


def open_gzip(source: BinaryIO, settings: Settings) -> BinaryIO:
    """Return a decoder reading gzip data from ``source``.

    Uses ``zcat`` when enabled and the probe finds it, else ``gzip.GzipFile``.
    Once ``zcat`` is chosen a failure to start it propagates.
    """
    if settings.use_zcat and has_program(settings.zcat_program):
        logger.debug(f"decoding gzip with {settings.zcat_program}")
        return ZcatReader(source, settings.zcat_program)
    logger.debug("decoding gzip in-process")
    return gzip.GzipFile(fileobj=source, mode="rb")


__all__ = ["CHUNK_SIZE", "ZcatReader", "open_gzip"]
