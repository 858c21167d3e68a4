"""Resolve a source name into a raw byte stream.

Recognized names:
- ``-``: standard input, only when something is piped or redirected into it
- ``http://...`` / ``https://...``: the response body
- ``|command arg ...``: the command's stdout (whitespace split, no quoting)
- anything else: a local path, after ``~`` / ``~user`` expansion
"""

from __future__ import annotations

import io
import os
import stat
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, BinaryIO, Optional

import requests
from loguru import logger

from .config import Settings, load_settings
from .errors import HTTPStatusError, StdinNotDetectedError, UnknownUserError
from .process_utils import popen_with_validation, split_command


@dataclass(frozen=True)
class Source:
    """A raw stream plus whether closing it is the reader's job."""

    stream: BinaryIO
    owned: bool = True


def is_url(name: str) -> bool:
    return name.startswith(("http://", "https://"))


def is_stdin() -> bool:
    """Report whether stdin is piped or redirected rather than a terminal."""
    stream = sys.stdin
    if stream is None:
        return False
    try:
        mode = os.fstat(stream.fileno()).st_mode
    except (OSError, ValueError):
        # In-memory replacement (no descriptor)
        return not stream.isatty()
    return not stat.S_ISCHR(mode)


def expand_user(path: str) -> str:
    """Expand a leading ``~`` or ``~user``.

    Raises:
        UnknownUserError: If the named user does not exist
    """
    if not path.startswith("~"):
        return path
    expanded = os.path.expanduser(path)
    if expanded.startswith("~"):
        raise UnknownUserError(path)
    return expanded


def exists(path: str) -> bool:
    """Report whether a local path exists, expanding ``~`` first."""
    try:
        return os.path.exists(expand_user(path))
    except UnknownUserError:
        return False


class ProcessStream(io.RawIOBase):
    """Stdout of a child process; closing it also reaps the child."""

    def __init__(self, argv: list[str]):
        super().__init__()
        self._argv = argv
        self._proc = popen_with_validation(argv, stdout=subprocess.PIPE, bufsize=0)
        logger.debug(f"started {argv[0]} (pid {self._proc.pid})")

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode

    def readable(self) -> bool:
        return True

    def fileno(self) -> int:
        return self._proc.stdout.fileno()

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file")
        n = self._proc.stdout.readinto(buffer) or 0
        if not n and len(buffer):
            # stdout is exhausted; collect the exit status
            self._proc.wait()
        return n

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._proc.stdout.close()
            terminated = self._proc.poll() is None
            if terminated:
                self._proc.terminate()
            returncode = self._proc.wait()
            if returncode != 0 and not terminated:
                logger.warning(f"{self._argv[0]} exited with status {returncode}")
        finally:
            super().close()


def open_url(url: str, settings: Settings) -> Any:
    """Fetch ``url`` and return its undecoded body stream.

    Raises:
        HTTPStatusError: If the response status is not 200
        requests.RequestException: On connection failures and timeouts
    """
    logger.debug(f"GET {url}")
    response = requests.get(url, stream=True, timeout=settings.http_timeout)
    if response.status_code != 200:
        response.close()
        raise HTTPStatusError(url, response.status_code, response.reason)
    return response.raw


def open_process(command: str) -> ProcessStream:
    argv = split_command(command)
    return ProcessStream(argv)


def open_source(name: str, settings: Optional[Settings] = None) -> Source:
    """Resolve ``name`` to a raw byte stream.

    Raises:
        StdinNotDetectedError: ``-`` given while stdin is a terminal
        HTTPStatusError: URL answered with a non-200 status
        UnknownUserError: ``~name`` names no account
        OSError: File could not be opened or command could not start
    """
    if name == "-":
        if not is_stdin():
            raise StdinNotDetectedError()
        return Source(getattr(sys.stdin, "buffer", sys.stdin), owned=False)
    if name.startswith("|"):
        return Source(open_process(name[1:]))
    if is_url(name):
        return Source(open_url(name, settings or load_settings()))
    return Source(open(expand_user(name), "rb", buffering=0))


__all__ = [
    "ProcessStream",
    "Source",
    "exists",
    "expand_user",
    "is_stdin",
    "is_url",
    "open_process",
    "open_source",
    "open_url",
]
