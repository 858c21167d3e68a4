"""Exceptions raised by transopen.

Underlying I/O failures (``OSError``, ``gzip.BadGzipFile``, ``EOFError`` and
``requests`` exceptions) propagate unchanged; the classes here cover the
failures transopen detects itself.
"""

from __future__ import annotations


class TransopenError(Exception):
    """Base class for errors raised by transopen."""

    pass


class StdinNotDetectedError(TransopenError):
    """Reading ``-`` was requested but nothing is piped into stdin."""

    def __init__(self) -> None:
        super().__init__("stdin not detected")


class HTTPStatusError(TransopenError):
    """An HTTP source answered with a status other than 200."""

    def __init__(self, url: str, status_code: int, reason: str | None) -> None:
        self.url = url
        self.status_code = status_code
        self.reason = reason or ""
        status = f"{status_code} {self.reason}".strip()
        super().__init__(f"http error downloading {url}. status: {status}")


class UnknownUserError(TransopenError, LookupError):
    """``~name`` refers to an account that does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"cannot expand user in path: {path}")


class DecompressionError(TransopenError, OSError):
    """The external gzip decoder exited unsuccessfully."""

    pass


__all__ = [
    "DecompressionError",
    "HTTPStatusError",
    "StdinNotDetectedError",
    "UnknownUserError",
    "TransopenError",
]
