"""Subprocess helpers shared by the pipe source and the external decoder."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Sequence
from typing import Any

CommandArg = str | os.PathLike[str]


def _argv(cmd: Sequence[CommandArg]) -> list[str]:
    """Turn ``cmd`` into a list of non-blank strings for ``Popen``.

    Raises:
        ValueError: If ``cmd`` is empty or holds a blank argument
        TypeError: If an argument is neither ``str`` nor path-like
    """
    if not cmd:
        raise ValueError("no program given")
    argv = []
    for arg in cmd:
        if not isinstance(arg, (str, os.PathLike)):
            raise TypeError(f"bad argument {arg!r}: expected str or path")
        arg = os.fspath(arg)
        if not arg.strip():
            raise ValueError(f"blank argument in {list(cmd)!r}")
        argv.append(arg)
    return argv


def split_command(command: str) -> list[str]:
    """Split a ``|cmd arg ...`` source on whitespace (no shell quoting)."""
    return command.split()


def popen_with_validation(
    cmd: Sequence[CommandArg], **kwargs: Any
) -> subprocess.Popen[Any]:
    """Start ``cmd`` without a shell once its argv checks out.

    Keyword arguments go to ``subprocess.Popen`` unchanged. A missing
    program raises ``FileNotFoundError`` from ``Popen`` itself.
    """
    return subprocess.Popen(_argv(cmd), **kwargs)  # noqa: S603


def reap(proc: subprocess.Popen[Any]) -> int:
    """Terminate ``proc`` if it is still running and wait for it.

    Returns:
        The child's exit status (negative for a signal on POSIX)
    """
    if proc.poll() is None:
        proc.kill()
    return proc.wait()


__all__ = ["popen_with_validation", "reap", "split_command"]
