"""Capability probe for external helper programs."""

from __future__ import annotations

import functools
import subprocess

from loguru import logger

from .process_utils import popen_with_validation, reap


@functools.cache
def has_program(program: str) -> bool:
    """Report whether ``program`` can be started in this environment.

    Starts the program with no arguments and kills it straight away. The
    answer is memoized for the life of the process, so a tool installed or
    removed mid-run goes unnoticed. Two threads racing on first use may both
    probe; they compute the same answer.
    """
    try:
        proc = popen_with_validation(
            [program],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        logger.debug(f"{program} unavailable: {e}")
        return False
    reap(proc)
    logger.debug(f"{program} available")
    return True


__all__ = ["has_program"]
