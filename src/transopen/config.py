"""Runtime settings for transopen, read from ``TRANSOPEN_*`` environment variables."""

from __future__ import annotations

import mmap
import os
from collections.abc import Mapping
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

#: Twice the OS page size amortizes system calls for both reads and writes.
DEFAULT_BUFFER_SIZE = mmap.PAGESIZE * 2

ENV_PREFIX = "TRANSOPEN_"

_ENV_FIELDS = {
    "BUFFER_SIZE": "buffer_size",
    "USE_ZCAT": "use_zcat",
    "ZCAT": "zcat_program",
    "COMPRESS_LEVEL": "compress_level",
    "HTTP_TIMEOUT": "http_timeout",
    "LOG_LEVEL": "log_level",
}

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseModel):
    """Buffering, compression and transport options.

    Attributes:
        buffer_size: Size in bytes of each buffering layer
        use_zcat: Decode gzip input with an external ``zcat`` when available
        zcat_program: Name or path of the external decoder
        compress_level: gzip level used for ``.gz`` destinations
        http_timeout: Connect/read timeout for HTTP sources, in seconds
        log_level: Level of the CLI's stderr log sink
    """

    model_config = ConfigDict(frozen=True)

    buffer_size: int = Field(default=DEFAULT_BUFFER_SIZE, gt=0)
    use_zcat: bool = True
    zcat_program: str = Field(default="zcat", min_length=1)
    compress_level: int = Field(default=6, ge=0, le=9)
    http_timeout: Optional[float] = Field(default=30.0, gt=0)
    log_level: LogLevel = "WARNING"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    Reads fresh on every call so tests and long-running callers see changes.

    Args:
        environ: Mapping to read instead of ``os.environ``

    Returns:
        Validated Settings

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    env = os.environ if environ is None else environ
    values = {}
    for suffix, field_name in _ENV_FIELDS.items():
        raw = env.get(ENV_PREFIX + suffix)
        if raw is None or raw == "":
            continue
        values[field_name] = raw.upper() if field_name == "log_level" else raw
    return Settings.model_validate(values)


__all__ = ["DEFAULT_BUFFER_SIZE", "Settings", "load_settings"]
