"""transopen: open files, URLs, pipes and stdin as buffered, gzip-transparent streams."""

from loguru import logger

from .config import Settings, load_settings
from .errors import (
    DecompressionError,
    HTTPStatusError,
    StdinNotDetectedError,
    TransopenError,
    UnknownUserError,
)
from .probe import has_program
from .reader import Reader, buf, ropen
from .sniff import GZIP_MAGIC, PeekableStream, check_bytes, is_gzip
from .sources import exists, expand_user, is_stdin, open_source
from .writer import Writer, wopen

# Applications opt in with logger.enable("transopen")
logger.disable("transopen")

__all__ = [
    "__version__",
    "DecompressionError",
    "GZIP_MAGIC",
    "HTTPStatusError",
    "PeekableStream",
    "Reader",
    "Settings",
    "StdinNotDetectedError",
    "UnknownUserError",
    "Writer",
    "TransopenError",
    "buf",
    "check_bytes",
    "exists",
    "expand_user",
    "has_program",
    "is_gzip",
    "is_stdin",
    "load_settings",
    "open_source",
    "ropen",
    "wopen",
]

__version__ = "0.1.0"
