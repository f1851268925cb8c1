"""Utilities for opening tree exports and reading them line by line."""

import gzip
import logging
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO, Tuple

from .config import Settings
from .exceptions import DecompressionError, SchemaError

logger = logging.getLogger(__name__)


def is_gzip_path(file_path: Path | str) -> bool:
    """Return True when the file name selects gzip decompression."""
    return Path(file_path).suffix == Settings.GZIP_SUFFIX


@contextmanager
def open_jsonl(file_path: Path | str) -> Iterator[TextIO]:
    """
    Open a JSONL tree export for reading as text.

    Files whose name ends in ``.gz`` are decompressed on the fly. The handle
    (and the decompressor wrapping it) is closed when the block exits, also
    when it exits through an exception.

    Args:
        file_path: Path to the ``.jsonl`` or ``.jsonl.gz`` file.

    Yields:
        A text stream over the decompressed content.

    Raises:
        OSError: If the file cannot be opened.
    """
    file_path = Path(file_path)
    if is_gzip_path(file_path):
        logger.debug(f"Opening {file_path} with gzip decompression")
        stream = gzip.open(file_path, "rt", encoding=Settings.ENCODING)
    else:
        logger.debug(f"Opening {file_path}")
        stream = open(file_path, "rt", encoding=Settings.ENCODING)

    with stream:
        yield stream


def iter_lines(stream: TextIO) -> Iterator[Tuple[int, str]]:
    """
    Yield ``(line_number, text)`` pairs from an open stream.

    Line numbers are 1-based and the trailing newline is stripped. The
    generator is forward-only: it consumes the stream as it goes.

    Raises:
        DecompressionError: If the gzip framing or deflate data is invalid.
        SchemaError: If a line is not valid UTF-8.
    """
    line_number = 0
    try:
        for line_number, line in enumerate(stream, 1):
            yield line_number, line.rstrip("\n")
    except (gzip.BadGzipFile, EOFError, zlib.error) as e:
        raise DecompressionError(f"Invalid gzip data: {e}") from e
    except UnicodeDecodeError as e:
        raise SchemaError("line is not valid UTF-8", line_number=line_number + 1) from e
