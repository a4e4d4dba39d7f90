# src/efficacy/storage.py

"""
Whole-file reads and writes for the data directory.

Writes go to a temporary sibling and are moved over the target with
os.replace(), so a crash mid-write leaves either the old or the new file,
never a truncated one. OSError is re-raised as FilesystemError.
"""

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path

from .core.errors import FilesystemError, SerializationError

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"


def read_text(path: Path) -> str:
    """Read a whole file as UTF-8. Undecodable bytes are a malformed record, not an I/O failure."""
    try:
        return path.read_text("utf-8")
    except UnicodeDecodeError as e:
        raise SerializationError(f"not valid UTF-8 (byte {e.start})", path) from e
    except OSError as e:
        raise FilesystemError("read", path, e) from e


def write_text_atomic(path: Path, text: str) -> None:
    tmp = path.with_name(path.name + TMP_SUFFIX)
    try:
        tmp.write_text(text, "utf-8")
        os.replace(tmp, path)
    except OSError as e:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise FilesystemError("write", path, e) from e
    logger.debug("Wrote %s (%d bytes)", path, len(text))


def create_file(path: Path, text: str = "") -> None:
    """Create a new file; an existing file at `path` is an error, never clobbered."""
    try:
        with path.open("x", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise FilesystemError("create", path, e) from e
    logger.debug("Created %s", path)


def remove_file(path: Path) -> None:
    try:
        path.unlink()
    except OSError as e:
        raise FilesystemError("remove", path, e) from e
    logger.debug("Removed %s", path)
