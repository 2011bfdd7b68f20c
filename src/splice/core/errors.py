"""Splice error types and utilities."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write(path: Path, content: str) -> None:
    """Write content to a file atomically using temp file + rename.

    Writes to a temporary file in the same directory, fsyncs it,
    then atomically replaces the target path.
    """
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".tmp-", suffix=".tmp")
    try:
        os.write(fd, content.encode("utf-8"))
        os.fsync(fd)
        os.close(fd)
        os.replace(tmp, str(path))
    except BaseException:
        try:
            os.close(fd)
        except OSError:
            pass
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


class SpliceError(Exception):
    """Base exception for Splice."""

    pass


class CircularStructureError(SpliceError, ValueError):
    """A value passed to the canonical serializer contains itself."""

    pass


class InvalidRefError(SpliceError, ValueError):
    """An object reference is malformed or of the wrong kind."""

    pass


class NotFoundError(SpliceError, LookupError):
    """A blob, checkpoint or id does not exist."""

    pass


class MalformedInputError(SpliceError, ValueError):
    """A JSON line could not be parsed."""

    def __init__(self, message: str, line_number: int | None = None):
        super().__init__(message)
        self.line_number = line_number
