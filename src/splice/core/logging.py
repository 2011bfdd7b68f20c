"""Logging setup and verbosity levels for Splice runs."""

from __future__ import annotations

import logging
from enum import IntEnum

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class Verbosity(IntEnum):
    """Verbosity levels for console output."""

    QUIET = 0     # errors only
    DEFAULT = 1   # + run summary, checkpoint ids
    VERBOSE = 2   # + store writes, dedup reuse, skipped lines


_LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_VERBOSITY_LEVELS = {
    Verbosity.QUIET: logging.ERROR,
    Verbosity.DEFAULT: logging.INFO,
    Verbosity.VERBOSE: logging.DEBUG,
}


def resolve_level(level: str | int | Verbosity) -> int:
    """Map a level name, Verbosity or stdlib level number to a logging level."""
    if isinstance(level, Verbosity):
        return _VERBOSITY_LEVELS[level]
    if isinstance(level, int):
        return level
    try:
        return _LEVEL_NAMES[level.strip().lower()]
    except KeyError:
        msg = f"Unknown log level: {level!r} (expected one of debug, info, warn, error)"
        raise ValueError(msg) from None


def pick_level(
    log_level: str | None = None,
    quiet: bool = False,
    verbose: bool = False,
    default: str = "info",
) -> str | Verbosity:
    """Resolve CLI verbosity flags; an explicit --log-level wins over shorthands."""
    if log_level:
        return log_level
    if quiet:
        return Verbosity.QUIET
    if verbose:
        return Verbosity.VERBOSE
    return default


def setup_logging(level: str | int | Verbosity = "info") -> None:
    """Configure root logging for a Splice process."""
    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=True,
    )
