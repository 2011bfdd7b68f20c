"""Reading and building decision records."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from splice.core.canonical import iter_decoded_lines
from splice.core.errors import MalformedInputError
from splice.core.models import DecisionRecord, utc_now_iso

logger = logging.getLogger(__name__)


def parse_decision_line(line: str, line_number: int | None = None) -> DecisionRecord:
    """Parse one JSONL line into a DecisionRecord."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON: {e}"
        raise MalformedInputError(msg, line_number=line_number) from e
    if not isinstance(data, dict):
        msg = f"Expected a JSON object, got {type(data).__name__}"
        raise MalformedInputError(msg, line_number=line_number)
    return DecisionRecord.from_dict(data)


def iter_decision_lines(lines: Iterable[str], label: str = "<decisions>") -> Iterator[DecisionRecord]:
    """Parse JSONL lines, skipping blank and malformed ones."""
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            yield parse_decision_line(line, lineno)
        except MalformedInputError as e:
            logger.warning("%s line %d: skipping malformed decision (%s)", label, lineno, e)


def read_decisions_jsonl(path: str | Path) -> Iterator[DecisionRecord]:
    """Yield decision records from a JSONL file; a missing file yields nothing."""
    path = Path(path)
    if not path.exists():
        logger.warning("Decisions file not found: %s", path)
        return
    for lineno, line in iter_decoded_lines(path):
        try:
            yield parse_decision_line(line, lineno)
        except MalformedInputError as e:
            logger.warning("%s line %d: skipping malformed decision (%s)", path, lineno, e)


def load_ids_file(path: str | Path) -> list[str]:
    """Load ids from a JSON array of strings or a newline-separated list."""
    path = Path(path)
    if not path.exists():
        logger.warning("Ids file not found: %s", path)
        return []
    raw = path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, list):
        return [x for x in data if isinstance(x, str)]
    return [line.strip() for line in raw.splitlines() if line.strip()]


def decisions_from_ids(
    ids: Iterable[str],
    status: str,
    ts: str | None = None,
    by: str | None = None,
    tags: list[str] | None = None,
    notes: str | None = None,
    meta: dict[str, Any] | None = None,
) -> list[DecisionRecord]:
    """Build one record per id sharing the same status and timestamp."""
    stamp = ts or utc_now_iso()
    return [
        DecisionRecord(
            id=i,
            status=status,
            tags=list(tags) if tags is not None else None,
            notes=notes,
            ts=stamp,
            by=by,
            meta=dict(meta) if meta is not None else None,
        )
        for i in ids
    ]
