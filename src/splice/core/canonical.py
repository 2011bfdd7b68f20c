"""Canonical serialization: byte-stable JSON encoding and SHA-256 fingerprints."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from splice.core.errors import CircularStructureError

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    """Unwrap model objects into JSON-ready values."""
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return value


def canonical_dumps(value: Any) -> str:
    """Serialize ``value`` to JSON with object keys sorted recursively.

    Arrays keep their order. Tuples are treated as arrays. Objects that
    expose ``to_dict()`` are serialized through it. A value that contains
    itself raises CircularStructureError instead of recursing forever.
    """
    active: set[int] = set()

    def encode(v: Any) -> str:
        v = _plain(v)
        if v is None or isinstance(v, (str, bool, int, float)):
            return json.dumps(v, ensure_ascii=False)

        marker = id(v)
        if marker in active:
            msg = "Converting circular structure to JSON"
            raise CircularStructureError(msg)
        active.add(marker)
        try:
            if isinstance(v, (list, tuple)):
                return "[" + ",".join(encode(x) for x in v) + "]"
            if isinstance(v, dict):
                body = ",".join(
                    json.dumps(str(k), ensure_ascii=False) + ":" + encode(v[k])
                    for k in sorted(v, key=str)
                )
                return "{" + body + "}"
            msg = f"Object of type {type(v).__name__} is not JSON serializable"
            raise TypeError(msg)
        finally:
            active.discard(marker)

    return encode(value)


def hash_string(s: str) -> str:
    """SHA-256 hex digest of a UTF-8 string."""
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def fingerprint_value(value: Any) -> str:
    """Content fingerprint: SHA-256 of the canonical encoding.

    Logically equal values (same keys and values, any insertion order)
    always produce the same fingerprint.
    """
    return hash_string(canonical_dumps(value))


def jsonl_line(item: Any) -> str:
    """Encode one JSONL line exactly as it is written and hashed.

    Keys keep their insertion order; only the whole-object path is
    canonicalized.
    """
    try:
        return json.dumps(_plain(item), ensure_ascii=False, separators=(",", ":")) + "\n"
    except ValueError as e:
        if "Circular reference" not in str(e):
            raise
        msg = "Converting circular structure to JSON"
        raise CircularStructureError(msg) from e


def iter_decoded_lines(path: str | Path, label: str | None = None) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, text)`` for each non-blank UTF-8 line of a file.

    Lines are decoded one at a time; a line with invalid UTF-8 is logged
    and skipped.
    """
    label = label or str(path)
    with open(path, "rb") as f:
        for lineno, raw in enumerate(f, start=1):
            try:
                line = raw.decode("utf-8").strip()
            except UnicodeDecodeError as e:
                logger.warning("%s line %d: skipping undecodable line (%s)", label, lineno, e.reason)
                continue
            if line:
                yield lineno, line


class StreamingHasher:
    """Incremental SHA-256 over emitted JSONL lines."""

    def __init__(self):
        self._h = hashlib.sha256()
        self.lines = 0

    def update(self, line: str) -> None:
        self._h.update(line.encode("utf-8"))
        self.lines += 1

    def hexdigest(self) -> str:
        return self._h.hexdigest()
