"""Content-addressed object storage: write-once blobs keyed by SHA-256.

Layout under the workspace root::

    objects/<sha256>.json    one canonical JSON value
    objects/<sha256>.jsonl   one JSON value per line

References are ``json:<sha256>`` or ``jsonl:<sha256>``.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from splice.core.canonical import (
    StreamingHasher,
    canonical_dumps,
    hash_string,
    iter_decoded_lines,
    jsonl_line,
)
from splice.core.errors import InvalidRefError, NotFoundError, atomic_write
from splice.core.models import ContentItem, Conversation, Thread

logger = logging.getLogger(__name__)

REF_KINDS = ("json", "jsonl")
_HASH_RE = re.compile(r"[0-9a-f]{64}")


@dataclass(frozen=True)
class ObjectRef:
    """Parsed form of a ``<kind>:<hash>`` reference."""

    kind: str
    hash: str

    def __str__(self) -> str:
        return make_ref(self.kind, self.hash)


def make_ref(kind: str, digest: str) -> str:
    return f"{kind}:{digest}"


def parse_ref(ref: str) -> ObjectRef:
    """Split a reference string, rejecting unknown kinds and non-hex hashes."""
    if not isinstance(ref, str) or ref.count(":") != 1:
        msg = f"Invalid ref: {ref!r}"
        raise InvalidRefError(msg)
    kind, digest = ref.split(":")
    if kind not in REF_KINDS or not _HASH_RE.fullmatch(digest):
        msg = f"Invalid ref: {ref!r}"
        raise InvalidRefError(msg)
    return ObjectRef(kind=kind, hash=digest)


class JSONLSequence:
    """Lazy, restartable view over a stored JSONL blob.

    Each iteration re-opens the file and parses one line at a time.
    Blank lines are ignored; lines that are not valid UTF-8 or not valid
    JSON are logged and skipped.
    """

    def __init__(self, path: Path, ref: str):
        self.path = path
        self.ref = ref

    def __iter__(self) -> Iterator[Any]:
        if not self.path.exists():
            msg = f"Object not found: {self.ref}"
            raise NotFoundError(msg)
        for lineno, line in iter_decoded_lines(self.path, label=self.ref):
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("%s line %d: skipping malformed JSON (%s)", self.ref, lineno, e)

    def __repr__(self) -> str:
        return f"JSONLSequence({self.ref!r})"


class ObjectStore:
    """Filesystem-backed, content-addressed blob storage.

    Blobs are never overwritten: writing a value whose hash already
    exists returns the existing reference.
    """

    def __init__(self, workspace_dir: str | Path):
        self.root = Path(workspace_dir).expanduser().resolve()
        self.objects_dir = self.root / "objects"
        self.objects_dir.mkdir(parents=True, exist_ok=True)

    def object_path(self, ref: str | ObjectRef) -> Path:
        parsed = ref if isinstance(ref, ObjectRef) else parse_ref(ref)
        return self.objects_dir / f"{parsed.hash}.{parsed.kind}"

    def exists(self, ref: str) -> bool:
        return self.object_path(ref).exists()

    def put_object(self, value: Any) -> str:
        """Store one JSON value under the hash of its canonical encoding."""
        encoded = canonical_dumps(value)
        ref = make_ref("json", hash_string(encoded))
        path = self.object_path(ref)
        if path.exists():
            logger.debug("put_object: reuse %s", ref)
            return ref
        atomic_write(path, encoded)
        logger.info("put_object: wrote %s", ref)
        return ref

    def put_jsonl(self, items: Iterable[Any]) -> str:
        """Stream items to a JSONL blob, hashing the exact bytes as they are written.

        The blob is written to a temp file and renamed into place once the
        hash is known. If that hash is already stored the temp file is
        discarded.
        """
        fd, tmp = tempfile.mkstemp(dir=self.objects_dir, prefix=".tmp-", suffix=".jsonl")
        hasher = StreamingHasher()
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                for item in items:
                    line = jsonl_line(item)
                    f.write(line)
                    hasher.update(line)
                f.flush()
                os.fsync(f.fileno())
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

        ref = make_ref("jsonl", hasher.hexdigest())
        final = self.object_path(ref)
        if final.exists():
            Path(tmp).unlink(missing_ok=True)
            logger.debug("put_jsonl: reuse %s", ref)
            return ref
        os.replace(tmp, final)
        logger.info("put_jsonl: wrote %s (%d lines)", ref, hasher.lines)
        return ref

    def get_object(self, ref: str) -> Any:
        parsed = parse_ref(ref)
        if parsed.kind != "json":
            msg = f"get_object expects a json ref, got {ref}"
            raise InvalidRefError(msg)
        path = self.object_path(parsed)
        if not path.exists():
            msg = f"Object not found: {ref}"
            raise NotFoundError(msg)
        return json.loads(path.read_text(encoding="utf-8"))

    def get_jsonl(self, ref: str) -> JSONLSequence:
        parsed = parse_ref(ref)
        if parsed.kind != "jsonl":
            msg = f"get_jsonl expects a jsonl ref, got {ref}"
            raise InvalidRefError(msg)
        path = self.object_path(parsed)
        if not path.exists():
            msg = f"Object not found: {ref}"
            raise NotFoundError(msg)
        return JSONLSequence(path, ref)


# -- Typed helpers for common refs --


def store_items_jsonl(store: ObjectStore, items: Iterable[ContentItem]) -> str:
    return store.put_jsonl(items)


def store_threads_json(store: ObjectStore, threads: list[Thread]) -> str:
    return store.put_object([t.to_dict() for t in threads])


def store_conversations_json(store: ObjectStore, conversations: list[Conversation]) -> str:
    return store.put_object([[it.to_dict() for it in conv] for conv in conversations])


def load_items(store: ObjectStore, ref: str) -> list[ContentItem]:
    """Read a stored items JSONL blob back into ContentItems."""
    return [ContentItem.from_dict(d) for d in store.get_jsonl(ref) if isinstance(d, dict)]


def load_threads(store: ObjectStore, ref: str) -> list[Thread]:
    return [Thread.from_dict(d) for d in store.get_object(ref)]


def load_conversations(store: ObjectStore, ref: str) -> list[Conversation]:
    return [[ContentItem.from_dict(d) for d in conv] for conv in store.get_object(ref)]
