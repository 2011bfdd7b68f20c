"""Core data models for Splice.

Attributes are snake_case; ``to_dict``/``from_dict`` use the camelCase
keys of the on-disk JSON format so workspaces written by other tools
stay readable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

SCHEMA_VERSION = "0.1.0"

# Source tags for posts written by the archive owner.
SELF_POST_SOURCES = frozenset({"twitter:tweet", "bluesky:post"})
# Parent posts fetched only to give context to replies.
FETCHED_CONTEXT_SOURCE = "bluesky:fetched"


@dataclass
class MediaAttachment:
    """A photo or video attached to a content item."""

    id: str
    content_type: str = "unknown"  # "photo", "video", "unknown"
    abs_path: str | None = None
    url: str | None = None
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "contentType": self.content_type}
        if self.abs_path is not None:
            data["absPath"] = self.abs_path
        if self.url is not None:
            data["url"] = self.url
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MediaAttachment:
        return cls(
            id=str(data.get("id", "")),
            content_type=data.get("contentType", "unknown"),
            abs_path=data.get("absPath"),
            url=data.get("url"),
            metadata=data.get("metadata"),
        )


@dataclass
class ContentItem:
    """A single normalized post, reply or like."""

    id: str
    text: str
    created_at: str  # ISO-8601
    source: str
    parent_id: str | None = None
    in_reply_to_user_id: str | None = None
    account_id: str | None = None
    media: list[MediaAttachment] = field(default_factory=list)
    raw: dict[str, Any] | None = None
    annotations: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "createdAt": self.created_at,
            "parentId": self.parent_id,
            "inReplyToUserId": self.in_reply_to_user_id,
            "accountId": self.account_id,
            "source": self.source,
        }
        if self.raw is not None:
            data["raw"] = self.raw
        if self.media:
            data["media"] = [m.to_dict() for m in self.media]
        if self.annotations is not None:
            data["annotations"] = self.annotations
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentItem:
        return cls(
            id=str(data.get("id", "")),
            text=data.get("text") or "",
            created_at=data.get("createdAt", ""),
            source=data.get("source", ""),
            parent_id=data.get("parentId"),
            in_reply_to_user_id=data.get("inReplyToUserId"),
            account_id=data.get("accountId"),
            media=[MediaAttachment.from_dict(m) for m in data.get("media") or []],
            raw=data.get("raw"),
            annotations=data.get("annotations"),
        )


@dataclass
class Thread:
    """A self-authored reply chain, ordered oldest to newest.

    The id is the id of the chain root (the oldest item).
    """

    id: str
    items: list[ContentItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "items": [it.to_dict() for it in self.items]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Thread:
        return cls(
            id=data["id"],
            items=[ContentItem.from_dict(it) for it in data.get("items", [])],
        )


# A conversation is a plain oldest-to-newest list of items of any source.
Conversation = list[ContentItem]


@dataclass
class SourceRef:
    """Freeform provenance for one ingested source."""

    kind: str
    uri: str | None = None
    cursor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind}
        if self.uri is not None:
            data["uri"] = self.uri
        if self.cursor is not None:
            data["cursor"] = self.cursor
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceRef:
        return cls(kind=data["kind"], uri=data.get("uri"), cursor=data.get("cursor"))


@dataclass
class TransformRecord:
    """One entry in a checkpoint's transform audit trail."""

    name: str
    input_ref: str
    output_ref: str
    config: dict[str, Any] = field(default_factory=dict)
    stats: dict[str, int | float] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "config": self.config,
            "inputRef": self.input_ref,
            "outputRef": self.output_ref,
        }
        if self.stats is not None:
            data["stats"] = self.stats
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransformRecord:
        return cls(
            name=data["name"],
            input_ref=data["inputRef"],
            output_ref=data["outputRef"],
            config=data.get("config") or {},
            stats=data.get("stats"),
        )


@dataclass
class CheckpointManifest:
    """Immutable record of one pipeline run's provenance."""

    items_ref: str
    id: str = ""
    created_at: str = ""
    schema_version: str = ""
    parent_id: str | None = None
    source_refs: list[SourceRef] = field(default_factory=list)
    transforms: list[TransformRecord] = field(default_factory=list)
    decisions_ref: str | None = None
    materialized: dict[str, str] | None = None  # threadsRef, conversationsRef
    notes: str | None = None

    def structural_basis(self) -> dict[str, Any]:
        """The parts of a manifest that identify what a run did."""
        return {
            "parentId": self.parent_id,
            "inputs": {"itemsRef": self.items_ref},
            "transforms": [t.to_dict() for t in self.transforms],
            "notes": self.notes or "",
        }

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "createdAt": self.created_at,
            "schemaVersion": self.schema_version,
            "parentId": self.parent_id,
            "sourceRefs": [s.to_dict() for s in self.source_refs],
            "inputs": {"itemsRef": self.items_ref},
            "transforms": [t.to_dict() for t in self.transforms],
        }
        if self.decisions_ref is not None:
            data["decisionsRef"] = self.decisions_ref
        if self.materialized is not None:
            data["materialized"] = dict(self.materialized)
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckpointManifest:
        return cls(
            id=data.get("id", ""),
            created_at=data.get("createdAt", ""),
            schema_version=data.get("schemaVersion", ""),
            parent_id=data.get("parentId"),
            source_refs=[SourceRef.from_dict(s) for s in data.get("sourceRefs", [])],
            items_ref=(data.get("inputs") or {}).get("itemsRef", ""),
            transforms=[TransformRecord.from_dict(t) for t in data.get("transforms", [])],
            decisions_ref=data.get("decisionsRef"),
            materialized=data.get("materialized"),
            notes=data.get("notes"),
        )


@dataclass
class DecisionRecord:
    """One append-only annotation for a content item id."""

    id: str
    status: str | None = None
    tags: list[str] | None = None
    notes: str | None = None
    ts: str | None = None  # ISO-8601; missing sorts oldest
    by: str | None = None
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id}
        for key in ("status", "tags", "notes", "ts", "by", "meta"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DecisionRecord:
        tags = data.get("tags")
        return cls(
            id=data.get("id") if isinstance(data.get("id"), str) else "",
            status=data.get("status"),
            tags=[str(t) for t in tags] if isinstance(tags, list) else None,
            notes=data.get("notes"),
            ts=data.get("ts"),
            by=data.get("by"),
            meta=data.get("meta") if isinstance(data.get("meta"), dict) else None,
        )


@dataclass
class LatestDecision:
    """Folded per-id view of all decisions seen for that id.

    Tags are the union across every record; the other fields come from
    the most recent record that set them.
    """

    id: str
    status: str | None = None
    tags: list[str] = field(default_factory=list)
    notes: str | None = None
    ts: str | None = None
    by: str | None = None
    meta: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "tags": list(self.tags)}
        for key in ("status", "notes", "ts", "by", "meta"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


def parse_timestamp(ts: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; None when missing or invalid.

    Naive values are taken as UTC so every result is comparable.
    """
    if not ts or not isinstance(ts, str):
        return None
    try:
        dt = datetime.fromisoformat(ts.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string (microsecond precision, Z suffix)."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")
