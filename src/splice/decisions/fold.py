"""Decision folding: reduce an append-only decision stream to the latest state per id.

Ordering rules:

- A record with a valid, later ``ts`` wins the scalar fields
  (status, notes, ts, by, meta).
- A missing or unparseable ``ts`` is older than any valid one; two
  invalid timestamps are equally recent.
- On equal recency the record that comes later in the stream wins.
  This is the only way stream order affects the result.
- Tags are unioned across every record for an id, whichever record wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from splice.core.models import DecisionRecord, LatestDecision, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_DECISION_STATUSES: tuple[str, ...] = ("unread", "export", "skip")


@dataclass
class FoldOptions:
    """Status validation for ``fold_decisions``.

    With ``restrict_statuses`` on, statuses outside ``allowed_statuses``
    are dropped (the record still contributes tags and other fields).
    """

    restrict_statuses: bool = True
    allowed_statuses: tuple[str, ...] = DEFAULT_DECISION_STATUSES


def compare_decision_recency(a: str | None, b: str | None) -> int:
    """Compare two ``ts`` values: >0 if a is newer, <0 if older, 0 if equally recent."""
    a_dt = parse_timestamp(a)
    b_dt = parse_timestamp(b)
    if a_dt is not None and b_dt is not None:
        if a_dt > b_dt:
            return 1
        if a_dt < b_dt:
            return -1
        return 0
    if a_dt is not None:
        return 1
    if b_dt is not None:
        return -1
    return 0


def normalize_status(status: str | None, opts: FoldOptions | None = None) -> str | None:
    if not status:
        return None
    opts = opts or FoldOptions()
    if not opts.restrict_statuses:
        return status
    return status if status in opts.allowed_statuses else None


def _union_tags(existing: list[str], incoming: list[str] | None) -> list[str]:
    merged = list(existing)
    for tag in incoming or []:
        if tag not in merged:
            merged.append(tag)
    return merged


def base_from_decision(rec: DecisionRecord) -> LatestDecision:
    return LatestDecision(
        id=rec.id,
        status=rec.status,
        tags=_union_tags([], rec.tags),
        notes=rec.notes,
        ts=rec.ts,
        by=rec.by,
        meta=dict(rec.meta) if rec.meta is not None else None,
    )


def merge_decision(current: LatestDecision, rec: DecisionRecord) -> LatestDecision:
    """Apply a winning record: its present fields replace, tags union."""
    return LatestDecision(
        id=current.id,
        status=rec.status if rec.status is not None else current.status,
        tags=_union_tags(current.tags, rec.tags),
        notes=rec.notes if rec.notes is not None else current.notes,
        ts=rec.ts if rec.ts is not None else current.ts,
        by=rec.by if rec.by is not None else current.by,
        meta=dict(rec.meta) if rec.meta is not None else current.meta,
    )


def fold_decisions(
    decisions: Iterable[DecisionRecord | dict],
    opts: FoldOptions | None = None,
) -> dict[str, LatestDecision]:
    """Fold decision records (or their dict form) into the latest view per id."""
    latest: dict[str, LatestDecision] = {}
    skipped = 0
    for raw in decisions:
        rec = DecisionRecord.from_dict(raw) if isinstance(raw, dict) else raw
        if not isinstance(rec, DecisionRecord) or not rec.id:
            skipped += 1
            continue
        rec = DecisionRecord(
            id=rec.id,
            status=normalize_status(rec.status, opts),
            tags=rec.tags,
            notes=rec.notes,
            ts=rec.ts,
            by=rec.by,
            meta=rec.meta,
        )

        current = latest.get(rec.id)
        if current is None:
            latest[rec.id] = base_from_decision(rec)
        elif compare_decision_recency(rec.ts, current.ts) >= 0:
            latest[rec.id] = merge_decision(current, rec)
        else:
            current.tags = _union_tags(current.tags, rec.tags)

    if skipped:
        logger.debug("fold_decisions: skipped %d record(s) without an id", skipped)
    return latest
