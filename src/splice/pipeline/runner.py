"""Pipeline runner: filter and group items, then record a checkpoint."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from splice.artifacts.checkpoints import CheckpointLedger, create_checkpoint_manifest
from splice.artifacts.store import (
    ObjectStore,
    store_conversations_json,
    store_items_jsonl,
    store_threads_json,
)
from splice.core.canonical import iter_decoded_lines
from splice.core.models import ContentItem, Conversation, DecisionRecord, SourceRef, Thread, TransformRecord
from splice.transforms.filters import FilterOptions, apply_filters, index_by_id
from splice.transforms.grouping import group_threads_and_conversations

logger = logging.getLogger(__name__)


@dataclass
class CheckpointResult:
    """Summary of one pipeline run."""

    checkpoint_id: str | None = None
    threads: list[Thread] = field(default_factory=list)
    conversations: list[Conversation] = field(default_factory=list)
    total: int = 0
    filtered: list[ContentItem] = field(default_factory=list)
    refs: dict[str, str] = field(default_factory=dict)
    total_time: float = 0.0
    dry_run: bool = False


def run_checkpoint(
    items: Iterable[ContentItem],
    store: ObjectStore | None,
    ledger: CheckpointLedger | None,
    filters: FilterOptions | None = None,
    decisions: Iterable[DecisionRecord] | None = None,
    source_refs: list[SourceRef] | None = None,
    notes: str | None = None,
    dry_run: bool = False,
) -> CheckpointResult:
    """Run one pass over normalized items and record it as a checkpoint.

    Steps: filter -> index -> group -> store items, filtered items,
    threads, conversations and decisions -> save a manifest whose parent
    is the current latest checkpoint. With ``dry_run`` nothing is written
    and ``store``/``ledger`` may be None.
    """
    start = time.time()
    filters = filters or FilterOptions()
    items = list(items)

    filtered = apply_filters(items, filters)
    grouped = group_threads_and_conversations(index_by_id(filtered))
    threads = grouped.threads
    conversations = [] if filters.only_threads else grouped.conversations
    logger.info("Threads: %d, Conversations: %d", len(threads), len(conversations))

    result = CheckpointResult(
        threads=threads,
        conversations=conversations,
        total=len(items),
        filtered=filtered,
        dry_run=dry_run,
    )
    if dry_run:
        logger.info("(dry-run) skipping checkpoint")
        result.total_time = time.time() - start
        return result
    if store is None or ledger is None:
        msg = "run_checkpoint needs a store and ledger unless dry_run is set"
        raise ValueError(msg)

    refs: dict[str, str] = {}
    if decisions is not None:
        decisions = list(decisions)
        if decisions:
            refs["decisions"] = store.put_jsonl(decisions)
            logger.info("Stored %d decision(s) as %s", len(decisions), refs["decisions"])

    refs["items"] = store_items_jsonl(store, items)
    refs["filtered"] = store_items_jsonl(store, filtered)
    refs["threads"] = store_threads_json(store, threads)
    refs["conversations"] = store_conversations_json(store, conversations)

    transforms = [
        TransformRecord(
            name="filter",
            config=filters.to_config(),
            input_ref=refs["items"],
            output_ref=refs["filtered"],
            stats={"total": len(items), "filtered": len(filtered)},
        ),
        TransformRecord(
            name="group:threads",
            input_ref=refs["filtered"],
            output_ref=refs["threads"],
            stats={"threads": len(threads)},
        ),
        TransformRecord(
            name="group:conversations",
            config={"onlyThreads": filters.only_threads},
            input_ref=refs["filtered"],
            output_ref=refs["conversations"],
            stats={"conversations": len(conversations)},
        ),
    ]

    latest = ledger.resolve_latest_checkpoint()
    manifest = create_checkpoint_manifest(
        items_ref=refs["items"],
        parent_id=latest.id if latest else None,
        source_refs=source_refs,
        transforms=transforms,
        decisions_ref=refs.get("decisions"),
        materialized={"threadsRef": refs["threads"], "conversationsRef": refs["conversations"]},
        notes=notes,
    )
    result.checkpoint_id = ledger.save_checkpoint(manifest)
    result.refs = refs
    result.total_time = time.time() - start
    logger.info("Saved checkpoint %s in %s", result.checkpoint_id, ledger.root)
    return result


def read_items_jsonl(path: str | Path) -> list[ContentItem]:
    """Load normalized items from a JSONL file, skipping malformed lines."""
    items: list[ContentItem] = []
    for lineno, line in iter_decoded_lines(path):
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("%s line %d: skipping malformed item (%s)", path, lineno, e)
            continue
        if not isinstance(data, dict):
            logger.warning("%s line %d: skipping non-object item", path, lineno)
            continue
        items.append(ContentItem.from_dict(data))
    return items
