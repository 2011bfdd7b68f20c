"""Splice: rebuild threads and conversations from personal social-media archives.

Usage:
    from splice import CheckpointLedger, ObjectStore, FilterOptions, run_checkpoint

    store = ObjectStore("out/.splice")
    ledger = CheckpointLedger("out/.splice")
    result = run_checkpoint(items, store, ledger, FilterOptions(min_length=30))
    result.threads, result.conversations, result.checkpoint_id
"""

from splice.artifacts.checkpoints import CheckpointLedger, create_checkpoint_manifest
from splice.artifacts.store import ObjectStore
from splice.core.errors import (
    CircularStructureError,
    InvalidRefError,
    MalformedInputError,
    NotFoundError,
    SpliceError,
)
from splice.core.models import (
    CheckpointManifest,
    ContentItem,
    DecisionRecord,
    LatestDecision,
    MediaAttachment,
    SourceRef,
    Thread,
    TransformRecord,
)
from splice.decisions.fold import FoldOptions, fold_decisions
from splice.pipeline.runner import CheckpointResult, run_checkpoint
from splice.transforms.filters import FilterOptions, apply_filters, index_by_id
from splice.transforms.grouping import GroupingResult, group_threads_and_conversations

__all__ = [
    "CheckpointLedger",
    "CheckpointManifest",
    "CheckpointResult",
    "CircularStructureError",
    "ContentItem",
    "DecisionRecord",
    "FilterOptions",
    "FoldOptions",
    "GroupingResult",
    "InvalidRefError",
    "LatestDecision",
    "MalformedInputError",
    "MediaAttachment",
    "NotFoundError",
    "ObjectStore",
    "SourceRef",
    "SpliceError",
    "Thread",
    "TransformRecord",
    "apply_filters",
    "create_checkpoint_manifest",
    "fold_decisions",
    "group_threads_and_conversations",
    "index_by_id",
    "run_checkpoint",
]

__version__ = "0.1.0"
