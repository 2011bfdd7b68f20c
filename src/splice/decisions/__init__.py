"""Decision records: folding, selection and import helpers."""

from splice.decisions.fold import (
    DEFAULT_DECISION_STATUSES,
    FoldOptions,
    compare_decision_recency,
    fold_decisions,
    normalize_status,
)
from splice.decisions.io import decisions_from_ids, load_ids_file, read_decisions_jsonl
from splice.decisions.selection import (
    AppliedStatus,
    DecisionSummary,
    apply_decision_status,
    filter_selected_items,
    status_rank,
    summarize_latest_decisions,
)

__all__ = [
    "DEFAULT_DECISION_STATUSES",
    "AppliedStatus",
    "DecisionSummary",
    "FoldOptions",
    "apply_decision_status",
    "compare_decision_recency",
    "decisions_from_ids",
    "filter_selected_items",
    "fold_decisions",
    "load_ids_file",
    "normalize_status",
    "read_decisions_jsonl",
    "status_rank",
    "summarize_latest_decisions",
]
