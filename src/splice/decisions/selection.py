"""Apply folded decisions to items: bucket by status, select for export."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from splice.core.models import LatestDecision


class _HasId(Protocol):
    id: str


T = TypeVar("T", bound=_HasId)

StatusPredicate = Callable[[str | None], bool]


def is_export(status: str | None) -> bool:
    return status == "export"


def status_rank(status: str | None) -> int:
    """export (2) > unread (1) > skip (0); unknown statuses rank as unread."""
    if status == "export":
        return 2
    if status == "skip":
        return 0
    return 1


@dataclass
class AppliedStatus(Generic[T]):
    by_status: dict[str, list[T]] = field(default_factory=dict)
    selected: list[T] = field(default_factory=list)

    @property
    def unread(self) -> list[T]:
        return self.by_status.get("unread", [])

    @property
    def export(self) -> list[T]:
        return self.by_status.get("export", [])

    @property
    def skip(self) -> list[T]:
        return self.by_status.get("skip", [])


def apply_decision_status(
    items: Iterable[T],
    latest: Mapping[str, LatestDecision],
    default_status: str = "unread",
    is_selected: StatusPredicate = is_export,
) -> AppliedStatus[T]:
    """Group items by their latest status; undecided items get ``default_status``."""
    applied: AppliedStatus[T] = AppliedStatus()
    for item in items:
        decision = latest.get(item.id)
        status = decision.status if decision and decision.status else default_status
        applied.by_status.setdefault(status, []).append(item)
        if is_selected(status):
            applied.selected.append(item)
    return applied


@dataclass
class DecisionSummary:
    total_ids: int
    counts_by_status: dict[str, int]


def summarize_latest_decisions(latest: Mapping[str, LatestDecision]) -> DecisionSummary:
    """Counts per status; decisions without a status count as unread."""
    counts: dict[str, int] = {}
    for decision in latest.values():
        status = decision.status or "unread"
        counts[status] = counts.get(status, 0) + 1
    return DecisionSummary(total_ids=len(latest), counts_by_status=counts)


def filter_selected_items(
    items: Iterable[T],
    latest: Mapping[str, LatestDecision],
    is_selected: StatusPredicate = is_export,
) -> list[T]:
    """Items whose latest decision status is selected (undecided items are not)."""
    selected: list[T] = []
    for item in items:
        decision = latest.get(item.id)
        if is_selected(decision.status if decision else None):
            selected.append(item)
    return selected
