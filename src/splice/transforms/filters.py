"""Stateless item filters and the id index fed to the grouping engine."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any

from splice.core.models import FETCHED_CONTEXT_SOURCE, ContentItem, parse_timestamp

_RETWEET_RE = re.compile(r"^RT\b")


@dataclass
class FilterOptions:
    """Options for ``apply_filters``.

    ``only_threads`` is not applied here: thread selection happens after
    grouping, where conversations are dropped.
    """

    since: str | None = None
    until: str | None = None
    min_length: int = 0
    exclude_rt: bool = False
    only_threads: bool = False
    with_media: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FilterOptions:
        opts = cls()
        for key in ("since", "until", "min_length", "exclude_rt", "only_threads", "with_media"):
            if key in data and data[key] is not None:
                setattr(opts, key, data[key])
        return opts

    def to_config(self) -> dict[str, Any]:
        """Config recorded on the ``filter`` transform entry."""
        data = asdict(self)
        data.pop("only_threads")
        return data


def is_retweet(text: str | None) -> bool:
    return bool(_RETWEET_RE.match(text or ""))


def apply_filters(items: Iterable[ContentItem], opts: FilterOptions) -> list[ContentItem]:
    """Keep items inside the time window that pass the length/RT/media checks.

    Fetched context posts are always kept so conversations keep their
    parents. Items with an unparseable timestamp fail a time window but
    pass when no window is set.
    """
    since = parse_timestamp(opts.since)
    until = parse_timestamp(opts.until)

    kept: list[ContentItem] = []
    for it in items:
        if it.source == FETCHED_CONTEXT_SOURCE:
            kept.append(it)
            continue
        if since is not None or until is not None:
            created = parse_timestamp(it.created_at)
            if created is None:
                continue
            if since is not None and created < since:
                continue
            if until is not None and created > until:
                continue
        if opts.exclude_rt and is_retweet(it.text):
            continue
        if opts.min_length > 0 and len((it.text or "").strip()) < opts.min_length:
            continue
        if opts.with_media and not it.media:
            continue
        kept.append(it)
    return kept


def index_by_id(items: Iterable[ContentItem]) -> dict[str, ContentItem]:
    """Map id -> item. Items without an id are dropped; later duplicates win."""
    index: dict[str, ContentItem] = {}
    for it in items:
        if it.id:
            index[it.id] = it
    return index
