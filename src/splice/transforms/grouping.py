"""Grouping engine: reconstruct self-threads and conversations from parent links.

Input is an id -> ContentItem index (already filtered). Every eligible
item walks its parent chain to the furthest resolvable ancestor; the walk
never stops early at ancestors that other chains already used, so
overlapping branches each carry their full context.

A chain is a Thread when every item is a self-authored post and a
self-reply. Only maximal threads are kept: a thread chain whose leaf is
an ancestor inside a longer thread chain from the same root was already
covered by it. Under a parent cycle each chain starts at a different
root, so every item still lands in some output.
Every other chain is a conversation; conversations sharing a root are
collapsed to the longest one (first seen wins on equal length).

Malformed data never raises. Unresolved parents end the walk, and a
parent pointer that revisits the current chain ends it too.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from splice.core.models import (
    FETCHED_CONTEXT_SOURCE,
    SELF_POST_SOURCES,
    ContentItem,
    Conversation,
    Thread,
)

logger = logging.getLogger(__name__)


@dataclass
class GroupingResult:
    threads: list[Thread] = field(default_factory=list)
    conversations: list[Conversation] = field(default_factory=list)


def is_self_reply(item: ContentItem) -> bool:
    """Whether an item replies to its own author.

    Items without a parent always qualify. When either the reply target or
    the owner is unknown the item is treated as a self-reply.
    """
    if not item.parent_id:
        return True
    if item.account_id and item.in_reply_to_user_id:
        return item.in_reply_to_user_id == item.account_id
    return True


def build_chain(item: ContentItem, index: Mapping[str, ContentItem]) -> list[ContentItem]:
    """Walk parent links from ``item`` upward; returns leaf-first order."""
    chain = [item]
    seen = {item.id}
    current = item
    while current.parent_id and current.parent_id in index:
        if current.parent_id in seen:
            logger.warning("Parent cycle at %s -> %s; stopping chain walk", current.id, current.parent_id)
            break
        current = index[current.parent_id]
        seen.add(current.id)
        chain.append(current)
    return chain


def is_thread_chain(chain: list[ContentItem]) -> bool:
    """All items are self posts and all are self-replies.

    The root is checked too, so a root replying to someone else outside
    the index makes the chain a conversation.
    """
    return all(c.source in SELF_POST_SOURCES for c in chain) and all(is_self_reply(c) for c in chain)


def dedupe_conversations(conversations: list[Conversation]) -> list[Conversation]:
    """Keep the longest conversation per root id."""
    longest: dict[str, Conversation] = {}
    for conv in conversations:
        if not conv:
            continue
        root_id = conv[0].id
        existing = longest.get(root_id)
        if existing is None or len(conv) > len(existing):
            longest[root_id] = conv
    return list(longest.values())


def group_threads_and_conversations(index: Mapping[str, ContentItem]) -> GroupingResult:
    """Split an item index into self-threads and deduplicated conversations."""
    thread_chains: list[list[ContentItem]] = []
    conversations: list[Conversation] = []

    for item in index.values():
        # Fetched posts are context for other chains, never a starting leaf
        if item.source == FETCHED_CONTEXT_SOURCE:
            continue
        ordered = list(reversed(build_chain(item, index)))  # oldest -> newest
        if is_thread_chain(ordered):
            thread_chains.append(ordered)
        else:
            conversations.append(ordered)

    covered: dict[str, set[str]] = {}
    for chain in thread_chains:
        covered.setdefault(chain[0].id, set()).update(c.id for c in chain[:-1])

    threads = [
        Thread(id=chain[0].id, items=chain)
        for chain in thread_chains
        if chain[-1].id not in covered[chain[0].id]
    ]
    deduped = dedupe_conversations(conversations)
    logger.debug(
        "Grouped %d items: %d threads, %d conversations (%d before dedup)",
        len(index),
        len(threads),
        len(deduped),
        len(conversations),
    )
    return GroupingResult(threads=threads, conversations=deduped)
