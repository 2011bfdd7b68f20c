"""Text cleanup and chat-message construction for grouped conversations."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from splice.core.models import ContentItem

_TCO_RE = re.compile(r"https://t\.co/\w+")
_MENTION_RE = re.compile(r"@[\w.-]+")
_HASHTAG_RE = re.compile(r"#\w+")
_SPACES_RE = re.compile(r"[ \t]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


@dataclass
class ChatMessage:
    role: str  # "system", "assistant" or "user"
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def clean_text(text: str | None, entities: dict[str, Any] | None = None) -> str:
    """Expand shortened URLs, strip t.co links, mentions and hashtags.

    Paragraph breaks survive; runs of spaces collapse and lines are trimmed.
    """
    t = text or ""
    for u in (entities or {}).get("urls") or []:
        if isinstance(u, dict) and u.get("url") and u.get("expanded_url"):
            t = t.replace(u["url"], u["expanded_url"])
    t = t.replace("\r\n", "\n").replace("\r", "\n")
    t = _TCO_RE.sub("", t)
    t = _MENTION_RE.sub("", t)
    t = _HASHTAG_RE.sub("", t)
    t = "\n".join(_SPACES_RE.sub(" ", line).strip() for line in t.split("\n"))
    t = _BLANK_LINES_RE.sub("\n\n", t)
    return t.strip()


def infer_role(item: ContentItem) -> str:
    """Archive owner's posts are the assistant; everything else is the user."""
    if item.raw and "full_text" in item.raw:
        return "assistant"
    if item.source == "bluesky:post":
        return "assistant"
    return "user"


def messages_from_conversation(
    items: Iterable[ContentItem],
    system_message: str | None = None,
) -> list[ChatMessage]:
    """Clean, merge consecutive same-role turns, and end on an assistant turn.

    Returns an empty list when no assistant turn survives. Otherwise a
    ``system_message`` is prepended as a system turn.
    """
    messages: list[ChatMessage] = []
    role: str | None = None
    buffer: list[str] = []

    def flush() -> None:
        if role is None:
            return
        content = "\n\n".join(buffer).strip()
        if content:
            messages.append(ChatMessage(role=role, content=content))

    for it in items:
        entities = it.raw.get("entities") if isinstance(it.raw, dict) else None
        cleaned = clean_text(it.text, entities if isinstance(entities, dict) else None)
        if not cleaned:
            continue
        current = infer_role(it)
        if role is not None and current != role:
            flush()
            buffer = []
        role = current
        buffer.append(cleaned)
    flush()

    for i in range(len(messages) - 1, -1, -1):
        if messages[i].role == "assistant":
            trimmed = messages[: i + 1]
            if system_message:
                trimmed.insert(0, ChatMessage(role="system", content=system_message))
            return trimmed
    return []
