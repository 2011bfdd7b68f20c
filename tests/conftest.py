"""Shared test fixtures for Splice."""

from __future__ import annotations

import json

import pytest

from splice.artifacts.checkpoints import CheckpointLedger
from splice.artifacts.store import ObjectStore
from splice.core.models import MediaAttachment
from tests.helpers.factories import make_item


@pytest.fixture
def workspace(tmp_path):
    """Clean workspace directory for each test."""
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


@pytest.fixture
def store(workspace):
    return ObjectStore(workspace)


@pytest.fixture
def ledger(workspace):
    return CheckpointLedger(workspace)


@pytest.fixture
def sample_items():
    """A self-thread, a reply to someone else, a like and fetched context."""
    return [
        make_item("100", created_at="2025-01-01T12:00:00Z", text="Starting a thread about gardens"),
        make_item("101", parent_id="100", created_at="2025-01-01T12:01:00Z", text="Tomatoes need sun"),
        make_item(
            "102",
            parent_id="101",
            in_reply_to_user_id="7",
            created_at="2025-01-01T12:05:00Z",
            text="@friend agreed, basil too",
        ),
        make_item("200", source="bluesky:fetched", account_id=None, created_at="2024-12-30T09:00:00Z", text="Someone else's post"),
        make_item(
            "201",
            parent_id="200",
            source="bluesky:post",
            in_reply_to_user_id="9",
            created_at="2025-01-02T08:00:00Z",
            text="My reply to a fetched post",
        ),
        make_item("300", source="twitter:like", account_id=None, created_at="2025-01-03T10:00:00Z", text="A liked post"),
        make_item(
            "400",
            created_at="2025-02-01T10:00:00Z",
            text="RT @someone: retweeted text",
        ),
        make_item(
            "500",
            created_at="2025-02-02T10:00:00Z",
            text="A photo post",
            media=[MediaAttachment(id="m1", content_type="photo", url="https://example.com/m1.jpg")],
        ),
    ]


@pytest.fixture
def items_file(tmp_path, sample_items):
    """sample_items written as a normalized JSONL file."""
    path = tmp_path / "items.jsonl"
    with open(path, "w", encoding="utf-8") as f:
        for it in sample_items:
            f.write(json.dumps(it.to_dict()) + "\n")
    return path
