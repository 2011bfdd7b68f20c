"""Tests for the checkpoint pipeline runner."""

from __future__ import annotations

import json

import pytest

from splice.artifacts.store import load_conversations, load_items, load_threads
from splice.core.models import DecisionRecord, SourceRef
from splice.pipeline.runner import read_items_jsonl, run_checkpoint
from splice.transforms.filters import FilterOptions


def thread_ids(result) -> list[list[str]]:
    return sorted([it.id for it in t.items] for t in result.threads)


def conversation_ids(result) -> list[list[str]]:
    return sorted([it.id for it in conv] for conv in result.conversations)


class TestRunCheckpoint:
    def test_groups_sample_items(self, sample_items, store, ledger):
        result = run_checkpoint(sample_items, store, ledger)
        assert result.total == 8
        assert len(result.filtered) == 8
        assert thread_ids(result) == [["100", "101"], ["400"], ["500"]]
        assert conversation_ids(result) == [["100", "101", "102"], ["200", "201"], ["300"]]

    def test_manifest_records_transforms(self, sample_items, store, ledger):
        result = run_checkpoint(sample_items, store, ledger, FilterOptions(exclude_rt=True))
        manifest = ledger.read_checkpoint(result.checkpoint_id)
        assert manifest.parent_id is None
        assert manifest.items_ref == result.refs["items"]
        assert [t.name for t in manifest.transforms] == ["filter", "group:threads", "group:conversations"]
        assert manifest.transforms[0].config["exclude_rt"] is True
        assert manifest.transforms[0].stats == {"total": 8, "filtered": 7}
        assert manifest.materialized == {
            "threadsRef": result.refs["threads"],
            "conversationsRef": result.refs["conversations"],
        }
        assert manifest.decisions_ref is None

    def test_stored_artifacts_round_trip(self, sample_items, store, ledger):
        result = run_checkpoint(sample_items, store, ledger)
        assert [it.id for it in load_items(store, result.refs["items"])] == [it.id for it in sample_items]
        assert len(load_threads(store, result.refs["threads"])) == 3
        assert len(load_conversations(store, result.refs["conversations"])) == 3

    def test_parent_is_previous_latest(self, sample_items, store, ledger):
        first = run_checkpoint(sample_items, store, ledger)
        second = run_checkpoint(sample_items, store, ledger)
        assert first.checkpoint_id != second.checkpoint_id
        assert ledger.read_checkpoint(second.checkpoint_id).parent_id == first.checkpoint_id
        assert first.refs == second.refs

    def test_only_threads_drops_conversations(self, sample_items, store, ledger):
        result = run_checkpoint(sample_items, store, ledger, FilterOptions(only_threads=True))
        assert result.conversations == []
        manifest = ledger.read_checkpoint(result.checkpoint_id)
        assert manifest.transforms[2].config == {"onlyThreads": True}

    def test_decisions_stored(self, sample_items, store, ledger):
        decisions = [DecisionRecord(id="100", status="export", ts="2025-01-01T00:00:00Z")]
        result = run_checkpoint(sample_items, store, ledger, decisions=decisions)
        manifest = ledger.read_checkpoint(result.checkpoint_id)
        assert manifest.decisions_ref == result.refs["decisions"]
        assert list(store.get_jsonl(manifest.decisions_ref)) == [decisions[0].to_dict()]

    def test_empty_decisions_not_stored(self, sample_items, store, ledger):
        result = run_checkpoint(sample_items, store, ledger, decisions=[])
        assert "decisions" not in result.refs

    def test_source_refs_and_notes(self, sample_items, store, ledger):
        result = run_checkpoint(
            sample_items,
            store,
            ledger,
            source_refs=[SourceRef(kind="twitter", uri="/archive")],
            notes="first pass",
        )
        manifest = ledger.read_checkpoint(result.checkpoint_id)
        assert manifest.source_refs[0].kind == "twitter"
        assert manifest.notes == "first pass"

    def test_dry_run_writes_nothing(self, sample_items, workspace):
        result = run_checkpoint(sample_items, None, None, dry_run=True)
        assert result.dry_run is True
        assert result.checkpoint_id is None
        assert len(result.threads) == 3
        assert list(workspace.iterdir()) == []

    def test_store_required_without_dry_run(self, sample_items):
        with pytest.raises(ValueError, match="store and ledger"):
            run_checkpoint(sample_items, None, None)


class TestReadItemsJsonl:
    def test_reads_items(self, items_file, sample_items):
        items = read_items_jsonl(items_file)
        assert [it.id for it in items] == [it.id for it in sample_items]
        assert items[-1].media[0].id == "m1"

    def test_skips_bad_lines(self, tmp_path):
        path = tmp_path / "items.jsonl"
        path.write_text(
            json.dumps({"id": "1", "text": "a", "createdAt": "2025-01-01T00:00:00Z", "source": "twitter:tweet"})
            + "\n\n{broken\n[1]\n",
            encoding="utf-8",
        )
        assert [it.id for it in read_items_jsonl(path)] == ["1"]

    def test_undecodable_line_skipped(self, tmp_path):
        good = json.dumps({"id": "1", "text": "a", "createdAt": "2025-01-01T00:00:00Z", "source": "twitter:tweet"})
        path = tmp_path / "items.jsonl"
        path.write_bytes(good.encode() + b"\n\xff\xfe\n" + good.replace('"1"', '"2"').encode() + b"\n")
        assert [it.id for it in read_items_jsonl(path)] == ["1", "2"]
