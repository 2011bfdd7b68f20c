"""Tests for folding the decision stream into the latest state per id."""

from __future__ import annotations

import itertools

from splice.core.models import DecisionRecord
from splice.decisions.fold import (
    FoldOptions,
    compare_decision_recency,
    fold_decisions,
    normalize_status,
)


class TestCompareDecisionRecency:
    def test_later_is_newer(self):
        assert compare_decision_recency("2025-01-02", "2025-01-01") > 0
        assert compare_decision_recency("2025-01-01", "2025-01-02") < 0

    def test_equal_instants(self):
        assert compare_decision_recency("2025-01-01T00:00:00Z", "2025-01-01T00:00:00+00:00") == 0

    def test_invalid_is_oldest(self):
        assert compare_decision_recency("garbage", "2020-01-01") < 0
        assert compare_decision_recency(None, "2020-01-01") < 0
        assert compare_decision_recency("2020-01-01", None) > 0

    def test_two_invalid_equal(self):
        assert compare_decision_recency(None, "garbage") == 0


class TestNormalizeStatus:
    def test_known_status_kept(self):
        assert normalize_status("skip") == "skip"

    def test_unknown_status_dropped(self):
        assert normalize_status("archived") is None

    def test_unrestricted(self):
        assert normalize_status("archived", FoldOptions(restrict_statuses=False)) == "archived"

    def test_empty(self):
        assert normalize_status("") is None


class TestFoldDecisions:
    def test_newer_record_wins_and_tags_union(self):
        latest = fold_decisions(
            [
                {"id": "x", "status": "skip", "ts": "2025-01-01"},
                {"id": "x", "status": "export", "tags": ["a"], "ts": "2025-01-02"},
            ]
        )
        assert latest["x"].status == "export"
        assert latest["x"].tags == ["a"]

    def test_older_record_only_contributes_tags(self):
        latest = fold_decisions(
            [
                {"id": "x", "status": "export", "tags": ["a"], "ts": "2025-01-02"},
                {"id": "x", "status": "skip", "tags": ["b"], "notes": "old", "ts": "2025-01-01"},
            ]
        )
        assert latest["x"].status == "export"
        assert latest["x"].notes is None
        assert latest["x"].tags == ["a", "b"]

    def test_tie_later_in_stream_wins(self):
        a = {"id": "x", "status": "skip", "ts": "2025-01-01"}
        b = {"id": "x", "status": "export", "ts": "2025-01-01"}
        assert fold_decisions([a, b])["x"].status == "export"
        assert fold_decisions([b, a])["x"].status == "skip"

    def test_missing_ts_loses_to_valid(self):
        latest = fold_decisions(
            [
                {"id": "x", "status": "export", "ts": "2025-01-01"},
                {"id": "x", "status": "skip"},
            ]
        )
        assert latest["x"].status == "export"

    def test_tag_set_independent_of_order(self):
        records = [
            {"id": "x", "tags": ["a", "b"], "ts": "2025-01-01"},
            {"id": "x", "tags": ["c"], "ts": "2025-01-03"},
            {"id": "x", "tags": ["b", "d"], "ts": "2025-01-02"},
        ]
        results = {tuple(sorted(fold_decisions(list(p))["x"].tags)) for p in itertools.permutations(records)}
        assert results == {("a", "b", "c", "d")}

    def test_distinct_timestamps_order_independent(self):
        records = [
            {"id": "x", "status": "skip", "ts": "2025-01-01"},
            {"id": "x", "status": "export", "ts": "2025-01-03"},
            {"id": "x", "status": "unread", "ts": "2025-01-02"},
        ]
        statuses = {fold_decisions(list(p))["x"].status for p in itertools.permutations(records)}
        assert statuses == {"export"}

    def test_out_of_set_status_becomes_none(self):
        latest = fold_decisions([{"id": "x", "status": "archived", "ts": "2025-01-01"}])
        assert latest["x"].status is None

    def test_out_of_set_status_keeps_previous(self):
        latest = fold_decisions(
            [
                {"id": "x", "status": "skip", "ts": "2025-01-01"},
                {"id": "x", "status": "archived", "ts": "2025-01-02"},
            ]
        )
        assert latest["x"].status == "skip"
        assert latest["x"].ts == "2025-01-02"

    def test_unrestricted_statuses(self):
        latest = fold_decisions(
            [{"id": "x", "status": "archived"}],
            FoldOptions(restrict_statuses=False),
        )
        assert latest["x"].status == "archived"

    def test_records_without_id_skipped(self):
        latest = fold_decisions([{"status": "export"}, {"id": "", "status": "skip"}, {"id": 5}])
        assert latest == {}

    def test_meta_replaced_by_winner(self):
        latest = fold_decisions(
            [
                {"id": "x", "meta": {"a": 1}, "ts": "2025-01-01"},
                {"id": "x", "meta": {"b": 2}, "ts": "2025-01-02"},
            ]
        )
        assert latest["x"].meta == {"b": 2}

    def test_accepts_records(self):
        latest = fold_decisions([DecisionRecord(id="x", status="export", by="me")])
        assert latest["x"].to_dict() == {"id": "x", "tags": [], "status": "export", "by": "me"}

    def test_ids_kept_separate(self):
        latest = fold_decisions([{"id": "x", "status": "export"}, {"id": "y", "status": "skip"}])
        assert {k: v.status for k, v in latest.items()} == {"x": "export", "y": "skip"}
