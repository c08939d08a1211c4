"""Tests for the stats model and its dict views."""

import pytest

from git_survey.models import (
    PBIN_VEC_LEN,
    ObjectBaseStats,
    SurveyStats,
    large_items_to_list,
)
from git_survey.objects import ObjectKind, Whence


class TestObjectBaseStats:
    def test_record_updates_sums_and_histogram(self):
        base = ObjectBaseStats()
        base.seen += 2
        base.record(20000, 9000, Whence.PACKED)
        base.record(10, 10, Whence.LOOSE)

        assert base.sum_size == 20010
        assert base.sum_disk_size == 9010
        assert base.resolved == 2
        assert base.size_hist.total_count == 2

    def test_to_dict(self):
        base = ObjectBaseStats()
        base.seen = 2
        base.missing = 1
        base.record(20000, 9000, Whence.PACKED)

        data = base.to_dict()
        assert data["count"] == 2
        assert data["count_by_whence"] == {"missing": 1, "packed": 1}
        assert data["dist_by_size"] == {
            "H3": {
                "count": 1,
                "sum_size": 20000,
                "sum_disk_size": 9000,
                "hbin_lower": 4096,
                "hbin_upper": 65535,
            }
        }


class TestSurveyStats:
    def test_allocate_capacities(self):
        stats = SurveyStats.allocate(commit_parents=1, blob_sizes=0, requested=["refs/heads/"])
        assert stats.commits.largest_by_nr_parents.capacity == 1
        assert stats.commits.largest_by_size.capacity == 10
        assert not stats.blobs.largest_by_size.enabled
        assert stats.requested == ["refs/heads/"]
        assert len(stats.commits.parent_hist) == PBIN_VEC_LEN
        assert len(stats.trackers()) == 5

    def test_base_for(self):
        stats = SurveyStats.allocate()
        assert stats.base_for(ObjectKind.TREE) is stats.trees.base
        with pytest.raises(ValueError):
            stats.base_for(ObjectKind.TAG)

    def test_totals(self):
        stats = SurveyStats.allocate()
        stats.commits.base.seen = 1
        stats.commits.base.record(200, 100, Whence.PACKED)
        stats.blobs.base.seen = 1
        stats.blobs.base.record(10, 5, Whence.LOOSE)
        assert stats.total_seen == 2
        assert stats.total_size == 210
        assert stats.total_disk_size == 105

    def test_commit_dict_keys(self):
        stats = SurveyStats.allocate(commit_sizes=0)
        stats.commits.count_parents(0)
        stats.commits.count_parents(40)
        stats.commits.largest_by_nr_parents.offer(40, "c", None, "c")

        data = stats.commits.to_dict()
        assert data["count_by_nr_parents"] == {"P00": 1, "P16": 1}
        assert "largest_commits_by_size_bytes" not in data
        assert data["largest_commits_by_nr_parents"] == [
            {"nr_parents": 40, "oid": "c", "commit_oid": "c"}
        ]

    def test_tree_dict_keys(self):
        stats = SurveyStats.allocate()
        stats.trees.sum_entries = 5
        stats.trees.entry_hist.record(5, 140, 70)
        data = stats.trees.to_dict()
        assert data["sum_entries"] == 5
        assert data["dist_by_nr_entries"]["Q01"]["qbin_lower"] == 4
        assert data["dist_by_nr_entries"]["Q01"]["qbin_upper"] == 15


class TestLargeItemsToList:
    def test_name_rev_optional(self):
        stats = SurveyStats.allocate()
        vec = stats.blobs.largest_by_size
        vec.offer(99, "b", "big.bin", "c1")
        vec.apply_names({"c1": "main"})

        assert large_items_to_list(vec) == [
            {"size": 99, "oid": "b", "name": "big.bin", "commit_oid": "c1", "name_rev": "main"}
        ]
        assert "name_rev" not in large_items_to_list(vec, with_name_rev=False)[0]
