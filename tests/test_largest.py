"""Tests for bounded top-K tracking."""

import random

import pytest

from git_survey.largest import LargeItemLabels, LargeItemVec
from git_survey.objects import ObjectKind


def _vec(capacity, kind=ObjectKind.BLOB):
    return LargeItemVec(
        capacity,
        kind,
        LargeItemLabels("largest_blobs_by_size_bytes", "size"),
        LargeItemLabels("Largest Blobs by Size in Bytes", "Size"),
    )


class TestOffer:
    """Insertion order, eviction and ties."""

    def test_keeps_largest_descending(self):
        vec = _vec(3)
        for i, size in enumerate([5, 50, 1, 30, 40, 2]):
            vec.offer(size, f"o{i}")
        assert [item.size for item in vec] == [50, 40, 30]

    def test_retained_set_matches_sorted_prefix(self):
        rng = random.Random(7)
        sizes = [rng.randint(0, 40) for _ in range(300)]
        vec = _vec(10)
        for i, size in enumerate(sizes):
            vec.offer(size, f"o{i}")
        assert [item.size for item in vec] == sorted(sizes, reverse=True)[:10]

    def test_ties_keep_earliest_seen_first(self):
        vec = _vec(3)
        vec.offer(10, "first")
        vec.offer(10, "second")
        vec.offer(20, "big")
        assert [item.oid for item in vec] == ["big", "first", "second"]

    def test_tie_with_tail_rejected_when_full(self):
        vec = _vec(2)
        vec.offer(10, "a")
        vec.offer(10, "b")
        assert vec.offer(10, "c") is False
        assert [item.oid for item in vec] == ["a", "b"]

    def test_smaller_than_minimum_is_noop_when_full(self):
        vec = _vec(2)
        vec.offer(10, "a", "x/a")
        vec.offer(20, "b", "x/b")
        before = [(i.size, i.oid, i.name) for i in vec]

        assert vec.offer(5, "c", "x/c") is False
        assert [(i.size, i.oid, i.name) for i in vec] == before

    def test_not_full_accepts_small_items(self):
        vec = _vec(3)
        assert vec.offer(0, "zero") is True
        assert len(vec) == 1
        assert vec.min_size == 0

    def test_eviction_drops_smallest(self):
        vec = _vec(2)
        vec.offer(1, "a")
        vec.offer(2, "b")
        vec.offer(3, "c")
        assert [item.oid for item in vec] == ["c", "b"]
        assert vec.is_full


class TestCapacityZero:
    def test_offer_is_noop(self):
        vec = _vec(0)
        assert vec.enabled is False
        assert vec.offer(100, "a") is False
        assert len(vec) == 0

    def test_negative_capacity_rejected(self):
        with pytest.raises(ValueError):
            _vec(-1)


class TestNames:
    def test_root_tree_named_after_commit(self):
        vec = _vec(2, ObjectKind.TREE)
        vec.offer(100, "tree1", "", "c0ffee")
        assert vec.items[0].name == "c0ffee^{tree}"

    def test_subtree_keeps_path(self):
        vec = _vec(2, ObjectKind.TREE)
        vec.offer(100, "tree1", "src/lib", "c0ffee")
        assert vec.items[0].name == "src/lib"

    def test_blob_without_path_stays_unnamed(self):
        vec = _vec(2, ObjectKind.BLOB)
        vec.offer(100, "blob1", None, "c0ffee")
        assert vec.items[0].name == ""

    def test_apply_names(self):
        vec = _vec(3)
        vec.offer(3, "a", "a.txt", "c1")
        vec.offer(2, "b", "b.txt", "c2")
        vec.offer(1, "c", "c.txt", None)

        assert vec.pending_commit_oids() == ["c1", "c2"]
        assert vec.apply_names({"c1": "main~2"}) == 1
        assert vec.items[0].name_rev == "main~2"
        assert vec.pending_commit_oids() == ["c2"]

    def test_display_commit_falls_back_to_commit_id(self):
        vec = _vec(2)
        vec.offer(3, "a", "a.txt", "c1")
        vec.offer(2, "b", "b.txt", "c2")
        vec.apply_names({"c1": "main"})
        a, b = vec.items
        assert vec.display_commit(a) == "main"
        assert vec.display_commit(b) == "c2"

    def test_items_is_a_copy(self):
        vec = _vec(2)
        vec.offer(1, "a")
        vec.items.clear()
        assert len(vec) == 1
