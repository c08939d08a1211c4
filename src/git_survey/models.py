"""In-memory stats model filled by one survey run.

The model is allocated at the start of a run (tracker capacities come from
the configuration), mutated only while refs are classified and the walk is
consumed, and read-only afterwards. The ``to_dict`` methods give the JSON
emitter a plain view of every field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .histogram import HBIN, QBIN, Histogram
from .largest import LargeItemLabels, LargeItemVec
from .objects import ObjectKind, Whence

# Parent counts 0..15 get their own bin; 16 or more share the last one.
PBIN_VEC_LEN = 17

DEFAULT_SHOW_LARGEST = 10


@dataclass
class ObjectBaseStats:
    """Counters common to commits, trees and blobs.

    ``seen == missing + cached + loose + packed + dbcached`` always holds,
    and the size sums and histogram only include resolved objects.
    """

    seen: int = 0
    missing: int = 0
    cached: int = 0
    loose: int = 0
    packed: int = 0
    dbcached: int = 0
    sum_size: int = 0
    sum_disk_size: int = 0
    size_hist: Histogram = field(default_factory=lambda: Histogram(HBIN))

    def count_whence(self, whence: Whence) -> None:
        if whence is Whence.CACHED:
            self.cached += 1
        elif whence is Whence.LOOSE:
            self.loose += 1
        elif whence is Whence.PACKED:
            self.packed += 1
        elif whence is Whence.DBCACHED:
            self.dbcached += 1

    def record(self, size: int, disk_size: int, whence: Whence) -> None:
        self.count_whence(whence)
        self.sum_size += size
        self.sum_disk_size += disk_size
        self.size_hist.record(size, size, disk_size)

    @property
    def resolved(self) -> int:
        return self.cached + self.loose + self.packed + self.dbcached

    def whence_counts(self) -> dict[str, int]:
        """Non-zero storage counters, missing first."""
        counts = {
            "missing": self.missing,
            "cached": self.cached,
            "loose": self.loose,
            "packed": self.packed,
            "dbcached": self.dbcached,
        }
        return {k: v for k, v in counts.items() if v}

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.seen,
            "sum_size": self.sum_size,
            "sum_disk_size": self.sum_disk_size,
            "count_by_whence": self.whence_counts(),
            "dist_by_size": histogram_to_dict(self.size_hist, "hbin"),
        }


def histogram_to_dict(hist: Histogram, bound_prefix: str) -> dict[str, Any]:
    return {
        row.key: {
            "count": row.bin.count,
            "sum_size": row.bin.sum_size,
            "sum_disk_size": row.bin.sum_disk_size,
            f"{bound_prefix}_lower": row.lower,
            f"{bound_prefix}_upper": row.upper,
        }
        for row in hist.rows()
    }


def large_items_to_list(vec: LargeItemVec, with_name_rev: bool = True) -> list[dict[str, Any]]:
    rows = []
    for item in vec:
        row: dict[str, Any] = {vec.labels_json.item: item.size, "oid": item.oid}
        if item.name:
            row["name"] = item.name
        if item.containing_commit_oid:
            row["commit_oid"] = item.containing_commit_oid
        if with_name_rev and item.name_rev:
            row["name_rev"] = item.name_rev
        rows.append(row)
    return rows


@dataclass
class RefStats:
    """Counts over the set of refs that were examined."""

    count_total: int = 0
    lightweight_tags: int = 0
    annotated_tags: int = 0
    branches: int = 0
    remotes: int = 0
    detached: int = 0
    other: int = 0
    symrefs: int = 0
    packed: int = 0
    loose: int = 0
    # Refname lengths hint at platform limits and at the size of a
    # haves/wants negotiation, where every refname is sent.
    len_max_local: int = 0
    len_sum_local: int = 0
    len_max_remote: int = 0
    len_sum_remote: int = 0
    by_class: dict[str, int] = field(default_factory=dict)

    def incr_class(self, label: str) -> None:
        self.by_class[label] = self.by_class.get(label, 0) + 1

    def sorted_classes(self) -> list[tuple[str, int]]:
        return sorted(self.by_class.items())


def _labels(json_dim: str, json_item: str, pretty_dim: str, pretty_item: str):
    return LargeItemLabels(json_dim, json_item), LargeItemLabels(pretty_dim, pretty_item)


@dataclass
class CommitStats:
    base: ObjectBaseStats
    parent_hist: list[int]
    largest_by_nr_parents: LargeItemVec
    largest_by_size: LargeItemVec

    @classmethod
    def allocate(cls, by_nr_parents: int, by_size: int) -> "CommitStats":
        return cls(
            base=ObjectBaseStats(),
            parent_hist=[0] * PBIN_VEC_LEN,
            largest_by_nr_parents=LargeItemVec(
                by_nr_parents,
                ObjectKind.COMMIT,
                *_labels(
                    "largest_commits_by_nr_parents",
                    "nr_parents",
                    "Largest Commits by Number of Parents",
                    "Parents",
                ),
            ),
            largest_by_size=LargeItemVec(
                by_size,
                ObjectKind.COMMIT,
                *_labels(
                    "largest_commits_by_size_bytes",
                    "size",
                    "Largest Commits by Size in Bytes",
                    "Size",
                ),
            ),
        )

    def count_parents(self, nr_parents: int) -> None:
        self.parent_hist[min(nr_parents, PBIN_VEC_LEN - 1)] += 1

    def trackers(self) -> list[LargeItemVec]:
        return [self.largest_by_nr_parents, self.largest_by_size]

    def to_dict(self, with_name_rev: bool = True) -> dict[str, Any]:
        data = self.base.to_dict()
        for vec in self.trackers():
            if vec.enabled:
                data[vec.labels_json.dimension] = large_items_to_list(vec, with_name_rev)
        data["count_by_nr_parents"] = {
            f"P{k:02d}": n for k, n in enumerate(self.parent_hist) if n
        }
        return data


@dataclass
class TreeStats:
    base: ObjectBaseStats
    # Histogram of tree count, size and disk size, bucketed by entry count.
    entry_hist: Histogram
    largest_by_nr_entries: LargeItemVec
    largest_by_size: LargeItemVec
    sum_entries: int = 0

    @classmethod
    def allocate(cls, by_nr_entries: int, by_size: int) -> "TreeStats":
        return cls(
            base=ObjectBaseStats(),
            entry_hist=Histogram(QBIN),
            largest_by_nr_entries=LargeItemVec(
                by_nr_entries,
                ObjectKind.TREE,
                *_labels(
                    "largest_trees_by_nr_entries",
                    "nr_entries",
                    "Largest Trees by Number of Entries",
                    "Entries",
                ),
            ),
            largest_by_size=LargeItemVec(
                by_size,
                ObjectKind.TREE,
                *_labels(
                    "largest_trees_by_size_bytes",
                    "size",
                    "Largest Trees by Size in Bytes",
                    "Size",
                ),
            ),
        )

    def trackers(self) -> list[LargeItemVec]:
        return [self.largest_by_nr_entries, self.largest_by_size]

    def to_dict(self, with_name_rev: bool = True) -> dict[str, Any]:
        data = self.base.to_dict()
        data["sum_entries"] = self.sum_entries
        for vec in self.trackers():
            if vec.enabled:
                data[vec.labels_json.dimension] = large_items_to_list(vec, with_name_rev)
        data["dist_by_nr_entries"] = histogram_to_dict(self.entry_hist, "qbin")
        return data


@dataclass
class BlobStats:
    base: ObjectBaseStats
    largest_by_size: LargeItemVec

    @classmethod
    def allocate(cls, by_size: int) -> "BlobStats":
        return cls(
            base=ObjectBaseStats(),
            largest_by_size=LargeItemVec(
                by_size,
                ObjectKind.BLOB,
                *_labels(
                    "largest_blobs_by_size_bytes",
                    "size",
                    "Largest Blobs by Size in Bytes",
                    "Size",
                ),
            ),
        )

    def trackers(self) -> list[LargeItemVec]:
        return [self.largest_by_size]

    def to_dict(self, with_name_rev: bool = True) -> dict[str, Any]:
        data = self.base.to_dict()
        for vec in self.trackers():
            if vec.enabled:
                data[vec.labels_json.dimension] = large_items_to_list(vec, with_name_rev)
        return data


@dataclass
class SurveyStats:
    """Everything one survey run produces."""

    refs: RefStats
    commits: CommitStats
    trees: TreeStats
    blobs: BlobStats
    requested: list[str] = field(default_factory=list)
    # Missing objects that nothing seen by the walk gives a type to.
    missing_untyped: int = 0

    @classmethod
    def allocate(
        cls,
        commit_parents: int = DEFAULT_SHOW_LARGEST,
        commit_sizes: int = DEFAULT_SHOW_LARGEST,
        tree_entries: int = DEFAULT_SHOW_LARGEST,
        tree_sizes: int = DEFAULT_SHOW_LARGEST,
        blob_sizes: int = DEFAULT_SHOW_LARGEST,
        requested: Optional[list[str]] = None,
    ) -> "SurveyStats":
        return cls(
            refs=RefStats(),
            commits=CommitStats.allocate(commit_parents, commit_sizes),
            trees=TreeStats.allocate(tree_entries, tree_sizes),
            blobs=BlobStats.allocate(blob_sizes),
            requested=list(requested or []),
        )

    def base_for(self, kind: ObjectKind) -> ObjectBaseStats:
        if kind is ObjectKind.COMMIT:
            return self.commits.base
        if kind is ObjectKind.TREE:
            return self.trees.base
        if kind is ObjectKind.BLOB:
            return self.blobs.base
        raise ValueError(f"no stats are kept for {kind.value} objects")

    def trackers(self) -> list[LargeItemVec]:
        return self.commits.trackers() + self.trees.trackers() + self.blobs.trackers()

    @property
    def total_seen(self) -> int:
        return self.commits.base.seen + self.trees.base.seen + self.blobs.base.seen

    @property
    def total_size(self) -> int:
        return self.commits.base.sum_size + self.trees.base.sum_size + self.blobs.base.sum_size

    @property
    def total_disk_size(self) -> int:
        return (
            self.commits.base.sum_disk_size
            + self.trees.base.sum_disk_size
            + self.blobs.base.sum_disk_size
        )
