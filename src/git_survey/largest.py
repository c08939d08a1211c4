"""Bounded top-K tracking of the largest objects along one dimension.

One LargeItemVec exists per (object kind, metric) pair, e.g. "commits by
number of parents" or "blobs by size in bytes". Each keeps the K largest
candidates offered during the walk, ordered largest first. Most candidates
are smaller than everything already retained, so the common case is a
single comparison against the tail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .objects import ObjectKind


@dataclass(frozen=True)
class LargeItemLabels:
    """Report labels: section name and the column holding the metric."""

    dimension: str
    item: str


@dataclass
class LargeItem:
    size: int
    oid: str
    # Path of a tree or blob as reported by the treewalk. Unused for commits.
    name: str = ""
    # Commit being walked when this item was first reached.
    containing_commit_oid: Optional[str] = None
    # Filled in after the walk by name resolution.
    name_rev: Optional[str] = None


class LargeItemVec:
    """The K largest items offered so far, largest first.

    Equal sizes keep discovery order, and once the vector is full a
    candidate has to be strictly larger than the current tail to get in.
    A capacity of zero disables the dimension.
    """

    def __init__(
        self,
        capacity: int,
        kind: ObjectKind,
        labels_json: LargeItemLabels,
        labels_pretty: LargeItemLabels,
    ):
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        self.capacity = capacity
        self.kind = kind
        self.labels_json = labels_json
        self.labels_pretty = labels_pretty
        self._items: list[LargeItem] = []

    @property
    def enabled(self) -> bool:
        return self.capacity > 0

    @property
    def items(self) -> list[LargeItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self.capacity

    @property
    def min_size(self) -> Optional[int]:
        return self._items[-1].size if self._items else None

    def offer(
        self,
        size: int,
        oid: str,
        name: Optional[str] = None,
        containing_commit_oid: Optional[str] = None,
    ) -> bool:
        """Insert the candidate if it ranks among the K largest.

        Ties keep first-seen order: a candidate goes after every retained
        item of the same size, and one equal to the smallest retained item
        of a full vector is rejected. ``git survey`` does the opposite and
        lets a tying newcomer displace earlier items, so with ties the two
        may list different objects.

        Returns True when the candidate was retained.
        """
        if not self.capacity:
            return False

        items = self._items
        full = len(items) >= self.capacity
        if full and size <= items[-1].size:
            return False

        k = 0
        while k < len(items) and items[k].size >= size:
            k += 1

        if not name and self.kind is ObjectKind.TREE and containing_commit_oid:
            # Root trees have no path; name them after their commit.
            name = f"{containing_commit_oid}^{{tree}}"

        items.insert(
            k,
            LargeItem(
                size=size,
                oid=oid,
                name=name or "",
                containing_commit_oid=containing_commit_oid,
            ),
        )
        if len(items) > self.capacity:
            items.pop()
        return True

    def pending_commit_oids(self) -> list[str]:
        """Containing commits of retained items that still lack a name_rev."""
        return [
            item.containing_commit_oid
            for item in self._items
            if item.containing_commit_oid and item.name_rev is None
        ]

    def apply_names(self, names: Mapping[str, str]) -> int:
        """Attach resolved names. Returns how many items were named."""
        named = 0
        for item in self._items:
            if item.name_rev is not None or not item.containing_commit_oid:
                continue
            label = names.get(item.containing_commit_oid)
            if label:
                item.name_rev = label
                named += 1
        return named

    def display_commit(self, item: LargeItem) -> str:
        """Name rev when known, else the raw containing commit id."""
        return item.name_rev or item.containing_commit_oid or ""

