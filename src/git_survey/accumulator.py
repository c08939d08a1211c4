"""Fold traversal events into per-kind object stats.

Each reachable commit, tree and blob is seen exactly once, in walk order.
Objects that cannot be looked up, or turn out to be of the wrong type, are
counted as missing and otherwise skipped. Objects the walk reports as absent
are counted under their kind when it is known, and as untyped otherwise.
Partial and shallow clones produce these routinely, so they never abort the
pass.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from .collaborators import ObjectStore
from .logging_config import get_logger
from .models import ObjectBaseStats, SurveyStats
from .objects import (
    CommitEvent,
    MissingEvent,
    ObjectEvent,
    ObjectInfo,
    ObjectKind,
    TraversalContext,
    TraversalEvent,
)

logger = get_logger(__name__)

ProgressCallback = Callable[[TraversalContext], None]

PROGRESS_EVERY = 1000


class ObjectStatsAccumulator:
    """Consumes traversal events and updates a SurveyStats in place."""

    def __init__(self, stats: SurveyStats, store: ObjectStore):
        self.stats = stats
        self.store = store

    def _fill_base(self, base: ObjectBaseStats, oid: str, kind: ObjectKind) -> Optional[ObjectInfo]:
        base.seen += 1
        info = self.store.lookup(oid, kind)
        if info is None or info.kind is not kind:
            base.missing += 1
            logger.debug("missing %s %s", kind.value, oid)
            return None
        base.record(info.size, info.disk_size, info.whence)
        return info

    def on_commit(self, event: CommitEvent, ctx: TraversalContext) -> None:
        commits = self.stats.commits
        ctx.commit_oid = event.oid
        ctx.commits_seen += 1

        info = self._fill_base(commits.base, event.oid, ObjectKind.COMMIT)
        if info is None:
            return

        nr_parents = len(event.parents)
        # The commit is its own containing commit so name-rev can treat all
        # dimensions alike.
        commits.largest_by_nr_parents.offer(nr_parents, event.oid, None, event.oid)
        commits.largest_by_size.offer(info.size, event.oid, None, event.oid)
        commits.count_parents(nr_parents)

    def on_tree(self, event: ObjectEvent, ctx: TraversalContext) -> None:
        trees = self.stats.trees
        info = self._fill_base(trees.base, event.oid, ObjectKind.TREE)
        if info is None:
            return

        entries = self.store.tree_entries(event.oid)
        if entries is None:
            logger.debug("cannot decode tree %s", event.oid)
            return
        nr_entries = len(entries)

        trees.sum_entries += nr_entries
        trees.largest_by_nr_entries.offer(nr_entries, event.oid, event.path, ctx.commit_oid)
        trees.largest_by_size.offer(info.size, event.oid, event.path, ctx.commit_oid)
        trees.entry_hist.record(nr_entries, info.size, info.disk_size)

    def on_blob(self, event: ObjectEvent, ctx: TraversalContext) -> None:
        blobs = self.stats.blobs
        info = self._fill_base(blobs.base, event.oid, ObjectKind.BLOB)
        if info is None:
            return
        blobs.largest_by_size.offer(info.size, event.oid, event.path, ctx.commit_oid)

    def on_object(self, event: ObjectEvent, ctx: TraversalContext) -> None:
        ctx.objects_seen += 1
        if event.kind is ObjectKind.TREE:
            self.on_tree(event, ctx)
        elif event.kind is ObjectKind.BLOB:
            self.on_blob(event, ctx)
        # Tags are counted with the refs; commits arrive as CommitEvents.

    def on_missing(self, event: MissingEvent, ctx: TraversalContext) -> None:
        """Count an object the repository lacks, without asking the store for it."""
        ctx.objects_seen += 1
        if event.kind in (ObjectKind.COMMIT, ObjectKind.TREE, ObjectKind.BLOB):
            base = self.stats.base_for(event.kind)
            base.seen += 1
            base.missing += 1
            logger.debug("missing %s %s", event.kind.value, event.oid)
        else:
            self.stats.missing_untyped += 1
            logger.debug("missing object %s of unknown type", event.oid)

    def consume(
        self,
        events: Iterable[TraversalEvent],
        ctx: Optional[TraversalContext] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> TraversalContext:
        """Process a whole walk. Returns the final context."""
        if ctx is None:
            ctx = TraversalContext()
        n = 0
        for event in events:
            if isinstance(event, CommitEvent):
                self.on_commit(event, ctx)
            elif isinstance(event, MissingEvent):
                self.on_missing(event, ctx)
            else:
                self.on_object(event, ctx)
            n += 1
            if progress is not None and n % PROGRESS_EVERY == 0:
                progress(ctx)
        if progress is not None:
            progress(ctx)
        ctx.commit_oid = None
        return ctx
