"""Run a survey: refs, treewalk, ref stats, then optional name resolution.

The refs phase loads the requested refs and uses them as starting points
for a walk over every reachable object. The resulting stats describe the
repository itself (number of refs, shape of the DAG, number and size of
objects) and are largely independent of how it happens to be packed.

Example:
    >>> from git_survey import survey_repository
    >>> stats = survey_repository(".")
    >>> stats.blobs.base.seen
    1234
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union

from .accumulator import ObjectStatsAccumulator
from .collaborators import NameResolver, ObjectStore, RefStore, Traversal
from .config import SurveyConfig, load_config
from .exceptions import SurveySetupError
from .logging_config import get_logger
from .models import SurveyStats
from .objects import TraversalContext
from .refs import RefClassifier, RefKind, RefRecord

logger = get_logger(__name__)


class SurveyProgress:
    """Progress sink for the survey phases. The base class ignores updates."""

    def start(self, title: str) -> None:
        pass

    def update(self, count: int) -> None:
        pass

    def stop(self) -> None:
        pass


def allocate_stats(config: SurveyConfig) -> SurveyStats:
    return SurveyStats.allocate(requested=config.wanted.patterns(), **config.largest())


def starting_points(refs: Iterable[RefRecord], peel) -> list[str]:
    """Object ids to walk from. Tags are peeled to what they point at."""
    oids = []
    for ref in refs:
        if ref.kind is RefKind.TAG:
            oids.append(peel(ref.oid) or ref.oid)
        elif ref.kind is RefKind.UNKNOWN:
            continue
        else:
            oids.append(ref.oid)
    return oids


def load_refs(config: SurveyConfig, ref_store: RefStore, progress: SurveyProgress) -> list[RefRecord]:
    patterns = config.wanted.patterns()
    progress.start("Scanning refs...")
    try:
        refs = ref_store.list_refs(patterns)
    except SurveySetupError:
        raise
    except OSError as e:
        raise SurveySetupError(f"cannot enumerate refs: {e}")
    progress.update(len(refs))
    progress.stop()
    return refs


def walk_reachable(
    stats: SurveyStats,
    refs: list[RefRecord],
    ref_store: RefStore,
    traversal: Traversal,
    object_store: ObjectStore,
    progress: SurveyProgress,
) -> TraversalContext:
    accumulator = ObjectStatsAccumulator(stats, object_store)
    starts = starting_points(refs, ref_store.peel)
    logger.info("walking objects reachable from %d starting points", len(starts))

    progress.start("Walking reachable objects...")
    ctx = accumulator.consume(
        traversal.walk(starts),
        progress=lambda c: progress.update(c.commits_seen + c.objects_seen),
    )
    progress.stop()
    logger.info("walked %d commits and %d objects", ctx.commits_seen, ctx.objects_seen)
    return ctx


def resolve_names(stats: SurveyStats, resolver: NameResolver, progress: SurveyProgress) -> None:
    """Attach name-rev labels to every tracked item, best effort.

    The commits of all trackers are resolved in one batch. If that fails
    every item falls back to its commit id.
    """
    trackers = stats.trackers()
    pending = list(
        dict.fromkeys(oid for vec in trackers for oid in vec.pending_commit_oids())
    )
    if not pending:
        return
    progress.start("Resolving name-revs...")
    try:
        names = resolver.resolve(pending)
    except Exception as e:
        logger.debug("name resolution failed for %d commits: %s", len(pending), e)
        names = {}
    for vec in trackers:
        vec.apply_names(names)
    progress.update(len(pending))
    progress.stop()


def run_survey(
    config: SurveyConfig,
    ref_store: RefStore,
    traversal: Traversal,
    object_store: ObjectStore,
    name_resolver: Optional[NameResolver] = None,
    progress: Optional[SurveyProgress] = None,
) -> SurveyStats:
    """Survey with explicit collaborators.

    Raises SurveySetupError if refs cannot be listed or the walk fails.
    """
    progress = progress or SurveyProgress()
    stats = allocate_stats(config)

    refs = load_refs(config, ref_store, progress)
    walk_reachable(stats, refs, ref_store, traversal, object_store, progress)
    RefClassifier.for_store(config.wanted, ref_store, stats.refs).classify(refs)

    if config.show_name_rev and name_resolver is not None:
        resolve_names(stats, name_resolver, progress)

    return stats


def survey_repository(
    repo_path: Union[str, Path] = ".",
    config: Optional[SurveyConfig] = None,
    progress: Optional[SurveyProgress] = None,
) -> SurveyStats:
    """Survey a git repository on disk using the git command line."""
    from .git import (
        GitNameResolver,
        GitObjectStore,
        GitRefStore,
        GitTraversal,
        ensure_repository,
    )

    path = ensure_repository(Path(repo_path))
    if config is None:
        config = load_config(repo_path=path)

    with GitObjectStore(path) as objects:
        return run_survey(
            config,
            ref_store=GitRefStore(path, objects),
            traversal=GitTraversal(path, objects),
            object_store=objects,
            name_resolver=GitNameResolver(path),
            progress=progress,
        )
