"""Ref selection and classification.

The ref store labels each ref with a coarse kind derived only from the shape
of its name. This module decides which kinds were asked for, builds the name
patterns handed to the ref store, and folds the resulting ref list into
RefStats.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from .logging_config import get_logger
from .models import RefStats

if TYPE_CHECKING:
    from .collaborators import RefStore

logger = get_logger(__name__)


class RefKind(str, Enum):
    BRANCH = "branch"
    TAG = "tag"
    REMOTE = "remote"
    DETACHED = "detached"
    OTHER = "other"
    UNKNOWN = "unknown"


_PREFIX_KINDS = (
    ("refs/heads/", RefKind.BRANCH),
    ("refs/remotes/", RefKind.REMOTE),
    ("refs/tags/", RefKind.TAG),
)


def classify_refname(refname: str) -> RefKind:
    """Coarse kind of a ref from its name alone.

    Notes, stashes and custom namespaces such as ``refs/prefetch/`` are all
    OTHER.
    """
    for prefix, kind in _PREFIX_KINDS:
        if refname.startswith(prefix):
            return kind
    if refname == "HEAD":
        return RefKind.DETACHED
    if refname.startswith("refs/"):
        return RefKind.OTHER
    return RefKind.UNKNOWN


@dataclass(frozen=True)
class RefRecord:
    name: str
    oid: str
    kind: RefKind
    symbolic: bool = False
    packed: bool = False

    @classmethod
    def from_name(cls, name: str, oid: str, symbolic: bool = False, packed: bool = False):
        return cls(name=name, oid=oid, kind=classify_refname(name), symbolic=symbolic, packed=packed)


@dataclass(frozen=True)
class RefsWanted:
    """Which classes of refs to survey.

    ``None`` means "not given". See resolve() for how that is settled.
    """

    all_refs: bool = False
    branches: Optional[bool] = None
    tags: Optional[bool] = None
    remotes: Optional[bool] = None
    detached: Optional[bool] = None
    other: Optional[bool] = None

    _CLASSES = ("branches", "tags", "remotes", "detached", "other")

    def resolve(self) -> "RefsWanted":
        """Settle unspecified classes.

        ``all_refs`` turns everything on. If no class was named at all the
        defaults are branches, tags and remotes. Otherwise only the named
        classes are surveyed.
        """
        if self.all_refs:
            return replace(self, branches=True, tags=True, remotes=True, detached=True, other=True)
        if all(getattr(self, name) is None for name in self._CLASSES):
            return DEFAULT_REFS_WANTED
        return replace(self, **{name: bool(getattr(self, name)) for name in self._CLASSES})

    def patterns(self) -> list[str]:
        """Ref name prefixes to hand to the ref store."""
        wanted = self.resolve()
        patterns = []
        if wanted.detached:
            patterns.append("HEAD")
        if wanted.all_refs:
            patterns.append("refs/")
            return patterns
        if wanted.branches:
            patterns.append("refs/heads/")
        if wanted.tags:
            patterns.append("refs/tags/")
        if wanted.remotes:
            patterns.append("refs/remotes/")
        if wanted.other:
            patterns.extend(["refs/notes/", "refs/stash/"])
        return patterns


DEFAULT_REFS_WANTED = RefsWanted(
    all_refs=False, branches=True, tags=True, remotes=True, detached=False, other=False
)


def class_label(refname: str, prefix: str) -> str:
    """Truncate ``refname`` after the first path segment following ``prefix``.

    >>> class_label("refs/remotes/origin/main", "refs/remotes/")
    'refs/remotes/origin/'
    >>> class_label("refs/notes/commits", "refs/")
    'refs/notes/'
    """
    if not refname.startswith(prefix):
        return refname
    slash = refname.find("/", len(prefix))
    if slash < 0:
        return refname
    return refname[: slash + 1]


Peeler = Callable[[str], Optional[str]]


class RefClassifier:
    """Folds an ordered ref list into RefStats."""

    def __init__(self, wanted: RefsWanted, peel: Peeler, stats: Optional[RefStats] = None):
        self.wanted = wanted.resolve()
        self.peel = peel
        self.stats = stats if stats is not None else RefStats()

    @classmethod
    def for_store(cls, wanted: RefsWanted, store: "RefStore", stats: Optional[RefStats] = None):
        return cls(wanted, store.peel, stats)

    def _count_kind(self, ref: RefRecord) -> bool:
        """Bump the per-class counters if this kind of ref was asked for."""
        w = self.wanted
        s = self.stats

        if ref.kind is RefKind.TAG:
            if not w.tags:
                return False
            s.incr_class("refs/tags/")
            if self.peel(ref.oid) is not None:
                s.annotated_tags += 1
            else:
                s.lightweight_tags += 1
            return True

        if ref.kind is RefKind.BRANCH:
            if not w.branches:
                return False
            s.incr_class("refs/heads/")
            s.branches += 1
            return True

        if ref.kind is RefKind.REMOTE:
            if not w.remotes:
                return False
            # Group by remote, e.g. "refs/remotes/origin/".
            if ref.name.startswith("refs/remotes/"):
                s.incr_class(class_label(ref.name, "refs/remotes/"))
            s.remotes += 1
            return True

        if ref.kind is RefKind.OTHER:
            if not w.other:
                return False
            # Group by "refs/<class>/": notes, stash, custom namespaces.
            if ref.name.startswith("refs/"):
                s.incr_class(class_label(ref.name, "refs/"))
            s.other += 1
            return True

        if ref.kind is RefKind.DETACHED:
            if not w.detached:
                return False
            s.incr_class(ref.name)
            s.detached += 1
            return True

        if w.all_refs:
            s.incr_class(ref.name)
            return True
        return False

    def add(self, ref: RefRecord) -> bool:
        """Account for one ref. Returns False if it was skipped."""
        if not self._count_kind(ref):
            logger.debug("skipping ref %s (%s)", ref.name, ref.kind.value)
            return False

        s = self.stats
        s.count_total += 1

        # Symrefs are orthogonal to the kinds above ("HEAD" is detached,
        # "refs/remotes/origin/HEAD" is a remote), so they are already in
        # the per-class totals.
        if ref.symbolic:
            s.symrefs += 1

        if ref.packed:
            s.packed += 1
        else:
            s.loose += 1

        length = len(ref.name)
        if ref.kind is RefKind.REMOTE:
            s.len_sum_remote += length
            s.len_max_remote = max(s.len_max_remote, length)
        else:
            s.len_sum_local += length
            s.len_max_local = max(s.len_max_local, length)
        return True

    def classify(self, refs: Iterable[RefRecord]) -> RefStats:
        for ref in refs:
            self.add(ref)
        return self.stats
