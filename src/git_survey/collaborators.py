"""Interfaces the stats engine uses to reach the repository.

The engine never touches object storage directly. It asks a RefStore for
refs, a Traversal for the reachable objects, an ObjectStore for object
metadata and tree entries, and optionally a NameResolver for friendly commit
names. ``git_survey.git`` implements all four on top of the git CLI; tests
use in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Iterator, Mapping, Optional, Sequence

from .objects import ObjectInfo, ObjectKind, TraversalEvent, TreeEntry
from .refs import RefRecord


class RefStore(ABC):
    """Enumerates refs and peels tags."""

    @abstractmethod
    def list_refs(self, patterns: Sequence[str]) -> list[RefRecord]:
        """Refs matching any of the path-prefix ``patterns``, sorted by object id.

        Raises SurveySetupError when the refs cannot be read.
        """

    @abstractmethod
    def peel(self, oid: str) -> Optional[str]:
        """Id of the non-tag object an annotated tag points to, else None."""


class ObjectStore(ABC):
    """Object metadata lookup and tree entry decoding."""

    @abstractmethod
    def lookup(self, oid: str, expected: ObjectKind) -> Optional[ObjectInfo]:
        """Metadata for ``oid``, or None if it is missing or not ``expected``."""

    @abstractmethod
    def tree_entries(self, oid: str) -> Optional[list[TreeEntry]]:
        """Immediate entries of a tree, or None if it cannot be read."""


class Traversal(ABC):
    """Walks every object reachable from a set of starting points."""

    @abstractmethod
    def walk(self, starting_oids: Iterable[str]) -> Iterator[TraversalEvent]:
        """Yield one event per reachable commit, tree and blob.

        A commit's trees and blobs follow its CommitEvent. Objects the
        repository lacks arrive as MissingEvents, which need not follow their
        commit. Each object is reported once. Raises SurveySetupError if
        the walk cannot start or does not complete.
        """


class NameResolver(ABC):
    """Best-effort descriptive names for commits."""

    @abstractmethod
    def resolve(self, commit_oids: Sequence[str]) -> Mapping[str, str]:
        """Map commit id to a label such as ``main~3``.

        Ids that cannot be named are left out. Implementations must not raise
        for lookup failures.
        """
