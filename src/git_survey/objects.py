"""Value types shared between the stats engine and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ObjectKind(str, Enum):
    COMMIT = "commit"
    TREE = "tree"
    BLOB = "blob"
    TAG = "tag"

    @classmethod
    def parse(cls, value: str) -> Optional["ObjectKind"]:
        try:
            return cls(value)
        except ValueError:
            return None


class Whence(str, Enum):
    """Where an object's bytes were found."""

    CACHED = "cached"
    LOOSE = "loose"
    PACKED = "packed"
    DBCACHED = "dbcached"


@dataclass(frozen=True)
class ObjectInfo:
    """Result of an object metadata lookup."""

    oid: str
    kind: ObjectKind
    size: int
    disk_size: int
    whence: Whence


@dataclass(frozen=True)
class TreeEntry:
    mode: str
    name: str
    oid: str

    @property
    def kind(self) -> ObjectKind:
        if self.mode == "40000":
            return ObjectKind.TREE
        if self.mode == "160000":
            return ObjectKind.COMMIT
        return ObjectKind.BLOB


@dataclass(frozen=True)
class CommitEvent:
    """A commit reached by the walk. Parents come from the commit header."""

    oid: str
    parents: tuple[str, ...] = ()


@dataclass(frozen=True)
class ObjectEvent:
    """A tree or blob reached by the walk, with the path it was reached by.

    Root trees have an empty path.
    """

    oid: str
    kind: ObjectKind
    path: str = ""


@dataclass(frozen=True)
class MissingEvent:
    """An object the walk names but the repository does not have.

    ``kind`` is None when no tree or commit seen by the walk refers to it.
    """

    oid: str
    kind: Optional[ObjectKind] = None


TraversalEvent = Union[CommitEvent, ObjectEvent, MissingEvent]


@dataclass
class TraversalContext:
    """Per-pass state threaded through the event handlers.

    ``commit_oid`` is the commit whose tree is currently being walked. It
    only changes at commit events.
    """

    commit_oid: Optional[str] = None
    commits_seen: int = 0
    objects_seen: int = 0
