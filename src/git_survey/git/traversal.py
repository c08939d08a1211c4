"""Reachability walk through ``git rev-list --objects``."""

from __future__ import annotations

import subprocess
import tempfile
from pathlib import Path
from typing import Iterable, Iterator

from ..collaborators import Traversal
from ..exceptions import GitCommandError
from ..logging_config import get_logger
from ..objects import CommitEvent, MissingEvent, ObjectEvent, ObjectKind, TraversalEvent
from .objects import GitObjectStore
from .runner import git_command, git_env

logger = get_logger(__name__)

REV_LIST_ARGS = ("rev-list", "--objects", "--in-commit-order", "--missing=print", "--stdin")


def parse_rev_list_line(line: str):
    """Split one rev-list line into (marker, oid, path).

    Commit lines are a bare id. Tree and blob lines are ``<oid> <path>``,
    where a root tree still carries the separating space. Missing objects
    are ``?<oid>``.
    """
    if line.startswith("?"):
        return "missing", line[1:].strip(), ""
    oid, sep, path = line.partition(" ")
    if not sep:
        return "commit", oid, ""
    return "object", oid, path


class GitTraversal(Traversal):
    """Streams rev-list output and types each object via the object store.

    Commit parents and root trees are read from the commit header. rev-list
    reports missing objects without a type; once the stream has ended they
    are typed from the root trees and tree entries seen during the walk and
    reported as MissingEvents. Objects that nothing seen refers to keep no
    kind. Nothing is ever fetched from a promisor remote.
    """

    def __init__(self, repo_path: Path, store: GitObjectStore):
        self.repo_path = Path(repo_path)
        self.store = store
        self._missing: list[str] = []
        self._root_trees: set[str] = set()
        self._trees: list[str] = []

    def _event(self, line: str):
        marker, oid, path = parse_rev_list_line(line)
        if marker == "commit":
            tree, parents = self.store.commit_header(oid)
            if tree is not None:
                self._root_trees.add(tree)
            return CommitEvent(oid, parents)
        if marker == "missing":
            self._missing.append(oid)
            return None
        kind = self.store.kind_of(oid)
        if kind is None:
            # Named by rev-list but gone by the time we looked.
            self._missing.append(oid)
            return None
        if kind is ObjectKind.TREE:
            self._trees.append(oid)
            return ObjectEvent(oid, kind, path)
        if kind is ObjectKind.BLOB:
            return ObjectEvent(oid, kind, path)
        logger.debug("ignoring %s %s in object list", kind.value, oid)
        return None

    def _missing_kinds(self) -> dict[str, ObjectKind]:
        """Kinds of the missing objects, as recorded by whatever refers to them."""
        pending = set(self._missing)
        kinds = {oid: ObjectKind.TREE for oid in pending & self._root_trees}
        pending -= kinds.keys()
        for tree in self._trees:
            if not pending:
                break
            for entry in self.store.tree_entries(tree) or ():
                if entry.oid in pending:
                    kinds[entry.oid] = entry.kind
                    pending.discard(entry.oid)
        return kinds

    def _missing_events(self) -> Iterator[MissingEvent]:
        if not self._missing:
            return
        missing = list(dict.fromkeys(self._missing))
        kinds = self._missing_kinds()
        logger.info(
            "%d objects missing, %d of unknown type", len(missing), len(missing) - len(kinds)
        )
        for oid in missing:
            yield MissingEvent(oid, kinds.get(oid))

    def walk(self, starting_oids: Iterable[str]) -> Iterator[TraversalEvent]:
        starts = list(dict.fromkeys(starting_oids))
        if not starts:
            logger.info("no starting points, nothing to walk")
            return

        self._missing = []
        self._root_trees = set()
        self._trees = []

        cmd = git_command(self.repo_path, *REV_LIST_ARGS)
        # stderr goes to a file so a chatty git cannot block on a full pipe.
        errfile = tempfile.TemporaryFile()
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=errfile,
                env=git_env(),
            )
        except (FileNotFoundError, PermissionError) as e:
            errfile.close()
            raise GitCommandError(cmd, None, str(e)) from e

        assert proc.stdin is not None and proc.stdout is not None
        finished = False
        try:
            # rev-list reads all of stdin before it starts printing.
            proc.stdin.write("".join(f"{oid}\n" for oid in starts).encode("ascii"))
            proc.stdin.close()

            for raw in proc.stdout:
                line = raw.decode("utf-8", "surrogateescape").rstrip("\n")
                if not line:
                    continue
                event = self._event(line)
                if event is not None:
                    yield event

            returncode = proc.wait()
            errfile.seek(0)
            stderr = errfile.read().decode("utf-8", "replace")
            finished = True
            if returncode != 0:
                raise GitCommandError(cmd, returncode, stderr)
        finally:
            if not finished:
                proc.kill()
                proc.wait()
            proc.stdout.close()
            errfile.close()

        yield from self._missing_events()
