"""Object metadata and content through long-lived ``git cat-file`` processes."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import IO, Optional

from ..collaborators import ObjectStore
from ..exceptions import GitCommandError
from ..logging_config import get_logger
from ..objects import ObjectInfo, ObjectKind, TreeEntry, Whence
from .runner import git_command, git_env, git_path

logger = get_logger(__name__)

BATCH_CHECK_FORMAT = "%(objectname) %(objecttype) %(objectsize) %(objectsize:disk)"


def decode_tree(raw: bytes, hash_len: int) -> list[TreeEntry]:
    """Parse raw tree content: repeated ``<mode> SP <name> NUL <hash>``.

    Raises ValueError on truncated or malformed content.
    """
    entries = []
    pos = 0
    end = len(raw)
    while pos < end:
        sp = raw.find(b" ", pos)
        if sp < 0:
            raise ValueError(f"malformed tree entry at offset {pos}: no mode terminator")
        nul = raw.find(b"\0", sp + 1)
        if nul < 0:
            raise ValueError(f"malformed tree entry at offset {pos}: no name terminator")
        oid_end = nul + 1 + hash_len
        if oid_end > end:
            raise ValueError(f"truncated tree entry at offset {pos}")
        entries.append(
            TreeEntry(
                mode=raw[pos:sp].decode("ascii"),
                name=raw[sp + 1 : nul].decode("utf-8", "surrogateescape"),
                oid=raw[nul + 1 : oid_end].hex(),
            )
        )
        pos = oid_end
    return entries


def parse_commit_header(raw: bytes) -> tuple[Optional[str], tuple[str, ...]]:
    """Root tree id and parent ids from the header of a raw commit."""
    tree = None
    parents = []
    for line in raw.split(b"\n"):
        if not line:
            break
        if line.startswith(b"tree "):
            tree = line[5:].decode("ascii").strip()
        elif line.startswith(b"parent "):
            parents.append(line[7:].decode("ascii").strip())
    return tree, tuple(parents)


def parse_commit_parents(raw: bytes) -> tuple[str, ...]:
    """Parent ids from the header of a raw commit."""
    return parse_commit_header(raw)[1]


class _CatFile:
    """One ``git cat-file --batch*`` child process, queried line by line."""

    def __init__(self, repo_path: Path, mode: str):
        self.cmd = git_command(repo_path, "cat-file", mode)
        try:
            self.proc = subprocess.Popen(
                self.cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                env=git_env(),
            )
        except (FileNotFoundError, PermissionError) as e:
            raise GitCommandError(self.cmd, None, str(e)) from e

    @property
    def _stdin(self) -> IO[bytes]:
        assert self.proc.stdin is not None
        return self.proc.stdin

    @property
    def _stdout(self) -> IO[bytes]:
        assert self.proc.stdout is not None
        return self.proc.stdout

    def header(self, spec: str) -> Optional[list[str]]:
        """Send one request and return the split header, or None if missing."""
        try:
            self._stdin.write(spec.encode("utf-8", "surrogateescape") + b"\n")
            self._stdin.flush()
        except BrokenPipeError as e:
            raise GitCommandError(self.cmd, self.proc.poll(), "cat-file exited early") from e
        line = self._stdout.readline()
        if not line:
            raise GitCommandError(self.cmd, self.proc.poll(), "cat-file exited early")
        fields = line.decode("utf-8", "surrogateescape").rstrip("\n").split(" ")
        # "<spec> missing" or "<spec> ambiguous"
        if len(fields) == 2 and fields[1] in ("missing", "ambiguous"):
            return None
        return fields

    def read_body(self, size: int) -> bytes:
        data = self._stdout.read(size)
        self._stdout.read(1)  # trailing LF
        return data

    def close(self) -> None:
        if self.proc.stdin and not self.proc.stdin.closed:
            self.proc.stdin.close()
        try:
            self.proc.wait(timeout=10)
        except subprocess.TimeoutExpired:
            self.proc.kill()
            self.proc.wait()
        if self.proc.stdout:
            self.proc.stdout.close()


class GitObjectStore(ObjectStore):
    """ObjectStore over a repository's object database.

    Storage tier is ``loose`` when the loose object file exists under the
    repository's object directory and ``packed`` otherwise. Objects only
    reachable through alternates therefore count as packed.
    """

    def __init__(self, repo_path: Path):
        self.repo_path = Path(repo_path)
        self.objects_dir = git_path(self.repo_path, "--git-path", "objects")
        self._check = _CatFile(self.repo_path, f"--batch-check={BATCH_CHECK_FORMAT}")
        self._content = _CatFile(self.repo_path, "--batch")
        self._last: Optional[ObjectInfo] = None

    def __enter__(self) -> "GitObjectStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._check.close()
        self._content.close()

    def _whence(self, oid: str) -> Whence:
        if (self.objects_dir / oid[:2] / oid[2:]).is_file():
            return Whence.LOOSE
        return Whence.PACKED

    def info(self, oid: str) -> Optional[ObjectInfo]:
        """Metadata for any object type, or None if it is missing."""
        # The walk types each object before the accumulator looks it up.
        if self._last is not None and self._last.oid == oid:
            return self._last
        fields = self._check.header(oid)
        if fields is None or len(fields) < 4:
            return None
        kind = ObjectKind.parse(fields[1])
        if kind is None:
            return None
        info = ObjectInfo(
            oid=fields[0],
            kind=kind,
            size=int(fields[2]),
            disk_size=int(fields[3]),
            whence=self._whence(fields[0]),
        )
        self._last = info
        return info

    def kind_of(self, oid: str) -> Optional[ObjectKind]:
        info = self.info(oid)
        return info.kind if info is not None else None

    def lookup(self, oid: str, expected: ObjectKind) -> Optional[ObjectInfo]:
        info = self.info(oid)
        if info is None or info.kind is not expected:
            return None
        return info

    def read(self, oid: str) -> Optional[tuple[ObjectKind, bytes]]:
        """Raw content of an object, or None if it is missing."""
        fields = self._content.header(oid)
        if fields is None or len(fields) < 3:
            return None
        body = self._content.read_body(int(fields[2]))
        kind = ObjectKind.parse(fields[1])
        if kind is None:
            return None
        return kind, body

    def tree_entries(self, oid: str) -> Optional[list[TreeEntry]]:
        obj = self.read(oid)
        if obj is None or obj[0] is not ObjectKind.TREE:
            return None
        try:
            return decode_tree(obj[1], len(oid) // 2)
        except ValueError as e:
            logger.debug("cannot decode tree %s: %s", oid, e)
            return None

    def commit_header(self, oid: str) -> tuple[Optional[str], tuple[str, ...]]:
        """Root tree and parents of a commit; (None, ()) if it cannot be read."""
        obj = self.read(oid)
        if obj is None or obj[0] is not ObjectKind.COMMIT:
            return None, ()
        return parse_commit_header(obj[1])

    def commit_parents(self, oid: str) -> tuple[str, ...]:
        return self.commit_header(oid)[1]

    def peel_tag(self, oid: str) -> Optional[str]:
        """Target of an annotated tag, following tag chains."""
        info = self.info(oid)
        if info is None or info.kind is not ObjectKind.TAG:
            return None
        fields = self._check.header(f"{oid}^{{}}")
        if fields is None or len(fields) < 2:
            return None
        return fields[0]
