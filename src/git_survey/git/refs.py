"""Ref enumeration through ``git for-each-ref``."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

from ..collaborators import RefStore
from ..logging_config import get_logger
from ..refs import RefRecord
from .objects import GitObjectStore
from .runner import git_path, run_git

logger = get_logger(__name__)

FOR_EACH_REF_FORMAT = "%(refname)%00%(objectname)%00%(objecttype)%00%(*objectname)%00%(symref)"


def read_packed_refs(path: Path) -> set[str]:
    """Names listed in a ``packed-refs`` file. Missing file means none."""
    names: set[str] = set()
    try:
        text = path.read_text(encoding="utf-8", errors="surrogateescape")
    except FileNotFoundError:
        return names
    for line in text.splitlines():
        # Skip the header and peeled ("^<oid>") lines.
        if not line or line[0] in "#^":
            continue
        _, _, name = line.partition(" ")
        if name:
            names.add(name)
    return names


class GitRefStore(RefStore):
    """RefStore over ``git for-each-ref``.

    A ref counts as packed when ``packed-refs`` lists it and no loose file
    overrides it. Repositories using the reftable backend report every ref
    as loose.
    """

    def __init__(self, repo_path: Path, objects: Optional[GitObjectStore] = None):
        self.repo_path = Path(repo_path)
        self.objects = objects
        self._peeled: dict[str, Optional[str]] = {}

    def _common_dir(self) -> Path:
        return git_path(self.repo_path, "--git-common-dir")

    def _detached_head(self) -> Optional[RefRecord]:
        symbolic = run_git(self.repo_path, ["symbolic-ref", "-q", "HEAD"], ok_returncodes=(0, 1))
        if symbolic.returncode == 0:
            return None
        head = run_git(self.repo_path, ["rev-parse", "--verify", "-q", "HEAD"], check=False)
        oid = head.stdout.strip()
        if head.returncode != 0 or not oid:
            # Unborn branch: nothing to survey.
            return None
        return RefRecord.from_name("HEAD", oid)

    def list_refs(self, patterns: Sequence[str]) -> list[RefRecord]:
        records: list[RefRecord] = []
        if "HEAD" in patterns:
            head = self._detached_head()
            if head is not None:
                records.append(head)

        ref_patterns = [p for p in patterns if p != "HEAD"]
        if ref_patterns:
            common_dir = self._common_dir()
            packed = read_packed_refs(common_dir / "packed-refs")
            result = run_git(
                self.repo_path,
                ["for-each-ref", f"--format={FOR_EACH_REF_FORMAT}", *ref_patterns],
            )
            for line in result.stdout.splitlines():
                fields = line.split("\0")
                if len(fields) != 5:
                    logger.warning("unexpected for-each-ref line: %r", line)
                    continue
                name, oid, objtype, peeled, symref = fields
                self._peeled[oid] = peeled if objtype == "tag" and peeled else None
                is_packed = name in packed and not (common_dir / name).is_file()
                records.append(
                    RefRecord.from_name(name, oid, symbolic=bool(symref), packed=is_packed)
                )

        records.sort(key=lambda r: (r.oid, r.name))
        logger.info("found %d refs matching %s", len(records), " ".join(patterns))
        return records

    def peel(self, oid: str) -> Optional[str]:
        if oid in self._peeled:
            return self._peeled[oid]
        if self.objects is None:
            return None
        peeled = self.objects.peel_tag(oid)
        self._peeled[oid] = peeled
        return peeled
