"""Friendly commit names through ``git name-rev``."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ..collaborators import NameResolver
from ..exceptions import GitCommandError
from ..logging_config import get_logger
from .runner import run_git

logger = get_logger(__name__)


class GitNameResolver(NameResolver):
    """One ``git name-rev --annotate-stdin`` call per batch.

    name-rev can be very slow on repositories with many refs, which is why
    the survey makes this step optional. Any failure yields no names.
    """

    def __init__(self, repo_path: Path):
        self.repo_path = Path(repo_path)

    def resolve(self, commit_oids: Sequence[str]) -> dict[str, str]:
        oids = list(dict.fromkeys(commit_oids))
        if not oids:
            return {}
        try:
            result = run_git(
                self.repo_path,
                ["name-rev", "--name-only", "--annotate-stdin"],
                input="".join(f"{oid}\n" for oid in oids),
            )
        except GitCommandError as e:
            logger.debug("name-rev failed, keeping raw commit ids: %s", e)
            return {}

        names: dict[str, str] = {}
        for oid, line in zip(oids, result.stdout.splitlines()):
            label = line.strip()
            if label and label != oid:
                names[oid] = label
        return names
