"""Thin wrappers around running git as a subprocess."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from ..exceptions import GitCommandError, NotAGitRepositoryError
from ..logging_config import get_logger

logger = get_logger(__name__)

GIT = "git"

# Never fetch missing objects from a promisor remote behind our back.
NO_LAZY_FETCH = {"GIT_NO_LAZY_FETCH": "1"}


def git_env() -> dict[str, str]:
    """Environment for every git child process."""
    env = dict(os.environ)
    env.update(NO_LAZY_FETCH)
    return env


def git_command(repo_path: Path, *args: str) -> list[str]:
    return [GIT, "-C", str(repo_path), *args]


def run_git(
    repo_path: Path,
    args: Sequence[str],
    input: Optional[str] = None,
    check: bool = True,
    ok_returncodes: Sequence[int] = (0,),
) -> subprocess.CompletedProcess:
    """Run git and capture text output.

    Raises GitCommandError if git cannot be started, or if ``check`` is set
    and the exit code is not in ``ok_returncodes``.
    """
    cmd = git_command(repo_path, *args)
    logger.debug("running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            input=input,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="surrogateescape",
            env=git_env(),
        )
    except (FileNotFoundError, PermissionError) as e:
        raise GitCommandError(cmd, None, str(e)) from e

    if check and result.returncode not in ok_returncodes:
        raise GitCommandError(cmd, result.returncode, result.stderr)
    return result


def ensure_repository(repo_path: Path) -> Path:
    """Return the resolved path, or raise NotAGitRepositoryError."""
    repo_path = Path(repo_path).resolve()
    if not repo_path.is_dir():
        raise NotAGitRepositoryError(repo_path)
    result = run_git(repo_path, ["rev-parse", "--git-dir"], check=False)
    if result.returncode != 0:
        raise NotAGitRepositoryError(repo_path)
    return repo_path


def git_path(repo_path: Path, flag: str, *extra: str) -> Path:
    """Resolve ``git rev-parse <flag>`` to an absolute path."""
    out = run_git(repo_path, ["rev-parse", flag, *extra]).stdout.strip()
    path = Path(out)
    if not path.is_absolute():
        path = repo_path / path
    return path


def read_survey_config(repo_path: Path) -> dict[str, Optional[str]]:
    """All ``survey.*`` keys from the repository's git config, lower-cased.

    A key given without a value (``[survey] json``) maps to None, which git
    treats as true.
    """
    result = run_git(
        repo_path,
        ["config", "--null", "--get-regexp", r"^survey\."],
        ok_returncodes=(0, 1),
    )
    values: dict[str, Optional[str]] = {}
    for record in result.stdout.split("\0"):
        if not record:
            continue
        key, sep, value = record.partition("\n")
        values[key.lower()] = value if sep else None
    return values
