"""Survey run exceptions: repository setup and git subprocess failures.

Only setup failures are raised. Objects that cannot be read during the walk
are counted as missing, and name resolution failures are ignored, so neither
has an exception type here.
"""

from pathlib import Path
from typing import Optional, Sequence

from .base import GitSurveyError


class SurveyError(GitSurveyError):
    """Base class for errors raised while running a survey."""

    pass


class SurveySetupError(SurveyError):
    """Raised when refs cannot be enumerated or the walk cannot start."""

    def __init__(self, reason: str, repo_path: Optional[Path] = None):
        details = {"reason": reason}
        if repo_path is not None:
            details["repo"] = str(repo_path)
        super().__init__(f"Survey setup failed: {reason}", details=details)
        self.reason = reason
        self.repo_path = repo_path


class NotAGitRepositoryError(SurveySetupError):
    """Raised when the target path is not inside a git repository."""

    def __init__(self, repo_path: Path):
        super().__init__("not a git repository", repo_path=repo_path)


class GitCommandError(SurveySetupError):
    """Raised when a git subprocess fails to start or exits non-zero."""

    def __init__(self, command: Sequence[str], returncode: Optional[int], stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr.strip()
        reason = f"`{' '.join(self.command)}` failed"
        if returncode is not None:
            reason += f" with exit code {returncode}"
        if self.stderr:
            reason += f": {self.stderr}"
        super().__init__(reason)
