"""Exception hierarchy for git-survey."""

from .base import GitSurveyError
from .config import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
)
from .survey import (
    GitCommandError,
    NotAGitRepositoryError,
    SurveyError,
    SurveySetupError,
)

__all__ = [
    "GitSurveyError",
    "SurveyError",
    "SurveySetupError",
    "GitCommandError",
    "NotAGitRepositoryError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
]
