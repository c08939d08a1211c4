"""Tests for the git-survey exception hierarchy."""

from pathlib import Path

import pytest

from git_survey.exceptions import (
    ConfigurationError,
    GitCommandError,
    GitSurveyError,
    InvalidConfigError,
    InvalidPathError,
    NotAGitRepositoryError,
    SurveyError,
    SurveySetupError,
)


class TestHierarchy:
    """Every error is catchable as GitSurveyError."""

    @pytest.mark.parametrize(
        "exc",
        [
            ConfigurationError("bad"),
            InvalidPathError(Path("/x"), "missing"),
            InvalidConfigError("blob_sizes", -1, "must be non-negative"),
            SurveySetupError("no refs"),
            NotAGitRepositoryError(Path("/tmp/x")),
            GitCommandError(["git", "rev-list"], 128, "fatal: bad object"),
        ],
    )
    def test_base_class(self, exc):
        assert isinstance(exc, GitSurveyError)

    def test_setup_errors_are_survey_errors(self):
        assert issubclass(SurveySetupError, SurveyError)
        assert issubclass(GitCommandError, SurveySetupError)
        assert issubclass(NotAGitRepositoryError, SurveySetupError)


class TestMessages:
    def test_details_rendered(self):
        err = GitSurveyError("boom", details={"repo": "/r"})
        assert str(err) == "boom (repo=/r)"
        assert err.message == "boom"

    def test_no_details(self):
        assert str(GitSurveyError("boom")) == "boom"

    def test_git_command_error(self):
        err = GitCommandError(["git", "-C", "/r", "rev-list"], 128, "fatal: bad object\n")
        assert err.returncode == 128
        assert err.stderr == "fatal: bad object"
        assert "exit code 128" in str(err)
        assert "fatal: bad object" in str(err)
        assert str(err).startswith("Survey setup failed: `git -C /r rev-list` failed")

    def test_git_not_started(self):
        err = GitCommandError(["git", "x"], None, "No such file")
        assert "exit code" not in str(err)

    def test_not_a_repository(self):
        err = NotAGitRepositoryError(Path("/tmp/x"))
        assert err.repo_path == Path("/tmp/x")
        assert err.details["repo"] == str(Path("/tmp/x"))

    def test_invalid_config(self):
        err = InvalidConfigError("tree_sizes", "ten", "must be an integer")
        assert err.key == "tree_sizes"
        assert err.details["reason"] == "must be an integer"
