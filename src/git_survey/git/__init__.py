"""Collaborators backed by the git command line."""

from .namerev import GitNameResolver
from .objects import GitObjectStore, decode_tree
from .refs import GitRefStore
from .runner import ensure_repository, read_survey_config, run_git
from .traversal import GitTraversal

__all__ = [
    "GitNameResolver",
    "GitObjectStore",
    "GitRefStore",
    "GitTraversal",
    "decode_tree",
    "ensure_repository",
    "read_survey_config",
    "run_git",
]
