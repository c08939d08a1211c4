"""Configuration loading and management for git-survey.

Configuration sources are merged in priority order (lowest to highest):
    1. Defaults (defined in SurveyConfig)
    2. The repository's git config (``survey.*`` keys)
    3. Global config (~/.git-survey.toml)
    4. Project config (<repo>/git-survey.toml)
    5. Explicit config file
    6. Environment variables (GIT_SURVEY_* prefix)
    7. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(blob_sizes=25, show_json=True)
    >>> config.blob_sizes
    25
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional, get_type_hints

from .exceptions import ConfigurationError, GitCommandError, InvalidConfigError
from .logging_config import get_logger
from .models import DEFAULT_SHOW_LARGEST
from .refs import RefsWanted

logger = get_logger(__name__)

# Top-K capacities, one per tracked dimension.
LARGEST_FIELDS = ("commit_parents", "commit_sizes", "tree_entries", "tree_sizes", "blob_sizes")

REF_CLASS_FIELDS = ("all_refs", "branches", "tags", "remotes", "detached", "other")

# git config key -> SurveyConfig field
GIT_CONFIG_KEYS = {
    "survey.verbose": "verbose",
    "survey.progress": "show_progress",
    "survey.json": "show_json",
    "survey.namerev": "show_name_rev",
    "survey.showcommitparents": "commit_parents",
    "survey.showcommitsizes": "commit_sizes",
    "survey.showtreeentries": "tree_entries",
    "survey.showtreesizes": "tree_sizes",
    "survey.showblobsizes": "blob_sizes",
}


@dataclass(frozen=True)
class SurveyConfig:
    """Options for one survey run.

    Attributes:
        Output control:
            verbose: Enable debug logging
            show_progress: Show progress on stderr (None = only when stderr is a tty)
            show_json: Emit JSON instead of the text report
            show_name_rev: Run name-rev on the commits of reported items

        Largest-item tracking (0 disables a dimension):
            commit_parents: Commits with the most parents
            commit_sizes: Largest commits in bytes
            tree_entries: Trees with the most entries
            tree_sizes: Largest trees in bytes
            blob_sizes: Largest blobs in bytes

        Ref selection:
            refs: Which classes of refs to start the walk from
    """

    verbose: bool = False
    show_progress: Optional[bool] = None
    show_json: bool = False
    show_name_rev: bool = True

    commit_parents: int = DEFAULT_SHOW_LARGEST
    commit_sizes: int = DEFAULT_SHOW_LARGEST
    tree_entries: int = DEFAULT_SHOW_LARGEST
    tree_sizes: int = DEFAULT_SHOW_LARGEST
    blob_sizes: int = DEFAULT_SHOW_LARGEST

    refs: RefsWanted = field(default_factory=RefsWanted)

    def __post_init__(self) -> None:
        for name in LARGEST_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidConfigError(name, value, "must be an integer")
            if value < 0:
                raise InvalidConfigError(name, value, "must be non-negative")
        if not isinstance(self.refs, RefsWanted):
            raise InvalidConfigError("refs", self.refs, "must be a RefsWanted")

    @property
    def wanted(self) -> RefsWanted:
        """Ref classes with unspecified values settled."""
        return self.refs.resolve()

    def largest(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in LARGEST_FIELDS}


def parse_bool(value: Optional[str], key: str) -> bool:
    """git-style boolean. A bare key (None) is true."""
    if value is None:
        return True
    lower = value.strip().lower()
    if lower in ("true", "yes", "on", "1"):
        return True
    if lower in ("false", "no", "off", "0", ""):
        return False
    try:
        return int(lower) != 0
    except ValueError:
        raise InvalidConfigError(key, value, "expected a boolean")


_UNIT_FACTORS = {"k": 1024, "m": 1024**2, "g": 1024**3}


def parse_count(value: Optional[str], key: str) -> int:
    """Non-negative integer, optionally with a k/m/g suffix as git allows."""
    if value is None:
        raise InvalidConfigError(key, value, "expected a number")
    text = value.strip().lower()
    factor = 1
    if text and text[-1] in _UNIT_FACTORS:
        factor = _UNIT_FACTORS[text[-1]]
        text = text[:-1]
    try:
        number = int(text) * factor
    except ValueError:
        raise InvalidConfigError(key, value, "expected a number")
    if number < 0:
        raise InvalidConfigError(key, value, "must be non-negative")
    return number


def _from_git_config(values: Mapping[str, Optional[str]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, name in GIT_CONFIG_KEYS.items():
        if key not in values:
            continue
        if name in LARGEST_FIELDS:
            result[name] = parse_count(values[key], key)
        else:
            result[name] = parse_bool(values[key], key)
    return result


def _load_git_config(repo_path: Path) -> dict[str, Any]:
    from .git.runner import read_survey_config

    try:
        values = read_survey_config(repo_path)
    except GitCommandError as e:
        logger.debug("cannot read git config: %s", e)
        return {}
    return _from_git_config(values)


def load_config(
    repo_path: Optional[Path] = None,
    config_file: Optional[Path] = None,
    use_git_config: bool = True,
    **overrides: Any,
) -> SurveyConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        repo_path: Repository being surveyed; its git config and
            ``git-survey.toml`` are consulted
        config_file: Optional explicit config file path
        use_git_config: Read ``survey.*`` keys from git config
        **overrides: Direct overrides (typically from CLI flags). Ref class
            flags (``all_refs``, ``branches``, ...) are accepted directly.

    Returns:
        Validated SurveyConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict[str, Any] = {}
    ref_flags: dict[str, Any] = {}

    def take(layer: dict[str, Any]) -> None:
        layer = dict(layer)
        refs = layer.pop("refs", None)
        if isinstance(refs, RefsWanted):
            ref_flags.update({name: getattr(refs, name) for name in REF_CLASS_FIELDS})
        elif isinstance(refs, dict):
            ref_flags.update(refs)
        elif refs is not None:
            raise InvalidConfigError("refs", refs, "expected a table of ref classes")
        for name in REF_CLASS_FIELDS:
            if name in layer:
                ref_flags[name] = layer.pop(name)
        merged.update(layer)

    # 1. Repository git config
    if repo_path is not None and use_git_config:
        take(_load_git_config(Path(repo_path)))

    # 2. Global config
    global_config = Path.home() / ".git-survey.toml"
    if global_config.exists():
        take(_load_toml_checked(global_config, "global config"))

    # 3. Project config
    if repo_path is not None:
        project_config = Path(repo_path) / "git-survey.toml"
        if project_config.exists():
            take(_load_toml_checked(project_config, "project config"))

    # 4. Explicit config file
    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        take(_load_toml_checked(config_file, "config file"))

    # 5. Environment variables
    take(_load_env_vars())

    # 6. CLI overrides, skipping flags that were not given
    take({k: v for k, v in overrides.items() if v is not None})

    try:
        merged["refs"] = RefsWanted(**ref_flags)
    except TypeError as e:
        raise ConfigurationError(f"Invalid [refs] config: {e}")

    try:
        return SurveyConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_toml_checked(path: Path, label: str) -> dict[str, Any]:
    try:
        return _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid {label} '{path}': {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from GIT_SURVEY_* environment variables.

    Supported environment variables:
        GIT_SURVEY_VERBOSE, GIT_SURVEY_SHOW_PROGRESS, GIT_SURVEY_SHOW_JSON,
        GIT_SURVEY_SHOW_NAME_REV: bool (true/false/1/0)
        GIT_SURVEY_COMMIT_PARENTS, GIT_SURVEY_COMMIT_SIZES,
        GIT_SURVEY_TREE_ENTRIES, GIT_SURVEY_TREE_SIZES,
        GIT_SURVEY_BLOB_SIZES: int
        GIT_SURVEY_ALL_REFS, GIT_SURVEY_BRANCHES, GIT_SURVEY_TAGS,
        GIT_SURVEY_REMOTES, GIT_SURVEY_DETACHED, GIT_SURVEY_OTHER: bool

    Returns:
        Dict of field_name -> parsed_value for any GIT_SURVEY_* vars found.
    """
    type_hints = get_type_hints(SurveyConfig)
    result: dict[str, Any] = {}

    for f in fields(SurveyConfig):
        if f.name == "refs":
            continue
        env_key = f"GIT_SURVEY_{f.name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue
        if type_hints.get(f.name) is int:
            result[f.name] = parse_count(env_value, env_key)
        else:
            result[f.name] = parse_bool(env_value, env_key)

    for name in REF_CLASS_FIELDS:
        env_key = f"GIT_SURVEY_{name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is not None:
            result[name] = parse_bool(env_value, env_key)

    return result


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
