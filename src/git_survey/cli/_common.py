"""Shared CLI helpers."""

from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from ..config import SurveyConfig, load_config

err_console = Console(stderr=True)

EXPERIMENTAL_WARNING = "(THIS IS EXPERIMENTAL, EXPECT THE OUTPUT FORMAT TO CHANGE!)"


def resolve_config(
    repo_path: Path,
    config: Optional[Path] = None,
    ref_flags: Optional[Dict[str, bool]] = None,
    **options: Any,
) -> SurveyConfig:
    """Build the survey config from CLI options.

    Ref class flags can only switch a class on, so an unset flag is left
    for the lower config layers to decide.
    """
    overrides = {k: v for k, v in options.items() if v is not None}
    for name, given in (ref_flags or {}).items():
        if given:
            overrides[name] = True
    return load_config(repo_path=repo_path, config_file=config, **overrides)
