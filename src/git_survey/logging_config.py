"""
Logging configuration for git-survey.

Log records go to stderr through rich so that the report on stdout stays
clean enough to pipe into other tools.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging with rich handler for colored output.

    Args:
        verbose: Enable DEBUG level logging

    Returns:
        Configured logger instance for git_survey
    """
    level = logging.DEBUG if verbose else logging.WARNING

    console = Console(stderr=True)

    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=True,
        show_path=verbose,
    )

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True
    )

    logger = logging.getLogger("git_survey")
    logger.setLevel(level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Module name (e.g., 'git_survey.accumulator')
              If None, returns the root git_survey logger

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger("git_survey")

    if not name.startswith("git_survey"):
        name = f"git_survey.{name}"

    return logging.getLogger(name)
