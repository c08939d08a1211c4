"""CLI entry point."""

import typer

app = typer.Typer(
    name="git-survey",
    help="git-survey - Measure the shape and size of a git repository",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import the command to register it
from .survey import survey as _survey  # noqa: F401, E402


def main() -> None:
    app()
