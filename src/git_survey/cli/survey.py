"""The survey command."""

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from ..exceptions import GitSurveyError, InvalidPathError
from ..formatters import get_formatter
from ..git import ensure_repository
from ..logging_config import setup_logging
from ..survey import SurveyProgress, survey_repository
from . import app
from ._common import EXPERIMENTAL_WARNING, err_console, resolve_config
from .progress import RichSurveyProgress


@app.command()
def survey(
    path: Optional[Path] = typer.Argument(
        None,
        help="Repository to survey (default: current directory)",
        file_okay=False,
        dir_okay=True,
    ),
    json_output: Optional[bool] = typer.Option(
        None,
        "--json/--no-json",
        help="Emit JSON instead of the text report",
    ),
    show_progress: Optional[bool] = typer.Option(
        None,
        "--progress/--no-progress",
        help="Show progress on stderr (default: when stderr is a terminal)",
    ),
    name_rev: Optional[bool] = typer.Option(
        None,
        "--name-rev/--no-name-rev",
        help="Name the commits of reported items with git name-rev (can be slow)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    all_refs: bool = typer.Option(False, "--all-refs", help="Include all refs"),
    branches: bool = typer.Option(False, "--branches", help="Include branches"),
    tags: bool = typer.Option(False, "--tags", help="Include tags"),
    remotes: bool = typer.Option(False, "--remotes", help="Include remote tracking branches"),
    detached: bool = typer.Option(False, "--detached", help="Include a detached HEAD"),
    other: bool = typer.Option(False, "--other", help="Include notes and stashes"),
    commit_parents: Optional[int] = typer.Option(
        None, "--commit-parents", metavar="N", min=0,
        help="Show the N commits with the most parents",
    ),
    commit_sizes: Optional[int] = typer.Option(
        None, "--commit-sizes", metavar="N", min=0,
        help="Show the N largest commits",
    ),
    tree_entries: Optional[int] = typer.Option(
        None, "--tree-entries", metavar="N", min=0,
        help="Show the N trees with the most entries",
    ),
    tree_sizes: Optional[int] = typer.Option(
        None, "--tree-sizes", metavar="N", min=0,
        help="Show the N largest trees",
    ),
    blob_sizes: Optional[int] = typer.Option(
        None, "--blob-sizes", metavar="N", min=0,
        help="Show the N largest blobs",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "-o",
        "--output",
        help="Write the report to a file instead of stdout",
        dir_okay=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Measure the refs and reachable objects of a git repository.

    Counts commits, trees and blobs with their sizes, bins them into
    histograms and lists the largest items along each dimension.

    [bold cyan]Examples:[/bold cyan]

      git-survey

      git-survey --json --no-name-rev

      git-survey /path/to/repo --all-refs --blob-sizes 25
    """
    if version:
        from .. import __version__

        err_console.print(f"[bold cyan]git-survey[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    logger = setup_logging(verbose=verbose)
    err_console.print(f"[yellow]{escape(EXPERIMENTAL_WARNING)}[/yellow]")

    try:
        if output is not None and not output.parent.is_dir():
            raise InvalidPathError(output, "parent directory does not exist")
        repo_path = ensure_repository(path or Path.cwd())
        settings = resolve_config(
            repo_path,
            config=config,
            ref_flags={
                "all_refs": all_refs,
                "branches": branches,
                "tags": tags,
                "remotes": remotes,
                "detached": detached,
                "other": other,
            },
            verbose=verbose or None,
            show_json=json_output,
            show_progress=show_progress,
            show_name_rev=name_rev,
            commit_parents=commit_parents,
            commit_sizes=commit_sizes,
            tree_entries=tree_entries,
            tree_sizes=tree_sizes,
            blob_sizes=blob_sizes,
        )
        if settings.verbose and not verbose:
            logger = setup_logging(verbose=True)

        want_progress = settings.show_progress
        if want_progress is None:
            want_progress = sys.stderr.isatty()
        progress = RichSurveyProgress(err_console) if want_progress else SurveyProgress()

        try:
            stats = survey_repository(repo_path, settings, progress)
        finally:
            progress.stop()

        formatter = get_formatter("json" if settings.show_json else "text")
        report = formatter.format(stats, settings)
        if output is not None:
            output.write_text(report, encoding="utf-8")
            logger.info(f"Report written to {output}")
        else:
            typer.echo(report, nl=False)

    except typer.Exit:
        raise

    except GitSurveyError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Survey interrupted by user")
        err_console.print("\n[yellow]Survey interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during survey")
        err_console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
