"""Main CLI application for Commit Sync."""

from typing import Annotated

import typer
from rich.console import Console

from commit_sync import __version__
from commit_sync.cli import cache as cache_cmd
from commit_sync.cli import extract as extract_cmd
from commit_sync.config import get_settings
from commit_sync.logging import setup_logging

app = typer.Typer(
    name="commit-sync",
    help="Send local git commits to an achievement service, skipping ones already sent.",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"commit-sync version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """Commit Sync - deliver git commits in batches."""
    settings = get_settings()
    setup_logging(settings.log_level, verbose=verbose, quiet=quiet, config=settings.logging)


# Register commands
app.command("extract")(extract_cmd.extract)
app.command("sync-all")(extract_cmd.sync_all)
app.add_typer(cache_cmd.app, name="cache")


if __name__ == "__main__":
    app()
