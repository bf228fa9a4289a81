"""Extract commands: collect commits and deliver them to the service."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from commit_sync.cache import create_commit_cache
from commit_sync.cli.common import (
    DryRunOption,
    NoCacheOption,
    OutputFormat,
    OutputFormatOption,
    console,
    print_json,
    run_async_command,
)
from commit_sync.config import Settings, get_settings
from commit_sync.exceptions import BatchRetryExhaustedError, ResponseFormatError
from commit_sync.sync import (
    MultiRepoSync,
    MultiRepoSyncResult,
    SyncOptions,
    SyncOrchestrator,
    SyncResult,
    SyncStatus,
)


async def _run_sync(settings: Settings, options: SyncOptions) -> SyncResult:
    cache = create_commit_cache(settings.cache) if settings.cache.enabled else None
    try:
        return await SyncOrchestrator(settings, cache).run(options)
    finally:
        if cache is not None:
            await cache.close()


async def _run_sync_all(
    settings: Settings,
    *,
    dry_run: bool,
    use_cache: bool,
) -> MultiRepoSyncResult:
    cache = create_commit_cache(settings.cache) if settings.cache.enabled else None
    try:
        multi = MultiRepoSync(SyncOrchestrator(settings, cache), settings)
        return await multi.sync_all(dry_run=dry_run, use_cache=use_cache)
    finally:
        if cache is not None:
            await cache.close()


def _print_dry_run(result: SyncResult) -> None:
    console.print(
        f"[dim](dry-run)[/dim] Would send [bold]{len(result.pending)}[/bold] commits "
        f"from {result.repository} ({result.branch})"
    )
    table = Table(show_header=True, header_style="bold")
    table.add_column("Hash", style="cyan")
    table.add_column("Date")
    table.add_column("Author")
    table.add_column("Subject")
    for commit in result.pending:
        subject = commit.subject
        if len(subject) > 60:
            subject = subject[:57] + "..."
        table.add_row(commit.short_hash, commit.date, commit.author, subject)
    console.print(table)


def _print_result(result: SyncResult) -> None:
    """Print a SyncResult as text."""
    if result.status == SyncStatus.NO_COMMITS:
        console.print(f"[yellow]No commits found on {result.branch}.[/yellow]")
        return
    if result.status == SyncStatus.DRY_RUN:
        _print_dry_run(result)
        return
    if result.status == SyncStatus.ALL_CACHED:
        console.print(
            f"All {result.collected} commits from {result.repository} "
            "have already been processed."
        )
        return

    title = "Sync Complete" if result.success else "Sync Incomplete"
    console.print(f"[bold]{title}[/bold] {result.repository} ({result.branch})")
    console.print()
    console.print(f"  Collected:          {result.collected}")
    console.print(f"  [dim]Skipped (cached):[/dim]   {result.skipped_cached}")
    console.print(f"  [green]Delivered:[/green]          {result.delivered}")
    console.print(f"  Batches:            {result.batches_completed}/{result.total_batches}")

    if result.achievements:
        console.print()
        console.print("[bold]Achievements:[/bold]")
        for achievement in result.achievements:
            console.print(f"  - {achievement.display_name}")

    if result.commit_errors:
        console.print()
        console.print("[bold]Commit errors:[/bold]")
        for error in result.commit_errors:
            console.print(f"  [red]{error.commit[:7]}[/red]: {error.error}")


def extract(
    path: Annotated[
        Path,
        typer.Argument(help="Path inside the git checkout"),
    ] = Path("."),
    branch: str | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Branch to read (defaults to the current branch)",
    ),
    max_commits: int | None = typer.Option(
        None,
        "--max-commits",
        "-m",
        min=1,
        help="Maximum number of commits to read",
    ),
    repo: str | None = typer.Option(
        None,
        "--repo",
        "-r",
        help="Repository label (defaults to owner/name from the origin remote)",
    ),
    api_url: str | None = typer.Option(
        None,
        "--api-url",
        help="Override the service base URL",
    ),
    dry_run: DryRunOption = False,
    batch_size: int | None = typer.Option(
        None,
        "--batch-size",
        min=1,
        max=100,
        help="Commits per delivery request",
    ),
    no_cache: NoCacheOption = False,
    mine: bool = typer.Option(
        False,
        "--mine",
        help="Only send commits authored by the configured git user",
    ),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Extract commits from a repository and send them for analysis.

    Commits already sent are skipped using the local commit cache.

    Examples:
        commit-sync extract
        commit-sync extract ~/src/widgets --branch main --max-commits 50
        commit-sync extract --dry-run
        commit-sync extract --no-cache --format json
    """
    settings = get_settings()
    options = SyncOptions(
        path=path.expanduser(),
        branch=branch,
        max_commits=max_commits,
        repository_label=repo,
        api_url=api_url,
        dry_run=dry_run,
        batch_size=batch_size,
        use_cache=not no_cache,
        mine=mine,
    )

    async def _extract() -> SyncResult:
        try:
            return await _run_sync(settings, options)
        except (BatchRetryExhaustedError, ResponseFormatError) as e:
            # Report what made it through before the failing batch
            if e.partial_result is not None:
                if output_format == OutputFormat.JSON:
                    print_json(e.partial_result.to_dict())
                else:
                    _print_result(e.partial_result)
            raise

    result = run_async_command(_extract())

    if output_format == OutputFormat.JSON:
        print_json(result.to_dict())
        return

    _print_result(result)


def sync_all(
    dry_run: DryRunOption = False,
    no_cache: NoCacheOption = False,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Extract and send commits for every enrolled repository.

    Repositories are listed under `repositories` in the config file.
    A failing repository does not stop the others.

    Examples:
        commit-sync sync-all
        commit-sync sync-all --dry-run --format json
    """
    settings = get_settings()
    if not settings.enabled_repositories:
        console.print("[yellow]No repositories configured.[/yellow]")
        return

    result = run_async_command(
        _run_sync_all(settings, dry_run=dry_run, use_cache=not no_cache)
    )

    if output_format == OutputFormat.JSON:
        print_json(result.to_dict())
    else:
        for repo_result in result.repo_results:
            if repo_result.result.success:
                _print_result(repo_result.result)
            else:
                console.print(
                    f"[red]Failed:[/red] {repo_result.path}: {repo_result.result.error}"
                )
            console.print()

        console.print(
            f"[bold]{result.repos_succeeded}/{len(result.repo_results)}[/bold] "
            f"repositories synced, {result.total_delivered} commits delivered "
            f"({result.duration_seconds:.1f}s)"
        )

    if result.repos_failed:
        raise typer.Exit(1)
