"""Commit cache management commands."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from commit_sync.cache import CacheStats, CommitCache, create_commit_cache
from commit_sync.cli.common import (
    OutputFormat,
    OutputFormatOption,
    RepoLabelOption,
    console,
    print_json,
    run_async_command,
)
from commit_sync.config import get_settings
from commit_sync.git import get_repository_info, get_repository_name

app = typer.Typer(help="Manage the local commit cache")


async def _resolve_label(repo: str | None) -> str:
    """Use the given label, or derive one from the current directory's remote."""
    if repo:
        return repo
    info = await get_repository_info(Path("."))
    return get_repository_name(info.remote_url)


def _open_cache() -> CommitCache:
    return create_commit_cache(get_settings().cache)


@app.command("list")
def cache_list(
    repo: RepoLabelOption = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """List cached commit hashes for a repository.

    Examples:
        commit-sync cache list
        commit-sync cache list --repo acme/widgets
    """

    async def _list() -> tuple[str, list[str]]:
        label = await _resolve_label(repo)
        cache = _open_cache()
        try:
            return label, await cache.list(label)
        finally:
            await cache.close()

    label, hashes = run_async_command(_list(), error_prefix="Cache error")

    if output_format == OutputFormat.JSON:
        print_json({"repository": label, "count": len(hashes), "hashes": hashes})
        return

    if not hashes:
        console.print(f"[yellow]No cached commits for {label}.[/yellow]")
        return

    console.print(f"[bold]{len(hashes)}[/bold] cached commits for {label}:")
    for commit_hash in hashes:
        console.print(f"  {commit_hash}")


@app.command("clear")
def cache_clear(
    repo: RepoLabelOption = None,
    all_repos: bool = typer.Option(
        False,
        "--all",
        help="Clear the cache for every repository",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Don't ask for confirmation",
    ),
) -> None:
    """Clear cached commits so they are sent again on the next run.

    Without --repo or --all, clears the repository in the current directory.

    Examples:
        commit-sync cache clear
        commit-sync cache clear --repo acme/widgets --yes
        commit-sync cache clear --all
    """
    if all_repos and repo:
        console.print("[red]Error:[/red] Use either --repo or --all, not both")
        raise typer.Exit(1)

    async def _clear() -> str | None:
        label = None if all_repos else await _resolve_label(repo)
        target = "all repositories" if label is None else label
        if not yes and not typer.confirm(f"Clear cached commits for {target}?"):
            raise typer.Exit()

        cache = _open_cache()
        try:
            await cache.clear(label)
        finally:
            await cache.close()
        return label

    label = run_async_command(_clear(), error_prefix="Cache error")

    if label is None:
        console.print("[green]Cleared cache for all repositories.[/green]")
    else:
        console.print(f"[green]Cleared cache for {label}.[/green]")


@app.command("stats")
def cache_stats(
    repo: RepoLabelOption = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Show how many commits are cached per repository.

    Examples:
        commit-sync cache stats
        commit-sync cache stats --repo acme/widgets --format json
    """

    async def _stats() -> CacheStats:
        cache = _open_cache()
        try:
            return await cache.get_stats(repo)
        finally:
            await cache.close()

    stats = run_async_command(_stats(), error_prefix="Cache error")

    if output_format == OutputFormat.JSON:
        print_json(stats.to_dict())
        return

    if not stats.repo_stats:
        console.print("[yellow]Cache is empty.[/yellow]")
        return

    table = Table(title="Commit Cache", show_header=True, header_style="bold")
    table.add_column("Repository", style="cyan")
    table.add_column("Commits", justify="right")
    for label, count in sorted(stats.repo_stats.items()):
        table.add_row(label, str(count))
    console.print(table)
    console.print(f"Total: {stats.commits} commits in {stats.repositories} repositories")
