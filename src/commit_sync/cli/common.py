"""Common CLI option factories and helpers.

This module centralizes reusable CLI options to reduce duplication
and consolidate noqa comments for Typer's required function call pattern.

It also provides:
- `run_async_command`: Unified async execution with error handling for CLI commands
- `print_json`: JSON output through the shared console
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from enum import Enum
from typing import Annotated, Any, TypeVar

import typer
from rich.console import Console

# Shared console instance for CLI output
console = Console()

T = TypeVar("T")


class OutputFormat(str, Enum):
    """Output format for CLI commands."""

    TEXT = "text"
    """Human-readable text output."""

    JSON = "json"
    """Machine-readable JSON output."""


def run_async_command(
    coro: Coroutine[object, object, T],
    *,
    error_prefix: str = "Error",
) -> T:
    """Execute async code from synchronous CLI command with unified error handling.

    Uses asyncio.run() for clean event loop management. Catches exceptions,
    prints user-friendly error messages, and exits with code 1.

    Args:
        coro: Async coroutine to execute
        error_prefix: Prefix for error messages (default: "Error")

    Returns:
        Result from the coroutine

    Raises:
        typer.Exit: Re-raised from deliberate exits, or raised with code 1 on error

    Example:
        async def _stats() -> CacheStats:
            return await cache.get_stats()

        stats = run_async_command(_stats(), error_prefix="Cache error")
    """
    try:
        return asyncio.run(coro)
    except typer.Exit:
        # Re-raise deliberate exits (e.g., from validation helpers)
        raise
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}")
        raise typer.Exit(1) from None


def print_json(data: dict[str, Any]) -> None:
    """Print a dict as highlighted JSON."""
    console.print_json(json.dumps(data, default=str))


# Typer requires function calls as default arguments, which triggers B008.
# Using Annotated with a centralized type alias keeps the noqa in one place.

OutputFormatOption = Annotated[
    OutputFormat,
    typer.Option(
        "--format",
        "-f",
        help="Output format",
    ),
]
"""Output format option type for CLI commands.

Usage:
    def command(output_format: OutputFormatOption = OutputFormat.TEXT):
"""

DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        help="Show the commits that would be sent without sending them",
    ),
]
"""Dry-run option type for CLI commands.

Usage:
    def command(dry_run: DryRunOption = False):
"""

NoCacheOption = Annotated[
    bool,
    typer.Option(
        "--no-cache",
        help="Send every collected commit, ignoring the commit cache",
    ),
]
"""Cache bypass option type for CLI commands.

Usage:
    def command(no_cache: NoCacheOption = False):
"""

RepoLabelOption = Annotated[
    str | None,
    typer.Option(
        "--repo",
        "-r",
        help="Repository label (defaults to owner/name from the origin remote)",
    ),
]
"""Optional repository label option.

Usage:
    def cache_list(repo: RepoLabelOption = None) -> None:
"""
