"""Logging for commit-sync, built on loguru.

Every module logs through `get_logger(__name__)`, which binds the module
name. While a repository is synced the orchestrator wraps the work in
`LogContext(repo=label)`, and the batch engine adds `batch="2/5"` while a
batch is in flight. Both values are rendered as a scope prefix:

    12:03:44 | WARNING  | commit_sync.delivery.batching [acme/widgets #2/5] - Error ...

Standard library loggers (httpx, SQLAlchemy, aiosqlite) are routed into
loguru so they share the same sinks and levels.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger, Record

    from commit_sync.config import LoggingConfig

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

CONSOLE_TIME_FORMAT = "<dim>{time:HH:mm:ss}</dim>"
FILE_TIME_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS}"


class InterceptHandler(logging.Handler):
    """Route standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip logging's own frames so loguru reports the real caller
        frame = logging.currentframe()
        depth = 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


# -----------------------------------------------------------------------------
# Formatting
# -----------------------------------------------------------------------------
def format_scope(extra: dict[str, Any]) -> str:
    """Render repository and batch context as a short scope label.

    Returns "[acme/widgets #2/5]", "[acme/widgets]", "[#2/5]" or "" depending
    on which of `repo` and `batch` are bound.
    """
    parts = []
    if "repo" in extra:
        parts.append(str(extra["repo"]))
    if "batch" in extra:
        parts.append(f"#{extra['batch']}")
    return f"[{' '.join(parts)}]" if parts else ""


def _source_field(record: Record) -> str:
    # Intercepted stdlib records have no bound module name
    return "{extra[name]}" if "name" in record["extra"] else "{name}"


def _scope_field(record: Record) -> str:
    # Passed through extra so labels containing braces or tags stay literal
    record["extra"]["scope"] = format_scope(record["extra"])
    return " <magenta>{extra[scope]}</magenta>" if record["extra"]["scope"] else ""


def _console_format(record: Record) -> str:
    return (
        f"{CONSOLE_TIME_FORMAT} | <level>{{level: <8}}</level> | "
        f"<cyan>{_source_field(record)}</cyan>{_scope_field(record)} - "
        "<level>{message}</level>\n{exception}"
    )


def _file_format(record: Record) -> str:
    return (
        f"{FILE_TIME_FORMAT} | {{level: <8}} | "
        f"{_source_field(record)}:{{function}}:{{line}}{_scope_field(record)} | "
        "{message}\n{exception}"
    )


# -----------------------------------------------------------------------------
# Setup
# -----------------------------------------------------------------------------
def resolve_level(level: LogLevel, *, verbose: bool = False, quiet: bool = False) -> LogLevel:
    """Apply the CLI's --verbose/--quiet flags to the configured level.

    --verbose wins when both are given.
    """
    if verbose:
        return "DEBUG"
    if quiet:
        return "WARNING"
    return level


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    config: LoggingConfig | None = None,
) -> LogLevel:
    """Configure the console sink, the optional file sink, and stdlib routing.

    Args:
        level: Configured log level
        verbose: Force DEBUG
        quiet: Force WARNING (ignored when verbose is set)
        config: File logging settings; a file sink is added when
            `config.log_file` is set

    Returns:
        The effective console level
    """
    effective_level = resolve_level(level, verbose=verbose, quiet=quiet)

    logger.remove()
    logger.add(
        sys.stderr,
        level=effective_level,
        format=_console_format,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    if config is not None and config.log_file:
        logger.add(
            config.log_file,
            level="DEBUG",  # The file keeps the full sync trace regardless of console level
            format=_file_format,
            rotation=config.rotation,
            retention=config.retention,
            compression="gz",
            serialize=config.serialize,
            diagnose=False,
        )

    _route_stdlib_logging(effective_level)
    return effective_level


def _route_stdlib_logging(level: LogLevel) -> None:
    """Send library logs through loguru at levels that suit a sync run.

    httpx/httpcore request lines only show with --verbose. SQLAlchemy
    engine logs show at INFO in debug mode. aiosqlite is kept at WARNING
    since it logs every statement.
    """
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    debug = level in ("TRACE", "DEBUG")
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.INFO if debug else logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if debug else logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# -----------------------------------------------------------------------------
# Loggers and context
# -----------------------------------------------------------------------------
def get_logger(name: str) -> Logger:
    """Get a logger with the module name bound.

    Usage:
        logger = get_logger(__name__)
        logger.info("Collected {} commits", len(commits))
    """
    return logger.bind(name=name)


class LogContext:
    """Bind context to every record logged inside the block.

    Uses loguru's contextualize, so the values follow the current task
    through awaits and async generators.

    Usage:
        with LogContext(repo="acme/widgets"):
            with LogContext(batch="2/5"):
                logger.warning("Retrying")  # [acme/widgets #2/5]
    """

    def __init__(self, **context: Any) -> None:
        self._context = context
        self._manager: Any = None

    def __enter__(self) -> LogContext:
        self._manager = logger.contextualize(**self._context)
        self._manager.__enter__()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._manager is not None:
            self._manager.__exit__(exc_type, exc_val, exc_tb)
            self._manager = None
