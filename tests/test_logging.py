"""Tests for logging setup and sync log context."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from loguru import logger

from commit_sync.config import LoggingConfig
from commit_sync.delivery import BatchDeliveryEngine, RetryPolicy
from commit_sync.logging import LogContext, format_scope, get_logger, resolve_level, setup_logging
from commit_sync.schemas import RepositoryInfo
from tests.conftest import REPO_LABEL
from tests.factories import ScriptedSender, delivery_failure, make_commits


@pytest.fixture(autouse=True)
def _clean_sinks() -> Iterator[None]:
    """Start and finish every test without loguru sinks."""
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def records() -> Iterator[list[dict[str, Any]]]:
    """Capture raw loguru records at DEBUG."""
    captured: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: captured.append(message.record), level="DEBUG")
    yield captured
    logger.remove(handler_id)


def read_log(path: Path) -> str:
    # Removing the sinks closes the file so everything is flushed
    logger.remove()
    return path.read_text(encoding="utf-8")


async def no_sleep(seconds: float) -> None:
    return None


class TestResolveLevel:
    """Tests for resolve_level."""

    @pytest.mark.parametrize(
        ("verbose", "quiet", "expected"),
        [
            (False, False, "INFO"),
            (True, False, "DEBUG"),
            (False, True, "WARNING"),
            (True, True, "DEBUG"),
        ],
    )
    def test_flags(self, verbose: bool, quiet: bool, expected: str):
        """--verbose forces DEBUG, --quiet forces WARNING, and verbose wins."""
        assert resolve_level("INFO", verbose=verbose, quiet=quiet) == expected


class TestFormatScope:
    """Tests for format_scope."""

    @pytest.mark.parametrize(
        ("extra", "expected"),
        [
            ({"repo": "acme/widgets", "batch": "2/5"}, "[acme/widgets #2/5]"),
            ({"repo": "acme/widgets"}, "[acme/widgets]"),
            ({"batch": "1/1"}, "[#1/1]"),
            ({"name": "commit_sync.sync"}, ""),
        ],
    )
    def test_scope(self, extra: dict[str, Any], expected: str):
        """Repository and batch context render as a bracketed scope."""
        assert format_scope(extra) == expected


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_returns_effective_level(self):
        """The console level reflects the CLI flags."""
        assert setup_logging("ERROR", verbose=True) == "DEBUG"

    def test_file_sink_includes_scope(self, tmp_path: Path):
        """The log file shows module, repository and batch for each line."""
        log_file = tmp_path / "sync.log"
        setup_logging("WARNING", config=LoggingConfig(log_file=str(log_file)))

        with LogContext(repo=REPO_LABEL, batch="2/5"):
            get_logger("commit_sync.delivery.batching").debug("Posting batch")
        get_logger("commit_sync.cli").info("Done")

        lines = read_log(log_file).splitlines()
        assert "commit_sync.delivery.batching" in lines[0]
        assert "[acme/widgets #2/5]" in lines[0]
        assert lines[0].endswith("Posting batch")
        assert "[" not in lines[1].split("|")[2]

    def test_labels_with_braces_are_literal(self, tmp_path: Path):
        """Repository labels are never interpreted as format fields."""
        log_file = tmp_path / "sync.log"
        setup_logging("INFO", config=LoggingConfig(log_file=str(log_file)))

        with LogContext(repo="odd/{name}"):
            get_logger("commit_sync.sync").info("Syncing")

        assert "[odd/{name}]" in read_log(log_file)

    def test_no_file_sink_without_log_file(self, tmp_path: Path):
        """A LoggingConfig without log_file adds no file."""
        setup_logging("INFO", config=LoggingConfig())
        get_logger("commit_sync.sync").info("Syncing")

        assert list(tmp_path.iterdir()) == []

    def test_stdlib_records_routed(self, tmp_path: Path):
        """Library loggers reach loguru sinks under their own name."""
        log_file = tmp_path / "sync.log"
        setup_logging("INFO", config=LoggingConfig(log_file=str(log_file)))

        logging.getLogger("httpx").warning("connection reset")

        assert "connection reset" in read_log(log_file)

    @pytest.mark.parametrize(
        ("level", "httpx_level", "sqlalchemy_level"),
        [
            ("INFO", logging.WARNING, logging.WARNING),
            ("DEBUG", logging.DEBUG, logging.INFO),
        ],
    )
    def test_library_levels(self, level: Any, httpx_level: int, sqlalchemy_level: int):
        """Request and SQL logs only show in debug mode; aiosqlite stays quiet."""
        setup_logging(level)

        assert logging.getLogger("httpx").level == httpx_level
        assert logging.getLogger("sqlalchemy.engine").level == sqlalchemy_level
        assert logging.getLogger("aiosqlite").level == logging.WARNING


class TestLogContext:
    """Tests for LogContext."""

    def test_nested_context_unwinds(self, records: list[dict[str, Any]]):
        """Inner context adds to outer context and is removed on exit."""
        log = get_logger("commit_sync.sync")

        with LogContext(repo=REPO_LABEL):
            with LogContext(batch="1/2"):
                log.info("inner")
            log.info("outer")
        log.info("outside")

        extras = [r["extra"] for r in records]
        assert extras[0]["repo"] == REPO_LABEL
        assert extras[0]["batch"] == "1/2"
        assert "batch" not in extras[1]
        assert "repo" not in extras[2]

    def test_context_removed_on_error(self, records: list[dict[str, Any]]):
        """An exception inside the block still removes the context."""
        with pytest.raises(RuntimeError):
            with LogContext(repo=REPO_LABEL):
                raise RuntimeError("boom")

        get_logger("commit_sync.sync").info("after")

        assert "repo" not in records[0]["extra"]


class TestDeliveryLogContext:
    """Batch delivery logs carry repository and batch context."""

    @pytest.mark.asyncio
    async def test_retry_warning_has_repo_and_batch(
        self, records: list[dict[str, Any]], repository_info: RepositoryInfo
    ):
        """Retry warnings identify the repository and the batch being retried."""
        sender = ScriptedSender([None, delivery_failure(503), None])
        policy = RetryPolicy(max_attempts=3, base_delay_ms=0, sleep=no_sleep)
        engine = BatchDeliveryEngine(sender, batch_size=2, retry_policy=policy)

        with LogContext(repo=REPO_LABEL):
            delivered = [d async for d in engine.stream(repository_info, make_commits(3))]

        assert len(delivered) == 2
        warnings = [r for r in records if r["level"].name == "WARNING"]
        assert warnings
        assert all(r["extra"]["repo"] == REPO_LABEL for r in warnings)
        assert all(r["extra"]["batch"] == "2/2" for r in warnings)
        assert all(r["extra"]["name"] == "commit_sync.delivery.batching" for r in warnings)

    @pytest.mark.asyncio
    async def test_batch_context_ends_with_batch(
        self, records: list[dict[str, Any]], repository_info: RepositoryInfo
    ):
        """The run summary logged before batching has no batch context."""
        policy = RetryPolicy(max_attempts=1, sleep=no_sleep)
        engine = BatchDeliveryEngine(ScriptedSender(), batch_size=1, retry_policy=policy)

        async for _delivered in engine.stream(repository_info, make_commits(2)):
            get_logger("tests").info("consumer")

        consumer = [r for r in records if r["message"] == "consumer"]
        summary = [r for r in records if r["message"].startswith("Processing 2 commits")]
        assert all("batch" not in r["extra"] for r in consumer + summary)
        batch_numbers = {r["extra"].get("batch") for r in records if "batch" in r["extra"]}
        assert batch_numbers == {"1/2", "2/2"}
