"""Plain-text file backend for the commit cache.

Layout:
    <cache_dir>/<stem>.txt   newline-terminated hashes, append-only
    <cache_dir>/index.json   stem -> repository label

The stem is the label with every character outside [a-zA-Z0-9-]
replaced by "_", followed by a sha256 digest of the label, so distinct
labels never share a file.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import os
import re
from pathlib import Path

from commit_sync.logging import get_logger

from .base import CommitCache

logger = get_logger(__name__)

CACHE_SUFFIX = ".txt"
INDEX_FILENAME = "index.json"
DIGEST_LENGTH = 16
UNSAFE_CHARS_PATTERN = re.compile(r"[^a-zA-Z0-9-]")


def cache_file_stem(label: str) -> str:
    """Derive a filesystem-safe, collision-resistant stem for a label."""
    digest = hashlib.sha256(label.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]
    return f"{UNSAFE_CHARS_PATTERN.sub('_', label)}-{digest}"


class FileCommitCache(CommitCache):
    """Commit cache stored as one text file per repository.

    Each add() appends only the genuinely new hashes with a single write,
    so an interrupted run never leaves a torn line. File I/O runs in a
    worker thread to keep the event loop free.
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize the cache.

        Args:
            cache_dir: Directory holding cache files (created on first write)
        """
        super().__init__()
        self._cache_dir = Path(cache_dir).expanduser()

    @property
    def cache_dir(self) -> Path:
        """Directory holding cache files."""
        return self._cache_dir

    def cache_path(self, label: str) -> Path:
        """Path of the cache file for a repository."""
        return self._cache_dir / f"{cache_file_stem(label)}{CACHE_SUFFIX}"

    @property
    def _index_path(self) -> Path:
        return self._cache_dir / INDEX_FILENAME

    async def init(self) -> None:
        """Create the cache directory tree with owner-only permissions."""
        await asyncio.to_thread(self._init_sync)

    def _init_sync(self) -> None:
        if self._cache_dir.is_dir():
            return
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self._cache_dir, 0o700)

    # -------------------------------------------------------------------------
    # Storage primitives
    # -------------------------------------------------------------------------

    async def _load(self, label: str) -> list[str]:
        return await asyncio.to_thread(self._read_hashes, self.cache_path(label))

    @staticmethod
    def _read_hashes(path: Path) -> list[str]:
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return [line for line in content.split("\n") if line]

    async def _append(self, label: str, hashes: list[str]) -> None:
        path = self.cache_path(label)
        logger.debug("Appending {} hashes to {}", len(hashes), path)
        await asyncio.to_thread(self._append_sync, label, path, hashes)

    def _append_sync(self, label: str, path: Path, hashes: list[str]) -> None:
        self._register_label(label)
        with path.open("a", encoding="utf-8") as f:
            f.write("".join(f"{h}\n" for h in hashes))

    async def _remove(self, label: str) -> None:
        path = self.cache_path(label)
        logger.debug("Deleting cache file: {}", path)
        await asyncio.to_thread(self._remove_sync, path)

    def _remove_sync(self, path: Path) -> None:
        path.unlink(missing_ok=True)
        index = self._read_index()
        if index.pop(path.stem, None) is not None:
            self._write_index(index)

    async def _remove_all(self) -> None:
        logger.debug("Clearing all cache files in directory: {}", self._cache_dir)
        await asyncio.to_thread(self._remove_all_sync)

    def _remove_all_sync(self) -> None:
        if not self._cache_dir.is_dir():
            return
        for entry in self._cache_dir.iterdir():
            if entry.is_file():
                entry.unlink(missing_ok=True)

    async def _stored_counts(self) -> dict[str, int]:
        return await asyncio.to_thread(self._stored_counts_sync)

    def _stored_counts_sync(self) -> dict[str, int]:
        if not self._cache_dir.is_dir():
            return {}
        index = self._read_index()
        # Files without an index entry are reported under their stem
        return {
            index.get(path.stem, path.stem): len(set(self._read_hashes(path)))
            for path in sorted(self._cache_dir.glob(f"*{CACHE_SUFFIX}"))
        }

    # -------------------------------------------------------------------------
    # Label index
    # -------------------------------------------------------------------------

    def _read_index(self) -> dict[str, str]:
        try:
            data = json.loads(self._index_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable cache index {}", self._index_path)
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _write_index(self, index: dict[str, str]) -> None:
        tmp_path = self._index_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(index, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self._index_path)

    def _register_label(self, label: str) -> None:
        stem = cache_file_stem(label)
        index = self._read_index()
        if index.get(stem) != label:
            index[stem] = label
            self._write_index(index)
