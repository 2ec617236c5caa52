"""Content-fingerprint cache for incremental scans.

The cache remembers, per file path, the SHA-256 of the content that was last
scanned, the findings that scan produced and the mobsentry version that
produced them. An entry is only reused while both the hash and the version
still match, so the cache can skip rule execution but never change what a
fresh scan would report.

The whole cache lives in one JSON file at the project root. It is loaded
whole, mutated in memory during a scan and written once at the end; that
rewrite is proportional to the number of cached files, which is acceptable
for single-project scans but is the first thing to revisit for very large
monorepos.

File format::

    {
      "files": {
        "/abs/path/App.tsx": {
          "hash": "<sha256 hex>",
          "findings": [{"ruleId": "...", "severity": "HIGH", ...}],
          "timestamp": 1700000000000,
          "version": "1.0.0"
        }
      },
      "createdAt": 1700000000000,
      "updatedAt": 1700000000000
    }
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from mobsentry.core.exceptions import CacheError
from mobsentry.core.models import Finding

DEFAULT_CACHE_FILE = ".mobsentry-cache.json"

DEFAULT_MAX_AGE_MS = 7 * 24 * 60 * 60 * 1000


def _now_ms() -> int:
    return int(time.time() * 1000)


class CacheEntry(BaseModel):
    """Cached scan outcome for one file."""

    hash: str
    findings: list[Finding] = Field(default_factory=list)
    timestamp: int
    version: str


class CacheData(BaseModel):
    """The persisted cache document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    files: dict[str, CacheEntry] = Field(default_factory=dict)
    created_at: int = Field(default_factory=_now_ms)
    updated_at: int = Field(default_factory=_now_ms)


@dataclass(frozen=True)
class CacheStats:
    """Summary of the cache contents."""

    entry_count: int


class ContentCache:
    """Per-file findings cache keyed by content fingerprint and tool version.

    The cache is best-effort. Loading tolerates a missing, empty or
    malformed file by starting empty, and saving swallows write errors after
    reporting them on the diagnostics logger. A disabled cache answers every
    query with a miss and ignores every mutation.

    Example:
        >>> cache = ContentCache("/path/to/app", version="1.0.0")
        >>> cache.load()
        >>> digest = cache.fingerprint(content)
        >>> if cache.is_valid(path, digest):
        ...     findings = cache.get_findings(path)
        ... else:
        ...     findings = run_rules(path)
        ...     cache.set(path, digest, findings)
        >>> cache.save()
    """

    def __init__(
        self,
        project_dir: str | Path,
        version: str,
        cache_file_name: str = DEFAULT_CACHE_FILE,
        logger: logging.Logger | None = None,
    ):
        self._cache_file = Path(project_dir) / cache_file_name
        self._version = version
        self._logger = logger or logging.getLogger(__name__)
        self._data = CacheData()
        self._dirty = False
        self._enabled = True
        self._lock = threading.RLock()

    @property
    def cache_file(self) -> Path:
        return self._cache_file

    @property
    def version(self) -> str:
        return self._version

    @property
    def is_dirty(self) -> bool:
        """True when the in-memory cache has changes not yet saved."""
        return self._dirty

    def load(self) -> None:
        """Load the cache file, falling back to an empty cache on any problem."""
        if not self._enabled:
            return

        try:
            raw = self._cache_file.read_text(encoding="utf-8")
            data = CacheData.model_validate(json.loads(raw))
        except FileNotFoundError:
            data = CacheData()
        except (OSError, UnicodeDecodeError, ValueError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            self._logger.debug("Ignoring unreadable cache file %s: %s", self._cache_file, e)
            data = CacheData()

        with self._lock:
            self._data = data
            self._dirty = False

    def save(self) -> None:
        """Write the cache to disk if it changed since the last save.

        Write failures are reported at debug level and otherwise ignored;
        the next run simply starts from whatever is on disk.
        """
        if not self._enabled or not self._dirty:
            return

        try:
            self._write()
        except CacheError as e:
            self._logger.debug("Could not save cache: %s", e)

    def _write(self) -> None:
        with self._lock:
            self._data.updated_at = _now_ms()
            try:
                payload = self._data.model_dump_json(by_alias=True, indent=2)
            except (TypeError, ValueError) as e:
                raise CacheError(
                    f"Failed to serialize cache: {e}", cache_file=str(self._cache_file)
                ) from e

            try:
                self._cache_file.parent.mkdir(parents=True, exist_ok=True)
                self._cache_file.write_text(payload, encoding="utf-8")
            except OSError as e:
                raise CacheError(
                    f"Failed to write cache file: {e}", cache_file=str(self._cache_file)
                ) from e

            self._dirty = False

    @staticmethod
    def fingerprint(content: bytes | str) -> str:
        """Return the SHA-256 hex digest of ``content``.

        The engine passes raw file bytes. Text is hashed as its UTF-8 encoding.
        """
        if isinstance(content, str):
            content = content.encode("utf-8", errors="surrogatepass")
        return hashlib.sha256(content).hexdigest()

    def is_valid(self, file_path: str, content_hash: str) -> bool:
        """True iff ``file_path`` has an entry with this hash and the running version."""
        if not self._enabled:
            return False

        with self._lock:
            entry = self._data.files.get(file_path)
        if entry is None:
            return False
        return entry.hash == content_hash and entry.version == self._version

    def get_findings(self, file_path: str) -> list[Finding] | None:
        """Return the cached findings for ``file_path``, or None if there are none."""
        if not self._enabled:
            return None

        with self._lock:
            entry = self._data.files.get(file_path)
        if entry is None:
            return None
        return list(entry.findings)

    def set(self, file_path: str, content_hash: str, findings: Iterable[Finding]) -> None:
        """Store findings for ``file_path`` stamped with now and the running version."""
        if not self._enabled:
            return

        entry = CacheEntry(
            hash=content_hash,
            findings=list(findings),
            timestamp=_now_ms(),
            version=self._version,
        )
        with self._lock:
            self._data.files[file_path] = entry
            self._dirty = True

    def remove(self, file_path: str) -> None:
        if not self._enabled:
            return

        with self._lock:
            if self._data.files.pop(file_path, None) is not None:
                self._dirty = True

    def clear(self) -> None:
        """Drop every entry."""
        if not self._enabled:
            return

        with self._lock:
            self._data = CacheData()
            self._dirty = True

    def prune(self, existing_paths: Iterable[str], max_age_ms: int = DEFAULT_MAX_AGE_MS) -> int:
        """Remove entries for paths no longer present or older than ``max_age_ms``.

        Args:
            existing_paths: Paths that still exist in the project.
            max_age_ms: Maximum entry age in milliseconds (default 7 days).

        Returns:
            The number of entries removed.
        """
        if not self._enabled:
            return 0

        existing = set(existing_paths)
        cutoff = _now_ms() - max_age_ms

        with self._lock:
            stale = [
                path
                for path, entry in self._data.files.items()
                if path not in existing or entry.timestamp < cutoff
            ]
            for path in stale:
                del self._data.files[path]
            if stale:
                self._dirty = True

        if stale:
            self._logger.debug("Pruned %d stale cache entries", len(stale))
        return len(stale)

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def is_enabled(self) -> bool:
        return self._enabled

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(entry_count=len(self._data.files))

    def __repr__(self) -> str:
        return f"ContentCache(cache_file={str(self._cache_file)!r}, version={self._version!r})"
