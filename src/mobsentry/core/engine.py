"""Rule engine for mobsentry.

This module provides the RuleEngine class, which schedules per-file rule
execution across a project with bounded concurrency, serves unchanged files
from the content cache, isolates failing rules and drops findings located in
development-only code before they are reported.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from mobsentry.core.cache import DEFAULT_CACHE_FILE, ContentCache
from mobsentry.core.exceptions import ParseError, RuleError, ScanError
from mobsentry.core.file_walker import (
    CONFIG_EXTENSIONS,
    MANIFEST_EXTENSIONS,
    PROPERTY_LIST_EXTENSIONS,
    SOURCE_EXTENSIONS,
    FileGroup,
    walk_project_files,
)
from mobsentry.core.models import Finding, ScanResult
from mobsentry.core.progress import ProgressCallback, ScanProgress
from mobsentry.heuristics import is_in_debug_context
from mobsentry.parsing import NullParser, SourceParser, parse_json_safe
from mobsentry.rules import Rule, RuleContext, RuleGroup, applies_to

DEFAULT_CONCURRENCY = 10


@dataclass
class _ScanState:
    """Counters for one scan invocation."""

    total: int
    completed: int = 0
    skipped: int = 0
    cached: int = 0


class RuleEngine:
    """Runs registered rules over project files.

    Each file is handled by its own coroutine; at most ``concurrency`` of
    them run at once. Results are concatenated in input-file order no matter
    which file finishes first. Nothing that goes wrong with a single file,
    rule, parser or the cache aborts a scan: unreadable or otherwise failing
    files are counted as skipped, failing rules contribute no findings, and
    every such event is reported on the diagnostics logger at debug level.

    Example:
        >>> engine = RuleEngine(concurrency=8)
        >>> for group in get_default_rule_groups():
        ...     engine.register_rule_group(group)
        >>> await engine.enable_cache("/path/to/app", version="1.0.0")
        >>> result = await engine.run_rules_on_project("/path/to/app")
        >>> len(result.findings)
        3
    """

    def __init__(
        self,
        parser: SourceParser | None = None,
        logger: logging.Logger | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        """Initialize the engine.

        Args:
            parser: Source parser used to build ASTs for JS/TS files.
                    Defaults to NullParser, which never yields an AST.
            logger: Diagnostics sink for skipped files, rule failures and
                    cache errors. Defaults to this module's logger.
            concurrency: Maximum number of files processed at once.
                         Values below 1 are clamped to 1.
        """
        self._parser: SourceParser = parser or NullParser()
        self._logger = logger or logging.getLogger(__name__)
        self._rule_groups: list[RuleGroup] = []
        self._ignored_rules: set[str] = set()
        self._excluded_paths: list[str] = []
        self._concurrency = max(1, concurrency)
        self._cache: ContentCache | None = None

    # Configuration

    def register_rule_group(self, group: RuleGroup) -> None:
        self._rule_groups.append(group)

    def set_ignored_rules(self, rule_ids: Iterable[str]) -> None:
        """Replace the set of rule ids that are never run."""
        self._ignored_rules = set(rule_ids)

    def get_ignored_rules(self) -> list[str]:
        return sorted(self._ignored_rules)

    def set_excluded_paths(self, patterns: Iterable[str]) -> None:
        """Replace the extra exclusion globs used for project scans."""
        self._excluded_paths = list(patterns)

    def get_excluded_paths(self) -> list[str]:
        return list(self._excluded_paths)

    def set_concurrency(self, concurrency: int) -> None:
        """Set the file concurrency limit, clamping values below 1 to 1."""
        self._concurrency = max(1, concurrency)

    def get_concurrency(self) -> int:
        return self._concurrency

    def get_all_rules(self) -> list[Rule]:
        """Return every registered rule in registration order, minus ignored ones."""
        return [
            rule
            for group in self._rule_groups
            for rule in group.rules
            if rule.id not in self._ignored_rules
        ]

    # Cache wiring

    @property
    def cache(self) -> ContentCache | None:
        return self._cache

    async def enable_cache(
        self, project_dir: str | Path, version: str, cache_file_name: str = DEFAULT_CACHE_FILE
    ) -> None:
        """Attach a content cache stored in ``project_dir`` and load it."""
        cache = ContentCache(project_dir, version, cache_file_name, logger=self._logger)
        await asyncio.to_thread(cache.load)
        self._cache = cache

    def disable_cache(self) -> None:
        self._cache = None

    async def save_cache(self) -> None:
        if self._cache is not None:
            await asyncio.to_thread(self._cache.save)

    async def clear_cache(self) -> None:
        """Drop every cache entry and persist the empty cache."""
        if self._cache is not None:
            self._cache.clear()
            await asyncio.to_thread(self._cache.save)

    def is_cache_enabled(self) -> bool:
        return self._cache is not None and self._cache.is_enabled()

    # Scanning

    async def run_rules_on_project(
        self, root_dir: str | Path, on_progress: ProgressCallback | None = None
    ) -> ScanResult:
        """Discover the analysable files under ``root_dir`` and scan them.

        Files are scanned in FileWalker order: sources, configs, manifests,
        then property lists.
        """
        group = await self.discover_files(root_dir)
        return await self.run_rules_on_files(group.all_files(), on_progress)

    async def discover_files(self, root_dir: str | Path) -> FileGroup:
        """Walk ``root_dir`` in a worker thread with the configured exclusions."""
        excludes = list(self._excluded_paths)
        if self._cache is not None and self._cache.cache_file.name != DEFAULT_CACHE_FILE:
            excludes.append(self._cache.cache_file.name)

        group = await asyncio.to_thread(walk_project_files, root_dir, excludes)
        self._logger.debug("%d files to scan under %s", len(group), root_dir)
        return group

    async def run_rules_on_files(
        self, file_paths: Iterable[str | Path], on_progress: ProgressCallback | None = None
    ) -> ScanResult:
        """Scan an explicit list of files.

        Exclusion globs do not apply here; every listed file is scanned.

        Args:
            file_paths: Files to scan. Findings come back in this order.
            on_progress: Called after each file completes with the number
                         of completed files and the total.

        Returns:
            ScanResult with the findings, the number of files submitted and
            the skipped/cached counters when they are non-zero.
        """
        paths = [str(p) for p in file_paths]
        state = _ScanState(total=len(paths))
        semaphore = asyncio.Semaphore(self._concurrency)

        tasks = [self._scan_file(path, semaphore, state, on_progress) for path in paths]
        results = await asyncio.gather(*tasks)

        await self.save_cache()

        findings = [finding for file_findings in results for finding in file_findings]
        self._logger.info(
            "Scanned %d files: %d findings, %d skipped, %d from cache",
            len(paths),
            len(findings),
            state.skipped,
            state.cached,
        )

        return ScanResult(
            findings=findings,
            scanned_files=len(paths),
            skipped_files=state.skipped if state.skipped > 0 else None,
            cached_files=state.cached if state.cached > 0 else None,
        )

    async def _scan_file(
        self,
        file_path: str,
        semaphore: asyncio.Semaphore,
        state: _ScanState,
        on_progress: ProgressCallback | None,
    ) -> list[Finding]:
        async with semaphore:
            try:
                return await self._process_file(file_path, state)
            except Exception as e:
                state.skipped += 1
                error = ScanError(str(e) or type(e).__name__, path=file_path)
                self._logger.debug("Skipping file after unexpected error: %s", error)
                return []
            finally:
                state.completed += 1
                self._report_progress(on_progress, state)

    def _report_progress(self, on_progress: ProgressCallback | None, state: _ScanState) -> None:
        if on_progress is None:
            return
        try:
            on_progress(ScanProgress(current=state.completed, total=state.total))
        except Exception as e:
            # Don't let callback errors disrupt the scan
            self._logger.debug("Progress callback error: %s", e)

    async def _process_file(self, file_path: str, state: _ScanState) -> list[Finding]:
        try:
            raw = await asyncio.to_thread(_read_file, file_path)
        except OSError as e:
            state.skipped += 1
            self._logger.debug("Skipping unreadable file %s: %s", file_path, e)
            return []

        content = raw.decode("utf-8", errors="replace")
        cache = self._cache if self.is_cache_enabled() else None
        content_hash: str | None = None
        if cache is not None:
            content_hash = cache.fingerprint(raw)
            if cache.is_valid(file_path, content_hash):
                cached = cache.get_findings(file_path)
                if cached is not None:
                    state.cached += 1
                    return cached

        context = await self._build_context(file_path, content)
        findings: list[Finding] = []
        for rule in self.get_all_rules():
            if applies_to(rule, file_path):
                findings.extend(await self._apply_rule(rule, context))

        findings = [
            finding
            for finding in findings
            if not is_in_debug_context(content, finding.snippet or "", finding.file_path)
        ]

        if cache is not None and content_hash is not None:
            cache.set(file_path, content_hash, findings)

        return findings

    async def _apply_rule(self, rule: Rule, context: RuleContext) -> list[Finding]:
        try:
            result = rule.apply(context)
            if inspect.isawaitable(result):
                result = await result
            findings = list(result or [])
            for finding in findings:
                if not isinstance(finding, Finding):
                    raise TypeError(f"rule returned {type(finding).__name__}, not Finding")
            return findings
        except Exception as e:
            error = RuleError(
                str(e) or type(e).__name__,
                rule_id=getattr(rule, "id", None),
                path=context.file_path,
            )
            self._logger.debug("Rule failed, ignoring its findings: %s", error)
            return []

    async def _build_context(self, file_path: str, content: str) -> RuleContext:
        context = RuleContext(file_path=file_path, file_content=content)
        suffix = Path(file_path).suffix.lower()

        if suffix in SOURCE_EXTENSIONS:
            context.ast = await self._parse(file_path, content)
        elif suffix in CONFIG_EXTENSIONS:
            context.config = parse_json_safe(content)
        elif suffix in MANIFEST_EXTENSIONS:
            context.xml_content = content
        elif suffix in PROPERTY_LIST_EXTENSIONS:
            context.plist_content = content

        return context

    async def _parse(self, file_path: str, content: str):
        try:
            result = self._parser.parse(file_path, content)
            if inspect.isawaitable(result):
                result = await result
            if not result.success:
                return None
            return result.ast
        except Exception as e:
            error = ParseError(str(e) or type(e).__name__, file_name=file_path)
            self._logger.debug("Parser failed, continuing without AST: %s", error)
            return None

    def __repr__(self) -> str:
        return (
            f"RuleEngine(rules={len(self.get_all_rules())}, "
            f"concurrency={self._concurrency}, cache={self.is_cache_enabled()})"
        )


def _read_file(file_path: str) -> bytes:
    return Path(file_path).read_bytes()
