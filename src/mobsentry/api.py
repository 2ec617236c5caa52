"""High-level API functions for mobsentry.

This module provides simple, high-level functions for scanning a mobile app
project. They wire a RuleEngine from a MobsentryConfig, attach the content
cache and keep it pruned, so mobsentry can be embedded as a library without
dealing with the engine directly.

Example usage::

    import asyncio
    from mobsentry.api import scan_project

    result = asyncio.run(scan_project("/path/to/app"))
    for finding in result.findings:
        print(f"{finding.file_path}:{finding.line} {finding.rule_id}")
"""

from __future__ import annotations

import logging
from pathlib import Path

from mobsentry import __version__
from mobsentry.config.schema import MobsentryConfig
from mobsentry.core.engine import RuleEngine
from mobsentry.core.exceptions import ScanError
from mobsentry.core.models import ScanResult
from mobsentry.core.progress import ProgressCallback
from mobsentry.parsing import SourceParser
from mobsentry.rules import RuleGroup
from mobsentry.rules.registry import get_default_rule_groups


def create_engine(
    config: MobsentryConfig,
    logger: logging.Logger | None = None,
    rule_groups: list[RuleGroup] | None = None,
    parser: SourceParser | None = None,
) -> RuleEngine:
    """Create a RuleEngine configured from ``config``.

    Args:
        config: Settings for concurrency, exclusions and ignored rules.
        logger: Diagnostics logger passed to the engine.
        rule_groups: Rule groups to register. Defaults to the built-in catalog.
        parser: Source parser for JS/TS files.

    Returns:
        A RuleEngine with the rule groups registered. The cache is not
        attached; scan_project() does that.
    """
    engine = RuleEngine(parser=parser, logger=logger, concurrency=config.scan.concurrency)
    engine.set_excluded_paths(config.scan.exclude)
    engine.set_ignored_rules(config.scan.ignored_rules)

    for group in rule_groups if rule_groups is not None else get_default_rule_groups():
        engine.register_rule_group(group)

    return engine


async def scan_project(
    path: str | Path,
    config: MobsentryConfig | None = None,
    version: str = __version__,
    *,
    logger: logging.Logger | None = None,
    rule_groups: list[RuleGroup] | None = None,
    parser: SourceParser | None = None,
    clear_cache: bool = False,
    on_progress: ProgressCallback | None = None,
) -> ScanResult:
    """Scan a project directory, or a single file, for security issues.

    For directories the content cache is attached per ``config.cache``,
    optionally cleared first, and pruned of entries for files that are gone
    or older than ``config.cache.max_age_days`` before scanning. A single
    file is scanned without the cache and without exclusions.

    Args:
        path: Project root directory or a single file.
        config: Settings to use. Defaults to built-in defaults, without
            reading config files or the environment.
        version: Tool version stamped on cache entries; entries written by a
            different version are rescanned.
        logger: Diagnostics logger.
        rule_groups: Rule groups to run. Defaults to the built-in catalog.
        parser: Source parser for JS/TS files.
        clear_cache: Drop every cache entry before scanning.
        on_progress: Progress callback, called once per completed file.

    Returns:
        ScanResult with findings in file order.

    Raises:
        ScanError: If the path does not exist.

    Example::

        import asyncio
        from mobsentry.api import scan_project
        from mobsentry.config import load_config

        config = load_config(cli_args={"ignore": ["ANDROID_CLEARTEXT_TRAFFIC"]})
        result = asyncio.run(scan_project("/path/to/app", config))
    """
    target = Path(path).resolve()
    if not target.exists():
        raise ScanError("Path does not exist", path=str(path))

    if config is None:
        config = MobsentryConfig.model_validate({})

    engine = create_engine(config, logger=logger, rule_groups=rule_groups, parser=parser)

    if target.is_file():
        return await engine.run_rules_on_files([str(target)], on_progress)

    if config.cache.enabled:
        await engine.enable_cache(target, version, config.cache.file_name)
        if clear_cache:
            await engine.clear_cache()

    group = await engine.discover_files(target)
    files = group.all_files()

    if engine.cache is not None:
        engine.cache.prune(files, config.cache.max_age_ms)

    return await engine.run_rules_on_files(files, on_progress)
