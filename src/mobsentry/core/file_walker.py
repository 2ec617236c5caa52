"""Project file discovery for mobsentry.

The walker finds the files a mobile project scan cares about and buckets them
by analysis kind: JS/TS sources, JSON configuration, Android manifests and iOS
property lists. Dependency, hidden, build-output and test-artifact paths are
always excluded; caller globs are added on top of those defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from mobsentry.core.cache import DEFAULT_CACHE_FILE
from mobsentry.core.file_filter import PathFilter

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = frozenset({".js", ".jsx", ".ts", ".tsx"})
CONFIG_EXTENSIONS = frozenset({".json"})
MANIFEST_EXTENSIONS = frozenset({".xml"})
PROPERTY_LIST_EXTENSIONS = frozenset({".plist"})

DEFAULT_EXCLUDES: tuple[str, ...] = (
    # dependencies
    "node_modules/",
    "Pods/",
    "bower_components/",
    # hidden and VCS directories
    ".*/",
    # build output
    "build/",
    "dist/",
    "coverage/",
    # test artifacts
    "*.test.*",
    "*.spec.*",
    "__tests__/",
    "__mocks__/",
    # our own cache file
    DEFAULT_CACHE_FILE,
)


@dataclass
class FileGroup:
    """Absolute file paths bucketed by analysis kind, each sorted by path."""

    source_files: list[str] = field(default_factory=list)
    config_files: list[str] = field(default_factory=list)
    manifest_files: list[str] = field(default_factory=list)
    property_list_files: list[str] = field(default_factory=list)

    def all_files(self) -> list[str]:
        """Concatenate the buckets: sources, configs, manifests, property lists."""
        return [
            *self.source_files,
            *self.config_files,
            *self.manifest_files,
            *self.property_list_files,
        ]

    def __len__(self) -> int:
        return (
            len(self.source_files)
            + len(self.config_files)
            + len(self.manifest_files)
            + len(self.property_list_files)
        )


def _bucket_for(suffix: str, group: FileGroup) -> list[str] | None:
    suffix = suffix.lower()
    if suffix in SOURCE_EXTENSIONS:
        return group.source_files
    if suffix in CONFIG_EXTENSIONS:
        return group.config_files
    if suffix in MANIFEST_EXTENSIONS:
        return group.manifest_files
    if suffix in PROPERTY_LIST_EXTENSIONS:
        return group.property_list_files
    return None


class FileWalker:
    """Walks a project directory and groups analysable files.

    Example:
        >>> walker = FileWalker(extra_excludes=["**/generated/**"])
        >>> group = walker.walk("/path/to/app")
        >>> group.source_files[:2]
        ['/path/to/app/App.tsx', '/path/to/app/src/index.ts']
    """

    def __init__(self, extra_excludes: Iterable[str] | None = None):
        self.extra_excludes = list(extra_excludes or [])
        self._filter = PathFilter([*DEFAULT_EXCLUDES, *self.extra_excludes])

    @property
    def patterns(self) -> list[str]:
        """All exclusion patterns in effect, defaults first."""
        return list(self._filter.patterns)

    def walk(self, root_dir: str | Path) -> FileGroup:
        """Discover and bucket project files under ``root_dir``.

        A missing, unreadable or empty root yields an empty FileGroup.
        Traversal order does not matter: every bucket is sorted before it
        is returned.
        """
        group = FileGroup()
        root = Path(root_dir).resolve()

        if not root.is_dir():
            logger.debug("Scan root %s is not a directory, nothing to walk", root)
            return group

        def _on_error(error: OSError) -> None:
            logger.debug("Cannot read directory %s: %s", error.filename, error)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            current = Path(dirpath)
            rel_dir = current.relative_to(root).as_posix()
            rel_dir = "" if rel_dir == "." else rel_dir

            kept_dirs = []
            for name in dirnames:
                rel = f"{rel_dir}/{name}" if rel_dir else name
                result = self._filter.check(rel, is_dir=True)
                if result.excluded:
                    logger.debug("Excluded directory %s by pattern %r", rel, result.matched_pattern)
                else:
                    kept_dirs.append(name)
            dirnames[:] = sorted(kept_dirs)

            for name in filenames:
                bucket = _bucket_for(os.path.splitext(name)[1], group)
                if bucket is None:
                    continue
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if self._filter.is_excluded(rel):
                    continue
                bucket.append(str(current / name))

        for bucket in (
            group.source_files,
            group.config_files,
            group.manifest_files,
            group.property_list_files,
        ):
            bucket.sort()

        logger.debug(
            "Discovered %d source, %d config, %d manifest, %d property list files under %s",
            len(group.source_files),
            len(group.config_files),
            len(group.manifest_files),
            len(group.property_list_files),
            root,
        )
        return group


def walk_project_files(
    root_dir: str | Path, extra_excludes: Iterable[str] | None = None
) -> FileGroup:
    """Walk ``root_dir`` with the default exclusions plus ``extra_excludes``."""
    return FileWalker(extra_excludes).walk(root_dir)
