# Core module for mobsentry

from mobsentry.core.cache import (
    DEFAULT_CACHE_FILE,
    CacheData,
    CacheEntry,
    CacheStats,
    ContentCache,
)
from mobsentry.core.engine import DEFAULT_CONCURRENCY, RuleEngine
from mobsentry.core.file_filter import (
    CompiledPattern,
    FilterResult,
    PathFilter,
)
from mobsentry.core.file_walker import (
    DEFAULT_EXCLUDES,
    FileGroup,
    FileWalker,
    walk_project_files,
)
from mobsentry.core.models import Finding, ScanResult, Severity
from mobsentry.core.progress import ProgressCallback, ScanProgress

__all__ = [
    # Cache
    "DEFAULT_CACHE_FILE",
    "CacheData",
    "CacheEntry",
    "CacheStats",
    "ContentCache",
    # Engine
    "DEFAULT_CONCURRENCY",
    "RuleEngine",
    # File filtering
    "CompiledPattern",
    "FilterResult",
    "PathFilter",
    # File walking
    "DEFAULT_EXCLUDES",
    "FileGroup",
    "FileWalker",
    "walk_project_files",
    # Models
    "Finding",
    "ScanResult",
    "Severity",
    # Progress
    "ProgressCallback",
    "ScanProgress",
]
