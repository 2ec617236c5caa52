"""Exclusion glob matching for mobsentry.

This module provides PathFilter, which compiles gitignore-style exclusion
globs to regular expressions and matches them against paths relative to the
scanned project root. The file walker uses it both to prune directories and
to drop individual files.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledPattern:
    """A compiled exclusion pattern.

    Attributes:
        original: The pattern string as supplied.
        regex: Matches the path itself or anything beneath it.
        nested_regex: Matches only paths strictly beneath a match; used for
            directory-only patterns when checking a file.
        is_negation: Pattern started with ``!`` and re-includes paths.
        is_dir_only: Pattern ended with ``/`` and targets directories.
        anchored: Pattern is relative to the project root.
    """

    original: str
    regex: re.Pattern[str]
    nested_regex: re.Pattern[str]
    is_negation: bool = False
    is_dir_only: bool = False
    anchored: bool = False

    def matches(self, relative_path: str, is_dir: bool = False) -> bool:
        if self.is_dir_only and not is_dir:
            return self.nested_regex.match(relative_path) is not None
        return self.regex.match(relative_path) is not None


@dataclass(frozen=True)
class FilterResult:
    """Outcome of checking one path against the filter."""

    path: str
    excluded: bool
    matched_pattern: str | None = None


def glob_to_regex(pattern: str) -> str:
    """Convert a glob to a regex fragment.

    ``*`` and ``?`` stay within one path component, ``**`` crosses
    components, ``**/`` matches zero or more leading directories and
    ``[...]`` character classes (with ``!`` negation) are passed through.
    """
    parts: list[str] = []
    i = 0
    n = len(pattern)

    while i < n:
        c = pattern[i]

        if c == "*":
            if i + 1 < n and pattern[i + 1] == "*":
                if i + 2 < n and pattern[i + 2] == "/":
                    parts.append("(?:.*/)?")
                    i += 3
                else:
                    parts.append(".*")
                    i += 2
            else:
                parts.append("[^/]*")
                i += 1
        elif c == "?":
            parts.append("[^/]")
            i += 1
        elif c == "[":
            j = i + 1
            if j < n and pattern[j] == "!":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                # unterminated class, literal bracket
                parts.append(re.escape(c))
                i += 1
            else:
                char_class = pattern[i : j + 1]
                if char_class.startswith("[!"):
                    char_class = "[^" + char_class[2:]
                parts.append(char_class)
                i = j + 1
        else:
            parts.append(re.escape(c) if c != "/" else "/")
            i += 1

    return "".join(parts)


class PathFilter:
    """Gitignore-style exclusion filter over project-relative paths.

    Paths are POSIX-style and relative to the project root. Patterns without
    a slash (``node_modules``, ``*.test.*``) match at any depth; patterns
    with a leading or embedded slash are anchored at the root, except those
    starting with ``**/``. A trailing slash restricts a pattern to
    directories (and everything beneath them). ``!pattern`` re-includes a
    path excluded by an earlier pattern; the last matching pattern wins.

    Example:
        >>> path_filter = PathFilter(["node_modules/", "*.test.*", "**/generated/**"])
        >>> path_filter.is_excluded("node_modules", is_dir=True)
        True
        >>> path_filter.is_excluded("src/utils.test.ts")
        True
        >>> path_filter.is_excluded("src/App.tsx")
        False
    """

    _pattern_cache: dict[str, CompiledPattern] = {}

    def __init__(self, patterns: Iterable[str] | None = None, case_sensitive: bool = True):
        self.case_sensitive = case_sensitive
        self.patterns: list[str] = []
        self._compiled: list[CompiledPattern] = []
        for pattern in patterns or []:
            self.add(pattern)

    def add(self, pattern: str) -> None:
        """Add a pattern; blank patterns and ``#`` comments are ignored."""
        compiled = self._compile(pattern)
        if compiled is not None:
            self.patterns.append(pattern)
            self._compiled.append(compiled)

    def _compile(self, pattern: str) -> CompiledPattern | None:
        pattern = pattern.strip()
        if not pattern or pattern.startswith("#"):
            return None

        cache_key = f"{pattern}:{self.case_sensitive}"
        cached = self._pattern_cache.get(cache_key)
        if cached is not None:
            return cached

        original = pattern
        is_negation = pattern.startswith("!")
        if is_negation:
            pattern = pattern[1:]

        is_dir_only = pattern.endswith("/")
        if is_dir_only:
            pattern = pattern.rstrip("/")

        anchored = False
        if pattern.startswith("/"):
            anchored = True
            pattern = pattern.lstrip("/")
        elif "/" in pattern and not pattern.startswith("**/"):
            anchored = True

        body = glob_to_regex(pattern)
        prefix = "^" if anchored else "(?:^|.*/)"
        flags = 0 if self.case_sensitive else re.IGNORECASE

        try:
            regex = re.compile(f"{prefix}{body}(?:/.*)?$", flags)
            nested_regex = re.compile(f"{prefix}{body}/.*$", flags)
        except re.error as e:
            logger.warning("Invalid exclude pattern %r: %s", original, e)
            return None

        compiled = CompiledPattern(
            original=original,
            regex=regex,
            nested_regex=nested_regex,
            is_negation=is_negation,
            is_dir_only=is_dir_only,
            anchored=anchored,
        )
        self._pattern_cache[cache_key] = compiled
        return compiled

    def check(self, relative_path: str, is_dir: bool = False) -> FilterResult:
        """Check a path and report which pattern decided the outcome."""
        relative_path = relative_path.replace("\\", "/").strip("/")
        excluded = False
        matched: str | None = None

        for compiled in self._compiled:
            if compiled.matches(relative_path, is_dir):
                excluded = not compiled.is_negation
                matched = compiled.original

        return FilterResult(path=relative_path, excluded=excluded, matched_pattern=matched)

    def is_excluded(self, relative_path: str, is_dir: bool = False) -> bool:
        return self.check(relative_path, is_dir).excluded

    @classmethod
    def clear_cache(cls) -> None:
        """Clear the shared compiled-pattern cache."""
        cls._pattern_cache.clear()

    def __repr__(self) -> str:
        return f"PathFilter(patterns={self.patterns!r})"
