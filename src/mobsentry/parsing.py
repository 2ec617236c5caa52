"""Source parsing collaborators.

mobsentry does not parse JavaScript or TypeScript itself. The rule engine
hands code files to a SourceParser and stores whatever AST comes back on the
rule context; it never looks inside the AST or the parse error. Callers that
want AST-based rules inject a real parser, everything else works on text.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Protocol, runtime_checkable


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one source file.

    Attributes:
        success: True if ``ast`` holds a usable tree.
        ast: The parser's AST, opaque to mobsentry.
        error: Parser error message when ``success`` is False.
    """

    success: bool
    ast: Any = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> ParseResult:
        return cls(success=False, error=error)


@runtime_checkable
class SourceParser(Protocol):
    """Turns source text into an AST.

    ``parse`` may be a plain method or a coroutine function; the engine
    awaits the result when it is awaitable.
    """

    def parse(self, file_name: str, source: str) -> ParseResult | Awaitable[ParseResult]: ...


class NullParser:
    """Parser that never produces an AST."""

    def parse(self, file_name: str, source: str) -> ParseResult:
        return ParseResult.failure("no source parser configured")


def parse_json_safe(text: str) -> Any | None:
    """Parse JSON text, returning None instead of raising on invalid input."""
    try:
        return json.loads(text)
    except (TypeError, ValueError, RecursionError):
        # deeply nested documents raise RecursionError
        return None
