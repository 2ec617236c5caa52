"""Rule protocol and rule data model.

A rule is any object with ``id``, ``description``, ``severity`` and
``file_types`` attributes and an ``apply(context)`` method returning a list
of findings, or an awaitable of one. There is no base class: the engine
only ever calls ``apply``.

Example:
    >>> class ConsoleLogRule:
    ...     id = "CONSOLE_LOG"
    ...     description = "console.log left in production code"
    ...     severity = Severity.LOW
    ...     file_types = frozenset({".js", ".ts"})
    ...
    ...     def apply(self, context):
    ...         return []
    >>> engine.register_rule_group(RuleGroup(RuleCategory.LOGGING, [ConsoleLogRule()]))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Protocol, runtime_checkable

from mobsentry.core.models import Finding, Severity
from mobsentry.heuristics import extract_snippet, get_line_number


class RuleCategory(str, Enum):
    """Area of mobile app security a rule group covers."""

    STORAGE = "storage"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    SECRETS = "secrets"
    CRYPTOGRAPHY = "cryptography"
    LOGGING = "logging"
    WEBVIEW = "webview"
    CONFIG = "config"
    ANDROID = "android"
    IOS = "ios"


@dataclass
class RuleContext:
    """Everything a rule may inspect for one file.

    At most one of ``ast``, ``config``, ``xml_content`` and
    ``plist_content`` is set, chosen by the file extension. ``ast`` and
    ``config`` stay None when parsing fails.
    """

    file_path: str
    file_content: str
    ast: Any = None
    config: Any = None
    xml_content: str | None = None
    plist_content: str | None = None


@runtime_checkable
class Rule(Protocol):
    """A single detection rule."""

    id: str
    description: str
    severity: Severity
    file_types: frozenset[str]

    def apply(self, context: RuleContext) -> list[Finding] | Awaitable[list[Finding]]: ...


@dataclass
class RuleGroup:
    """Rules registered together under a category tag."""

    category: RuleCategory
    rules: list[Rule] = field(default_factory=list)


def applies_to(rule: Rule, file_path: str) -> bool:
    """True if ``file_path`` ends with one of the rule's file types."""
    return any(file_path.endswith(suffix) for suffix in rule.file_types)


def finding_at(
    rule: Rule, context: RuleContext, offset: int, suggestion: str | None = None
) -> Finding:
    """Build a finding for ``rule`` at character ``offset`` of the context file."""
    line = get_line_number(context.file_content, offset)
    return Finding(
        rule_id=rule.id,
        description=rule.description,
        severity=rule.severity,
        file_path=context.file_path,
        line=line,
        snippet=extract_snippet(context.file_content, line),
        suggestion=suggestion,
    )


__all__ = [
    "Rule",
    "RuleCategory",
    "RuleContext",
    "RuleGroup",
    "applies_to",
    "finding_at",
]
