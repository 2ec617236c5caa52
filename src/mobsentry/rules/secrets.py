"""Hardcoded secret rules for source and JSON configuration files."""

from __future__ import annotations

import re
from typing import Any, Iterator

from mobsentry.core.models import Finding, Severity
from mobsentry.heuristics import (
    find_embedded_secret,
    is_in_form_validation_context,
    is_likely_sensitive_variable,
    looks_like_secret,
)
from mobsentry.rules import RuleContext, finding_at

CODE_FILE_TYPES = frozenset({".js", ".jsx", ".ts", ".tsx"})
CONFIG_FILE_TYPES = frozenset({".json"})

# Single-line string literals: '...', "..." and `...`
STRING_LITERAL = re.compile(r"""(["'`])((?:\\.|(?!\1)[^\\\n])*)\1""")


class HardcodedSecretRule:
    """Flags string literals in JS/TS source that look like credentials.

    Lines that handle form input or validation, and comments, are skipped so
    login screens full of ``password`` state do not drown real leaks.
    """

    id = "HARDCODED_SECRET"
    description = "Hardcoded secret or API key in source code"
    severity = Severity.HIGH
    file_types = CODE_FILE_TYPES

    suggestion = (
        "Move the secret to a backend service or inject it at build time "
        "from a secure store; never ship credentials in the app bundle."
    )

    def apply(self, context: RuleContext) -> list[Finding]:
        findings: list[Finding] = []
        offset = 0

        for line in context.file_content.split("\n"):
            if not is_in_form_validation_context(line):
                for match in STRING_LITERAL.finditer(line):
                    value = match.group(2)
                    if "${" in value:
                        continue
                    start = offset + match.start(2)
                    if looks_like_secret(value):
                        findings.append(finding_at(self, context, start, self.suggestion))
                        continue
                    embedded = find_embedded_secret(value)
                    if embedded is not None:
                        findings.append(
                            finding_at(self, context, start + embedded, self.suggestion)
                        )
            offset += len(line) + 1

        return findings


def _iter_string_pairs(node: Any, prefix: str = "") -> Iterator[tuple[str, str, str]]:
    """Yield ``(key, dotted_path, value)`` for every string value in a JSON tree."""
    if isinstance(node, dict):
        for key, value in node.items():
            key = str(key)
            path = f"{prefix}.{key}" if prefix else key
            if isinstance(value, str):
                yield key, path, value
            else:
                yield from _iter_string_pairs(value, path)
    elif isinstance(node, list):
        for index, item in enumerate(node):
            yield from _iter_string_pairs(item, f"{prefix}[{index}]")


class ConfigSecretRule:
    """Flags sensitive keys holding secret-looking values in JSON config."""

    id = "CONFIG_HARDCODED_SECRET"
    description = "Hardcoded secret in configuration file"
    severity = Severity.HIGH
    file_types = CONFIG_FILE_TYPES

    def apply(self, context: RuleContext) -> list[Finding]:
        if context.config is None:
            return []

        findings: list[Finding] = []
        for key, path, value in _iter_string_pairs(context.config):
            if not is_likely_sensitive_variable(key, value):
                continue
            offset = context.file_content.find(f'"{key}"')
            findings.append(
                finding_at(
                    self,
                    context,
                    max(offset, 0),
                    f"Remove the value of '{path}' from the config file and load it "
                    "from environment-specific secure storage.",
                )
            )
        return findings
