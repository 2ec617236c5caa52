"""Insecure local storage rules."""

from __future__ import annotations

import re

from mobsentry.core.models import Finding, Severity
from mobsentry.heuristics import contains_sensitive_keyword, is_in_form_validation_context
from mobsentry.rules import RuleContext, finding_at
from mobsentry.rules.secrets import CODE_FILE_TYPES

ASYNC_STORAGE_SET_ITEM = re.compile(
    r"""\bAsyncStorage\s*\.\s*(?:setItem|mergeItem)\s*\(\s*(["'`])([^"'`\n]+)\1"""
)


class SensitiveAsyncStorageRule:
    """Flags sensitive values written to unencrypted AsyncStorage."""

    id = "ASYNCSTORAGE_SENSITIVE_DATA"
    description = "Sensitive data stored in unencrypted AsyncStorage"
    severity = Severity.HIGH
    file_types = CODE_FILE_TYPES

    suggestion = (
        "Store tokens and credentials with react-native-keychain or "
        "expo-secure-store instead of AsyncStorage."
    )

    def apply(self, context: RuleContext) -> list[Finding]:
        findings: list[Finding] = []
        content = context.file_content

        for match in ASYNC_STORAGE_SET_ITEM.finditer(content):
            if not contains_sensitive_keyword(match.group(2)):
                continue
            line_start = content.rfind("\n", 0, match.start()) + 1
            line_end = content.find("\n", match.start())
            line = content[line_start : line_end if line_end != -1 else len(content)]
            if is_in_form_validation_context(line):
                continue
            findings.append(finding_at(self, context, match.start(), self.suggestion))

        return findings
