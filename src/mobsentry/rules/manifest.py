"""Platform manifest rules for AndroidManifest.xml and Info.plist."""

from __future__ import annotations

import re

from mobsentry.core.models import Finding, Severity
from mobsentry.rules import RuleContext, finding_at

MANIFEST_FILE_TYPES = frozenset({".xml"})
PROPERTY_LIST_FILE_TYPES = frozenset({".plist"})


class _AttributeRule:
    pattern: re.Pattern[str]
    suggestion: str

    def _text(self, context: RuleContext) -> str | None:
        return context.xml_content

    def apply(self, context: RuleContext) -> list[Finding]:
        text = self._text(context)
        if not text:
            return []
        return [
            finding_at(self, context, match.start(), self.suggestion)
            for match in self.pattern.finditer(text)
        ]


class AndroidCleartextTrafficRule(_AttributeRule):
    id = "ANDROID_CLEARTEXT_TRAFFIC"
    description = "Android app allows cleartext HTTP traffic"
    severity = Severity.MEDIUM
    file_types = MANIFEST_FILE_TYPES

    pattern = re.compile(r"""android:usesCleartextTraffic\s*=\s*["']true["']""")
    suggestion = (
        "Remove android:usesCleartextTraffic or set it to false, and use a "
        "network security config for any required exceptions."
    )


class AndroidDebuggableRule(_AttributeRule):
    id = "ANDROID_DEBUGGABLE_ENABLED"
    description = "Android application is debuggable"
    severity = Severity.HIGH
    file_types = MANIFEST_FILE_TYPES

    pattern = re.compile(r"""android:debuggable\s*=\s*["']true["']""")
    suggestion = "Remove android:debuggable; the build system sets it for debug builds only."


class IosArbitraryLoadsRule(_AttributeRule):
    id = "IOS_ATS_ARBITRARY_LOADS"
    description = "App Transport Security allows arbitrary loads"
    severity = Severity.MEDIUM
    file_types = PROPERTY_LIST_FILE_TYPES

    pattern = re.compile(r"<key>\s*NSAllowsArbitraryLoads\s*</key>\s*<true\s*/>")
    suggestion = (
        "Set NSAllowsArbitraryLoads to false and declare per-domain "
        "NSExceptionDomains where plain HTTP is unavoidable."
    )

    def _text(self, context: RuleContext) -> str | None:
        return context.plist_content
