"""Built-in rule catalog."""

from __future__ import annotations

from mobsentry.rules import RuleCategory, RuleGroup
from mobsentry.rules.manifest import (
    AndroidCleartextTrafficRule,
    AndroidDebuggableRule,
    IosArbitraryLoadsRule,
)
from mobsentry.rules.secrets import ConfigSecretRule, HardcodedSecretRule
from mobsentry.rules.storage import SensitiveAsyncStorageRule


def get_default_rule_groups() -> list[RuleGroup]:
    """Return fresh instances of every built-in rule, grouped by category."""
    return [
        RuleGroup(RuleCategory.SECRETS, [HardcodedSecretRule(), ConfigSecretRule()]),
        RuleGroup(RuleCategory.STORAGE, [SensitiveAsyncStorageRule()]),
        RuleGroup(RuleCategory.ANDROID, [AndroidCleartextTrafficRule(), AndroidDebuggableRule()]),
        RuleGroup(RuleCategory.IOS, [IosArbitraryLoadsRule()]),
    ]
