"""Environment variable overrides for mobsentry configuration.

Every supported variable maps onto one setting. Values that do not parse
(a non-numeric concurrency, say) are dropped so a stray variable never
stops a scan.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

ENV_CONFIG_PATH = "MOBSENTRY_CONFIG_PATH"
ENV_CONCURRENCY = "MOBSENTRY_CONCURRENCY"
ENV_EXCLUDE = "MOBSENTRY_EXCLUDE"
ENV_IGNORED_RULES = "MOBSENTRY_IGNORED_RULES"
ENV_CACHE = "MOBSENTRY_CACHE"
ENV_OUTPUT_FORMAT = "MOBSENTRY_OUTPUT_FORMAT"
ENV_QUIET = "MOBSENTRY_QUIET"
ENV_VERBOSE = "MOBSENTRY_VERBOSE"
ENV_LOG_LEVEL = "MOBSENTRY_LOG_LEVEL"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on", "enabled")


def _parse_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def _parse_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_lower(value: str) -> str:
    return value.strip().lower()


@dataclass(frozen=True)
class EnvSetting:
    """One environment variable and the setting it overrides."""

    name: str
    section: str | None
    key: str
    parse: Callable[[str], Any]
    help: str


ENV_SETTINGS: tuple[EnvSetting, ...] = (
    EnvSetting(ENV_CONCURRENCY, "scan", "concurrency", _parse_int, "Files processed at once"),
    EnvSetting(ENV_EXCLUDE, "scan", "exclude", _parse_list, "Comma-separated exclusion globs"),
    EnvSetting(
        ENV_IGNORED_RULES, "scan", "ignored_rules", _parse_list, "Comma-separated rule ids to skip"
    ),
    EnvSetting(ENV_CACHE, "cache", "enabled", _parse_bool, "Use the incremental cache"),
    EnvSetting(ENV_OUTPUT_FORMAT, "output", "format", _parse_lower, "table or json"),
    EnvSetting(ENV_QUIET, "output", "quiet", _parse_bool, "Only print findings and errors"),
    EnvSetting(ENV_VERBOSE, "output", "verbose", _parse_bool, "Print diagnostics"),
    EnvSetting(ENV_LOG_LEVEL, None, "log_level", _parse_lower, "debug, info, warning or error"),
)


def get_env_overrides() -> dict[str, Any]:
    """Collect the settings overridden by ``MOBSENTRY_*`` variables.

    Returns a nested mapping shaped like the config file, containing only
    the variables that are set and parse.
    """
    overrides: dict[str, Any] = {}
    for setting in ENV_SETTINGS:
        raw = os.environ.get(setting.name)
        if raw is None:
            continue
        value = setting.parse(raw)
        if value is None:
            continue
        if setting.section is None:
            overrides[setting.key] = value
        else:
            overrides.setdefault(setting.section, {})[setting.key] = value
    return overrides


def get_config_path_from_env() -> Path | None:
    """Return ``MOBSENTRY_CONFIG_PATH`` when it names an existing path."""
    raw = os.environ.get(ENV_CONFIG_PATH)
    if raw and Path(raw).exists():
        return Path(raw)
    return None


def get_env_var_docs() -> dict[str, str]:
    """Map each supported variable name to a one-line description."""
    docs = {ENV_CONFIG_PATH: "Path to a configuration file"}
    docs.update((setting.name, setting.help) for setting in ENV_SETTINGS)
    return docs
