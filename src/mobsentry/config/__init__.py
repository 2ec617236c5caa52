"""Configuration management for mobsentry.

Settings are layered, later layers winning:

1. Defaults
2. Configuration file (explicit path, ``MOBSENTRY_CONFIG_PATH`` or discovered)
3. ``MOBSENTRY_*`` environment variables
4. CLI arguments

Example usage::

    from mobsentry.config import load_config

    config = load_config(cli_args={"concurrency": 4, "no_cache": True})
    print(config.scan.concurrency)

    resolved = resolve_config(start_path="/path/to/app")
    print(resolved.config_file, resolved.source_of("scan.concurrency"))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mobsentry.config.env import get_config_path_from_env, get_env_overrides
from mobsentry.config.loader import find_config_file, read_config_file, validate_config_file
from mobsentry.config.schema import (
    CacheSettings,
    LogLevel,
    MobsentryConfig,
    OutputFormatConfig,
    OutputSettings,
    ScanSettings,
)
from mobsentry.core.exceptions import ConfigError

__all__ = [
    "CacheSettings",
    "ConfigSource",
    "LogLevel",
    "MobsentryConfig",
    "OutputFormatConfig",
    "OutputSettings",
    "ResolvedConfig",
    "ScanSettings",
    "find_config_file",
    "get_env_overrides",
    "load_config",
    "read_config_file",
    "resolve_config",
    "validate_config_file",
]


class ConfigSource(str, Enum):
    """Layer a setting's value came from."""

    DEFAULT = "default"
    CONFIG_FILE = "config_file"
    ENVIRONMENT = "environment"
    CLI = "cli"


@dataclass
class ResolvedConfig:
    """A validated configuration plus where each overridden setting came from.

    Attributes:
        config: The merged, validated settings.
        config_file: The config file that was applied, if any.
        sources: Dotted setting names (``scan.concurrency``) mapped to the
            layer that last set them. Settings left at their default are
            absent.
    """

    config: MobsentryConfig
    config_file: Path | None = None
    sources: dict[str, ConfigSource] = field(default_factory=dict)

    def source_of(self, key: str) -> ConfigSource:
        return self.sources.get(key, ConfigSource.DEFAULT)


# CLI argument name -> (section, setting)
_CLI_SETTINGS: dict[str, tuple[str, str]] = {
    "concurrency": ("scan", "concurrency"),
    "exclude": ("scan", "exclude"),
    "ignore": ("scan", "ignored_rules"),
    "ignored_rules": ("scan", "ignored_rules"),
    "cache": ("cache", "enabled"),
    "cache_file": ("cache", "file_name"),
    "format": ("output", "format"),
    "output_format": ("output", "format"),
    "verbose": ("output", "verbose"),
    "quiet": ("output", "quiet"),
}


def _apply_layer(
    target: dict[str, Any],
    layer: dict[str, Any],
    source: ConfigSource,
    sources: dict[str, ConfigSource],
    prefix: str = "",
) -> None:
    """Merge ``layer`` into ``target`` in place, recording each key it sets."""
    for key, value in layer.items():
        if value is None:
            continue
        dotted = f"{prefix}{key}"
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _apply_layer(target[key], value, source, sources, f"{dotted}.")
        else:
            target[key] = value
            sources[dotted] = source


def _cli_layer(cli_args: dict[str, Any]) -> dict[str, Any]:
    """Nest flat CLI arguments into config sections.

    ``None`` and empty lists mean "not given" and leave lower layers alone;
    ``no_cache=True`` turns the cache off.
    """
    layer: dict[str, Any] = {}
    for name, value in cli_args.items():
        if value is None or (isinstance(value, (list, tuple)) and not value):
            continue
        if name == "no_cache":
            if value:
                layer.setdefault("cache", {})["enabled"] = False
            continue
        if name not in _CLI_SETTINGS:
            raise ConfigError(f"Unknown CLI setting: {name}", config_key=name)
        section, key = _CLI_SETTINGS[name]
        layer.setdefault(section, {})[key] = list(value) if isinstance(value, tuple) else value
    return layer


def _validate(data: dict[str, Any]) -> MobsentryConfig:
    # model_validate skips the settings sources, so the environment is only
    # read through get_env_overrides() and use_env is honoured
    try:
        return MobsentryConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def resolve_config(
    config_path: Path | str | None = None,
    cli_args: dict[str, Any] | None = None,
    use_env: bool = True,
    use_file: bool = True,
    start_path: Path | str | None = None,
) -> ResolvedConfig:
    """Merge every configuration layer and validate the result.

    Args:
        config_path: Explicit config file; skips discovery.
        cli_args: Flat CLI arguments (``concurrency``, ``exclude``,
            ``ignore``, ``no_cache``, ``format``, ...).
        use_env: Apply ``MOBSENTRY_*`` variables, including
            ``MOBSENTRY_CONFIG_PATH``.
        use_file: Load a config file at all.
        start_path: Where discovery starts (defaults to the current
            directory).

    Raises:
        ConfigError: If the config file, a CLI argument or the merged
            settings are invalid.
    """
    data: dict[str, Any] = _validate({}).model_dump(mode="json")
    sources: dict[str, ConfigSource] = {}
    config_file: Path | None = None

    if use_file:
        if config_path is not None:
            config_file = Path(config_path)
        elif use_env:
            config_file = get_config_path_from_env()
        if config_file is None:
            config_file = find_config_file(start_path)
        if config_file is not None:
            _apply_layer(data, read_config_file(config_file), ConfigSource.CONFIG_FILE, sources)

    if use_env:
        _apply_layer(data, get_env_overrides(), ConfigSource.ENVIRONMENT, sources)

    if cli_args:
        _apply_layer(data, _cli_layer(cli_args), ConfigSource.CLI, sources)

    return ResolvedConfig(config=_validate(data), config_file=config_file, sources=sources)


def load_config(
    config_path: Path | str | None = None,
    cli_args: dict[str, Any] | None = None,
    use_env: bool = True,
    use_file: bool = True,
    start_path: Path | str | None = None,
) -> MobsentryConfig:
    """Return the merged configuration; see resolve_config() for the layers."""
    return resolve_config(config_path, cli_args, use_env, use_file, start_path).config
