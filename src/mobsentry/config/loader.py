"""Configuration file discovery and parsing.

A config file is a mapping in YAML, TOML or JSON. The format follows the
file extension; ``.mobsentryrc`` may hold any of the three.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable

import yaml
from pydantic import ValidationError

from mobsentry.config.schema import MobsentryConfig
from mobsentry.core.exceptions import ConfigError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

# Checked in this order in every directory
CONFIG_FILE_NAMES = [
    ".mobsentry.yml",
    ".mobsentry.yaml",
    ".mobsentry.toml",
    "mobsentry.config.json",
    ".mobsentryrc",
]

# Searched after the project tree
USER_CONFIG_DIRS = [
    Path.home() / ".config" / "mobsentry",
    Path.home() / ".mobsentry",
]

RC_FILE_NAME = ".mobsentryrc"

# TOMLDecodeError and JSONDecodeError are ValueErrors
_DECODE_ERRORS = (yaml.YAMLError, ValueError, RecursionError)


def _parse_yaml(text: str) -> Any:
    data = yaml.safe_load(text)
    return {} if data is None else data


_FORMATS: dict[str, tuple[str, Callable[[str], Any]]] = {
    ".yml": ("YAML", _parse_yaml),
    ".yaml": ("YAML", _parse_yaml),
    ".toml": ("TOML", tomllib.loads),
    ".json": ("JSON", json.loads),
}


def find_config_file(start_path: Path | str | None = None) -> Path | None:
    """Find the nearest config file.

    Looks in ``start_path`` (or the current directory), then each parent
    up to the file system root, then the user config directories. A file
    given as ``start_path`` is searched from its directory.

    Returns:
        The first match, or None.
    """
    start = Path(start_path).resolve() if start_path else Path.cwd()
    if start.is_file():
        start = start.parent

    for directory in [start, *start.parents, *USER_CONFIG_DIRS]:
        if not directory.is_dir():
            continue
        for name in CONFIG_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None


def read_config_file(path: Path | str) -> dict[str, Any]:
    """Read a config file into a plain mapping, without validating settings.

    Raises:
        ConfigError: If the file is missing, unreadable, malformed or does
            not hold a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", config_key=str(path))
    if not path.is_file():
        raise ConfigError(f"Configuration path is not a file: {path}", config_key=str(path))

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    fmt = _FORMATS.get(path.suffix.lower())
    if fmt is not None:
        return _decode(text, fmt, path)
    if path.name == RC_FILE_NAME:
        return _decode_rc(text, path)
    return _decode(text, _FORMATS[".json"], path)


def _decode(text: str, fmt: tuple[str, Callable[[str], Any]], path: Path) -> dict[str, Any]:
    name, parse = fmt
    try:
        data = parse(text)
    except _DECODE_ERRORS as e:
        raise ConfigError(f"Invalid {name} in {path}: {e}", config_key=str(path)) from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file must contain a mapping, got: {type(data).__name__}",
            config_key=str(path),
        )
    return data


def _decode_rc(text: str, path: Path) -> dict[str, Any]:
    if text.lstrip().startswith("{"):
        return _decode(text, _FORMATS[".json"], path)

    for suffix in (".yaml", ".toml"):
        try:
            return _decode(text, _FORMATS[suffix], path)
        except ConfigError:
            continue

    raise ConfigError(
        f"Could not detect format of {path}. Ensure it is valid YAML, TOML, or JSON.",
        config_key=str(path),
    )


def validate_config_file(path: Path | str) -> list[str]:
    """Check a config file and return one message per problem.

    Syntax problems come back as a single message; invalid settings come
    back as ``section.key: reason`` lines. An empty list means the file is
    valid.
    """
    try:
        data = read_config_file(path)
    except ConfigError as e:
        return [e.message]

    try:
        MobsentryConfig.model_validate(data)
    except ValidationError as e:
        return [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
    return []
