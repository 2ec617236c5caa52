"""Custom exception hierarchy for mobsentry.

All exceptions inherit from MobsentryError so callers can catch every
mobsentry-specific error with a single except clause. Inside the scan
pipeline these exceptions are raised and caught locally: none of them is
fatal to a scan, they only give failures a name and context for logging.
"""

from __future__ import annotations


class MobsentryError(Exception):
    """Base exception for all mobsentry errors.

    Attributes:
        message: Human-readable error message.
        context: Optional dictionary of additional context about the error.
    """

    def __init__(self, message: str, context: dict | None = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            context: Optional dictionary of additional context about the error.
        """
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including context if present."""
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ScanError(MobsentryError):
    """Raised when a file cannot be scanned, such as an unreadable file.

    Example:
        >>> raise ScanError("Could not read file", path="/app/src/App.tsx")
    """

    def __init__(self, message: str, path: str | None = None, context: dict | None = None):
        ctx = context or {}
        if path:
            ctx["path"] = path
        super().__init__(message, ctx)
        self.path = path


class RuleError(MobsentryError):
    """Raised when a rule fails while analysing a file.

    Example:
        >>> raise RuleError("Rule crashed", rule_id="HARDCODED_SECRET")
    """

    def __init__(
        self,
        message: str,
        rule_id: str | None = None,
        path: str | None = None,
        context: dict | None = None,
    ):
        ctx = context or {}
        if rule_id:
            ctx["rule"] = rule_id
        if path:
            ctx["path"] = path
        super().__init__(message, ctx)
        self.rule_id = rule_id
        self.path = path


class CacheError(MobsentryError):
    """Raised when the content cache cannot be read or written."""

    def __init__(self, message: str, cache_file: str | None = None, context: dict | None = None):
        ctx = context or {}
        if cache_file:
            ctx["cache_file"] = cache_file
        super().__init__(message, ctx)
        self.cache_file = cache_file


class ParseError(MobsentryError):
    """Raised by source parsers when a file cannot be turned into an AST."""

    def __init__(self, message: str, file_name: str | None = None, context: dict | None = None):
        ctx = context or {}
        if file_name:
            ctx["file"] = file_name
        super().__init__(message, ctx)
        self.file_name = file_name


class ConfigError(MobsentryError):
    """Raised for invalid configuration files or values.

    Example:
        >>> raise ConfigError("Invalid output format", config_key="output.format")
    """

    def __init__(self, message: str, config_key: str | None = None, context: dict | None = None):
        ctx = context or {}
        if config_key:
            ctx["config_key"] = config_key
        super().__init__(message, ctx)
        self.config_key = config_key
