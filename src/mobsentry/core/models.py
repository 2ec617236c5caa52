"""Core data models for mobsentry.

This module defines the Pydantic models shared by the rule engine, the
content cache and the rules themselves. Findings serialise with camelCase
keys so the on-disk cache keeps a stable, language-neutral shape.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    """Severity levels for findings."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Finding(BaseModel):
    """A single reported security issue.

    A Finding is produced by a rule for one location in one file. It is
    immutable once created; the engine copies it into scan results and
    cache entries as-is.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    rule_id: str = Field(..., description="Identifier of the rule that produced this finding")
    description: str = Field(..., description="Human-readable description of the issue")
    severity: Severity = Field(..., description="Severity level of the finding")
    file_path: str = Field(..., description="Path to the file where the issue was found")
    line: int | None = Field(default=None, description="1-based line number of the issue")
    snippet: str | None = Field(default=None, description="Source lines around the issue")
    suggestion: str | None = Field(default=None, description="How to fix the issue")


class ScanResult(BaseModel):
    """The aggregate result of one scan invocation.

    ``skipped_files`` and ``cached_files`` are only set when greater than
    zero, so a clean uncached run carries neither.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    findings: list[Finding] = Field(default_factory=list, description="Findings in input-file order")
    scanned_files: int = Field(default=0, description="Number of files submitted to the scan")
    skipped_files: int | None = Field(default=None, description="Files that could not be read")
    cached_files: int | None = Field(default=None, description="Files served from the cache")
