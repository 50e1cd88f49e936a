"""Entitygraph error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Manifest

Load, schema and consistency problems in entity definitions are not errors
in this sense. They are reported as ``AnalysisIssue`` values so one bad file
never aborts analysis of the rest.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Manifest (3xxx)
    MANIFEST_WRITE_ERROR = 3001


@dataclass(frozen=True, slots=True)
class EntityGraphError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(EntityGraphError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class ManifestError(EntityGraphError):
    """Manifest persistence errors.

    Only writes raise. A manifest that cannot be read is treated as absent.
    """

    @classmethod
    def write_failed(cls, path: str, reason: str) -> "ManifestError":
        return cls(
            code=ErrorCode.MANIFEST_WRITE_ERROR,
            message=f"Failed to write manifest at {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )
