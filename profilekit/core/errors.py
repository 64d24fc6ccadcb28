"""Error Hierarchy — typed, categorized exceptions for every profilekit failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; storage errors (500-level) are critical
    - to_response() produces the REST envelope
    - Storage errors keep the underlying driver exception in __cause__

Design Decisions:
    - Single hierarchy with ProfileKitError base: one FastAPI handler catches all
    - ErrorContext carries project/profile so log records and responses agree
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    project: str | None = None
    profile: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class ProfileKitError(Exception):
    """Base exception for all profilekit errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "project": self.context.project,
                    "profile": self.context.profile,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(ProfileKitError):
    """Request input rejected before reaching the store."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(ProfileKitError):
    """Requested project or profile does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(ProfileKitError):
    """Write collides with existing state (duplicate name, live references)."""
    def __init__(
        self, message: str, code: str = "CONFLICT", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class ProfileInUseError(ConflictError):
    """Profile deletion refused because instances still reference it."""
    def __init__(
        self,
        profile: str,
        used_by: list[str] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Profile '{profile}' is currently in use",
            "PROFILE_IN_USE", context,
        )
        self.used_by = used_by or []


class ProtectedProfileError(ProfileKitError):
    """The default profile cannot be renamed or deleted."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"The 'default' profile cannot be {operation}",
            "PROFILE_PROTECTED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 403,
        )
        self.operation = operation


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(ProfileKitError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
