"""Error Hierarchy: typed, categorized exceptions for all ThumbnailAI failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with ThumbnailError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - TransferConflictError exists for reporting only; the transfer protocol treats it
      as success-with-no-op and never returns it as a failure
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
    STORAGE = "storage"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    trial_session_id: str | None = None
    project_id: str | None = None
    layer_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class ThumbnailError(Exception):
    """Base exception for all ThumbnailAI errors."""

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
                    "trial_session_id": self.context.trial_session_id,
                    "project_id": self.context.project_id,
                    "layer_id": self.context.layer_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class LayerValidationError(ThumbnailError):
    """Caller passed a malformed request (contract violation)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(ThumbnailError):
    """Requested resource does not exist (or is not owned by the caller)."""
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


class QuotaExceededError(ThumbnailError):
    """Trial identity has used its free generations; route to sign-up."""
    def __init__(
        self, reason: str = "Free generation already used",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Trial quota exceeded: {reason}",
            "QUOTA_EXCEEDED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 402,
        )
        self.reason = reason


class TransferConflictError(ThumbnailError):
    """Trial identity was already converted by a prior transfer."""
    def __init__(
        self, session_id: str, converted_to: str | None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Trial session '{session_id}' already converted",
            "TRANSFER_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.INFO, context, 409,
        )
        self.session_id = session_id
        self.converted_to = converted_to


# ─── Infrastructure Errors (500-level) ──────────────────────────

class ExternalGenerationError(ThumbnailError):
    """AI provider failed or returned an unparseable result."""
    def __init__(
        self,
        message: str,
        provider_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Generation failed ({provider_error_type}): {message}",
            "EXTERNAL_GENERATION_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.provider_error_type = provider_error_type


class StorageError(ThumbnailError):
    """Local or remote storage unreachable or unusable (transient)."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class DatabaseError(StorageError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ThumbnailError.__init__(
            self,
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
