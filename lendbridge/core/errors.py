"""Error Hierarchy — typed, categorized exceptions for every LendBridge failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Protocol errors (400-level) leave no partial state; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope used by the global handler
    - ConcurrencyConflictError IS an InvalidStateError: callers see a lost race
      as an illegal transition, observability sees the distinct code

Design Decisions:
    - Single hierarchy with LendBridgeError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: rich observability without coupling to logging framework
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
    AUTHORIZATION = "authorization"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    actor_id: str | None = None
    message_id: str | None = None
    transaction_id: str | None = None
    debug_info: dict[str, Any] | None = None


class LendBridgeError(Exception):
    """Base exception for all LendBridge errors."""

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
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "actor_id": self.context.actor_id,
                    "message_id": self.context.message_id,
                    "transaction_id": self.context.transaction_id,
                },
            }
        }


# ─── Protocol Errors (400-level) ────────────────────────────────

class InvalidInputError(LendBridgeError):
    """Missing or malformed identifier / payload."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceNotFoundError(LendBridgeError):
    """Referenced listing, message or transaction does not exist."""
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


class InvalidStateError(LendBridgeError):
    """Presented message is not at the stage the operation requires."""
    def __init__(
        self,
        expected_type: str,
        actual_type: str,
        context: ErrorContext | None = None,
        code: str = "INVALID_STATE",
        message: str | None = None,
        category: ErrorCategory = ErrorCategory.BUSINESS_RULE,
    ):
        super().__init__(
            message or (
                f"Message type is '{actual_type}', "
                f"operation requires '{expected_type}'"
            ),
            code, category, ErrorSeverity.ERROR, context, 409,
        )
        self.expected_type = expected_type
        self.actual_type = actual_type


class ConcurrencyConflictError(InvalidStateError):
    """A compare-and-set lost the race against a concurrent consumer."""
    def __init__(
        self, record: str, expected: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            expected, "<changed concurrently>", context,
            code="CONCURRENCY_CONFLICT",
            message=f"{record} no longer at '{expected}': lost to a concurrent update",
            category=ErrorCategory.CONFLICT,
        )
        self.record = record


class SelfRequestRejectedError(LendBridgeError):
    """Borrow and Lend listings belong to the same party."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Cannot request a loan from your own offer",
            "SELF_REQUEST_REJECTED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class DuplicateSubmissionError(LendBridgeError):
    """A contract has already been sent for this transaction."""
    def __init__(self, transaction_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Contract already sent for transaction '{transaction_id}'",
            "DUPLICATE_SUBMISSION", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.transaction_id = transaction_id


class UnauthorizedError(LendBridgeError):
    """Actor is not the party allowed to advance this stage."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(LendBridgeError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
