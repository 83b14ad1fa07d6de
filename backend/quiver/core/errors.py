"""Error Hierarchy: typed, categorized exceptions for all round scoring failures.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors are 4xx and never retried; infrastructure errors are 5xx
    - to_response() produces the REST envelope used by the global handler
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with QuiverError base: one FastAPI handler catches all
    - ErrorContext carries round/participant ids for logging, not for control flow
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
    round_id: str | None = None
    participant_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class QuiverError(Exception):
    """Base exception for all Quiver errors."""

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
                    "round_id": self.context.round_id,
                    "participant_id": self.context.participant_id,
                },
            }
        }


# ─── Validation (400) ───────────────────────────────────────────

class RoundValidationError(QuiverError):
    """Malformed arrow or round input (bad zone, score out of range, missing field)."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


# ─── Not Found (404) ────────────────────────────────────────────

class ResourceNotFoundError(QuiverError):
    """Requested round, participant, non-member or user does not exist."""
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


class CourseNotFoundError(ResourceNotFoundError):
    """Course referenced at round creation does not exist."""
    def __init__(self, course_id: str, context: ErrorContext | None = None):
        super().__init__("Course", course_id, context)
        self.code = "COURSE_NOT_FOUND"


# ─── Business Rules (400/409) ───────────────────────────────────

class DuplicateParticipantError(QuiverError):
    """Participant or non-member already present in the round."""
    def __init__(self, identifier: str, context: ErrorContext | None = None):
        super().__init__(
            f"Participant '{identifier}' is already part of this round",
            "DUPLICATE_PARTICIPANT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.identifier = identifier


class ScorerProtectedError(QuiverError):
    """Attempt to remove the scorer from participants."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Cannot remove the scorer from participants",
            "SCORER_PROTECTED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class ImmutableFieldError(QuiverError):
    """Attempt to change a field fixed at creation."""
    def __init__(self, field: str, context: ErrorContext | None = None):
        super().__init__(
            f"Field '{field}' cannot be changed once the round is created",
            "IMMUTABLE_FIELD", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ScoringLockedError(QuiverError):
    """Attempt to change the scoring system after scores were recorded."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Cannot change scoring system once scores have been recorded",
            "SCORING_LOCKED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class EventLinkedError(QuiverError):
    """Attempt to delete a round that belongs to an event."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Cannot delete a round that is part of an event",
            "EVENT_LINKED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class InvalidStateTransitionError(QuiverError):
    """Requested status change is not allowed from the current status."""
    def __init__(
        self, current: str, requested: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Cannot move round from '{current}' to '{requested}'",
            "INVALID_STATE_TRANSITION", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current = current
        self.requested = requested


class AlreadyCompletedError(InvalidStateTransitionError):
    """complete() called on a round that is already completed."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__("completed", "completed", context)
        self.message = "Round is already completed"
        self.args = (self.message,)
        self.code = "ALREADY_COMPLETED"


class RoundNotActiveError(QuiverError):
    """Score mutation attempted on a completed or cancelled round."""
    def __init__(self, status: str, context: ErrorContext | None = None):
        super().__init__(
            f"Scores can only be recorded on an active round (status: {status})",
            "ROUND_NOT_ACTIVE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.status = status


# ─── Authorization (401/403) ────────────────────────────────────

class AuthenticationRequiredError(QuiverError):
    """No caller identity supplied, or it does not match a known user."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "A valid X-User-Id header is required",
            "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 401,
        )


class NotAuthorizedError(QuiverError):
    """Caller lacks the capability required for this operation."""
    def __init__(self, action: str, context: ErrorContext | None = None):
        super().__init__(
            f"User not authorized to {action}",
            "NOT_AUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.action = action


class UnverifiedUserError(QuiverError):
    """Unverified account added as participant without bypass capability."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"User '{user_id}' has not verified their account",
            "UNVERIFIED_USER", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.user_id = user_id


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(QuiverError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
