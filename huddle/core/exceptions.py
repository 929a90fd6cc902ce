"""Custom exceptions for the Huddle backend."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Exception type → safe user-facing message mapping
_SAFE_MESSAGES: dict[str, str] = {
    "NotFoundError": "The requested resource was not found.",
    "ConflictError": "A conflict occurred. Please refresh and try again.",
    "DatabaseError": "A database error occurred. Please try again.",
    "PersistenceError": "Your message could not be saved. Please try again.",
    "LLMError": "The assistant is temporarily unavailable.",
    "CircuitBreakerOpen": "A service dependency is temporarily unavailable. Please try again in a moment.",
}

_DEFAULT_MESSAGE = "An error occurred. Please try again."


def sanitize_error(e: Exception) -> str:
    """Map an exception to a safe, user-facing error message.

    Storage and model failures carry driver text that should stay in the
    server logs; this returns only a generic message for HTTP responses.

    Args:
        e: The exception to sanitize.

    Returns:
        A safe, generic error message string.
    """
    for cls in type(e).__mro__:
        safe_msg = _SAFE_MESSAGES.get(cls.__name__)
        if safe_msg:
            return safe_msg

    return _DEFAULT_MESSAGE


class HuddleException(Exception):
    """Base exception for all Huddle-specific errors."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize Huddle exception.

        Args:
            message: Human-readable error message.
            code: Machine-readable error code.
            status_code: HTTP status code.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}


class NotFoundError(HuddleException):
    """Resource not found error (404)."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        """Initialize not found error.

        Args:
            resource: Name of the resource that was not found.
            resource_id: Optional ID of the resource.
        """
        message = f"{resource} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource, "resource_id": resource_id},
        )


class ConflictError(HuddleException):
    """Resource conflict error (409)."""

    def __init__(self, message: str, resource: str | None = None) -> None:
        details = {}
        if resource:
            details["resource"] = resource
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            details=details,
        )


class InvalidInputError(HuddleException):
    """Missing or empty input field (400)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize invalid input error.

        Args:
            message: Error message.
            field: Name of the offending field.
        """
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        super().__init__(
            message=message,
            code="INVALID_INPUT",
            status_code=400,
            details=details,
        )


class UnknownSenderError(HuddleException):
    """The sender id does not name a known user (404)."""

    def __init__(self, sender_id: str) -> None:
        super().__init__(
            message="Sender not found",
            code="UNKNOWN_SENDER",
            status_code=404,
            details={"sender_id": sender_id},
        )


class UnknownParticipantError(HuddleException):
    """The participant id names neither a user nor a group (404)."""

    def __init__(self, participant_id: str) -> None:
        super().__init__(
            message="Participant not found",
            code="UNKNOWN_PARTICIPANT",
            status_code=404,
            details={"participant_id": participant_id},
        )


class UnauthorizedError(HuddleException):
    """Sender addressed a group they do not own (403)."""

    def __init__(self, sender_id: str, group_id: str) -> None:
        super().__init__(
            message="Sender may only message their own groups",
            code="UNAUTHORIZED",
            status_code=403,
            details={"sender_id": sender_id, "group_id": group_id},
        )


class EmptyShareError(HuddleException):
    """A share was classified but carries no text (400)."""

    def __init__(self) -> None:
        super().__init__(
            message="Cannot share an empty highlight",
            code="EMPTY_SHARE",
            status_code=400,
        )


class ClassifierFailure(HuddleException):
    """The model's classification could not be parsed.

    Recovered by the routing engine; never reaches the caller.
    """

    def __init__(self, reason: str, raw: str | None = None) -> None:
        super().__init__(
            message=f"Intent classification failed: {reason}",
            code="CLASSIFIER_FAILURE",
            status_code=500,
            details={"raw": raw[:500] if raw else None},
        )


class SynthesisFailure(HuddleException):
    """The model's digest could not be produced or parsed.

    Recovered by the synthesizer with an apology reply.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(
            message=f"Digest synthesis failed: {reason}",
            code="SYNTHESIS_FAILURE",
            status_code=500,
        )


class DatabaseError(HuddleException):
    """Database operation error (500)."""

    def __init__(self, message: str = "A database error occurred") -> None:
        super().__init__(
            message=message,
            code="DATABASE_ERROR",
            status_code=500,
        )


class PersistenceError(HuddleException):
    """An exchange could not be written; nothing is returned as success (500)."""

    def __init__(self, message: str = "Failed to persist message exchange") -> None:
        super().__init__(
            message=message,
            code="PERSISTENCE_ERROR",
            status_code=500,
        )


class LLMError(HuddleException):
    """Language-model call or response failure (502)."""

    def __init__(self, message: str) -> None:
        super().__init__(
            message=f"Language model error: {message}",
            code="LLM_ERROR",
            status_code=502,
        )
