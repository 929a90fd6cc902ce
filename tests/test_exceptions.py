"""Tests for error types and message sanitizing."""

import pytest

from huddle.core.exceptions import (
    ClassifierFailure,
    ConflictError,
    DatabaseError,
    EmptyShareError,
    HuddleException,
    InvalidInputError,
    LLMError,
    NotFoundError,
    PersistenceError,
    UnauthorizedError,
    UnknownParticipantError,
    UnknownSenderError,
    sanitize_error,
)


@pytest.mark.parametrize(
    ("exc", "status", "code"),
    [
        (InvalidInputError("text is required", field="text"), 400, "INVALID_INPUT"),
        (EmptyShareError(), 400, "EMPTY_SHARE"),
        (UnauthorizedError("U1", "G1"), 403, "UNAUTHORIZED"),
        (UnknownSenderError("U1"), 404, "UNKNOWN_SENDER"),
        (UnknownParticipantError("G1"), 404, "UNKNOWN_PARTICIPANT"),
        (NotFoundError("User", "U1"), 404, "NOT_FOUND"),
        (ConflictError("taken", resource="User"), 409, "CONFLICT"),
        (DatabaseError(), 500, "DATABASE_ERROR"),
        (PersistenceError(), 500, "PERSISTENCE_ERROR"),
        (LLMError("boom"), 502, "LLM_ERROR"),
    ],
)
def test_status_and_code(exc: HuddleException, status: int, code: str) -> None:
    assert exc.status_code == status
    assert exc.code == code


def test_not_found_details() -> None:
    exc = NotFoundError("User", "U1")
    assert exc.message == "User not found"
    assert exc.details == {"resource": "User", "resource_id": "U1"}


def test_classifier_failure_truncates_raw() -> None:
    exc = ClassifierFailure("bad", raw="x" * 1000)
    assert len(exc.details["raw"]) == 500


def test_sanitize_error_hides_driver_text() -> None:
    """Test storage errors map to a generic message."""
    message = sanitize_error(DatabaseError("relation users does not exist"))
    assert "relation" not in message


def test_sanitize_error_default() -> None:
    assert sanitize_error(RuntimeError("secret")) == "An error occurred. Please try again."
