"""Typed errors raised by the issue lifecycle engine and service layer.

Every error carries enough context for a client to explain why an action is
unavailable; ``to_dict`` is what the API returns in the response body.
"""

from __future__ import annotations


class IssueLifecycleError(Exception):
    """Base class for all engine errors."""

    code = "error"
    retryable = False

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.code, **self.context}


class ValidationError(IssueLifecycleError):
    """Malformed input. The caller must fix it; never retried automatically."""

    code = "validation_error"


class Unauthenticated(IssueLifecycleError):
    code = "unauthenticated"


class Unauthorized(IssueLifecycleError):
    """The actor's role or ownership does not permit the action."""

    code = "unauthorized"


class NotFound(IssueLifecycleError):
    code = "not_found"


class InvalidTransition(IssueLifecycleError):
    """Requested status is not reachable from the current status."""

    code = "invalid_transition"

    def __init__(self, current: str, requested: str, issue_id: str | None = None):
        super().__init__(
            f"Cannot move issue from '{current}' to '{requested}'",
            current=current, requested=requested, issue_id=issue_id,
        )
        self.current = current
        self.requested = requested


class TransientError(IssueLifecycleError):
    """Store or network failure. Safe to retry with backoff."""

    code = "transient_error"
    retryable = True


class StaleStatus(TransientError):
    """The issue changed status between read and write (lost compare-and-swap)."""

    code = "stale_status"

    def __init__(self, issue_id: str, expected: str, requested: str):
        super().__init__(
            f"Issue {issue_id} is no longer '{expected}'; reload and retry",
            issue_id=issue_id, current=expected, requested=requested,
        )
