"""
Error types - Tagged errors for the LiteLLM resource reconciler.

Every error raised by the transport or a resource handler carries an
explicit kind, set where the error is created. The reconciler only ever
retries RETRYABLE_NOT_FOUND; everything else is fatal.
"""

from enum import Enum
from typing import Any, Iterable, Optional


class ErrorKind(Enum):
    """Retry classification for an error."""

    RETRYABLE_NOT_FOUND = "retryable_not_found"
    FATAL = "fatal"


class ResourceError(Exception):
    """Base class for all reconciler errors."""

    kind: ErrorKind = ErrorKind.FATAL

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class NotFoundError(ResourceError):
    """The remote API reported that the resource does not exist (yet)."""

    kind = ErrorKind.RETRYABLE_NOT_FOUND


class APIError(ResourceError):
    """The remote API answered with a non-success status."""

    def __init__(self, status: int, body: Any = None, message: str = ""):
        self.status = status
        self.body = body
        super().__init__(message or f"API request failed with status {status}: {body}")


class TransportError(ResourceError):
    """The request never produced a usable response."""


class UpsertError(ResourceError):
    """A create, update or delete failed at the orchestration layer."""


def classify(err: Optional[BaseException], patterns: Iterable[str] = ()) -> ErrorKind:
    """
    Classify an error as retryable-not-found or fatal.

    Tagged errors are classified by their kind. Foreign exceptions fall back
    to substring matching against the resource kind's not-found patterns.

    Args:
        err: The error to classify. None means success and is never retryable.
        patterns: Substrings that identify a not-found condition.

    Returns:
        The ErrorKind for the error.
    """
    if err is None:
        return ErrorKind.FATAL
    if isinstance(err, ResourceError):
        return err.kind

    message = str(err)
    if any(pattern in message for pattern in patterns):
        return ErrorKind.RETRYABLE_NOT_FOUND
    return ErrorKind.FATAL


def is_retryable(err: Optional[BaseException], patterns: Iterable[str] = ()) -> bool:
    """Return True if the error should trigger another read attempt."""
    return classify(err, patterns) is ErrorKind.RETRYABLE_NOT_FOUND
