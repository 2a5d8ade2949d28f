"""Exception hierarchy for feedclient.

All exceptions inherit from :class:`FeedClientError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`feedclient.exit_codes`.
Callers of the domain services only ever see one of the four public failure
kinds below (plus :class:`ConfigError` at startup); every failure path raises
a typed value, never a bare ``None``.

Subclass hierarchy::

    FeedClientError (exit 1)
    +-- ValidationError           (exit 2)
    +-- ReauthenticationRequired  (exit 3)
    +-- HttpError                 (exit 5, exit 4 for 404)
    +-- NetworkError              (exit 6)
    +-- ConfigError               (exit 1)
"""

from __future__ import annotations

from typing import Any

from feedclient.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_NETWORK_ERROR,
    EXIT_NOT_FOUND,
    EXIT_REAUTHENTICATE,
    EXIT_VALIDATION_ERROR,
)


class FeedClientError(Exception):
    """Base exception for all feedclient errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`feedclient.exit_codes`, and a ``kind`` string
    that collaborators can branch on without matching messages.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    kind: str = "error"

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ValidationError(FeedClientError):
    """Raised when a domain operation rejects its arguments before any network call.

    Args:
        field: Name of the offending argument (e.g. ``"images"``).
        reason: Why the value was rejected.
    """

    exit_code = EXIT_VALIDATION_ERROR
    kind = "validation"

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class HttpError(FeedClientError):
    """Raised when the backend answers with a non-2xx status other than a recoverable 401.

    Args:
        status: The HTTP status code.
        message: Message extracted from the response body, or a generic
            fallback when the body is absent or malformed.
        body: The decoded response body, if any.
    """

    exit_code = EXIT_HTTP_ERROR
    kind = "http"

    def __init__(self, status: int, message: str, body: Any = None):
        super().__init__(message, EXIT_NOT_FOUND if status == 404 else None)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        return f"HTTP {self.status}: {self.message}"


class NetworkError(FeedClientError):
    """Raised on transport failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_NETWORK_ERROR
    kind = "network"


class ReauthenticationRequired(FeedClientError):
    """Raised when the session cannot be renewed and the user must log in again.

    The credential store has already been cleared when this is raised. The
    routing layer is expected to send the user to an unauthenticated entry
    point; branch on ``kind == "reauthenticate"``.
    """

    exit_code = EXIT_REAUTHENTICATE
    kind = "reauthenticate"

    def __init__(self, message: str = "Session expired, please log in again"):
        super().__init__(message)


class ConfigError(FeedClientError):
    """Raised for configuration problems (unreadable or invalid config files)."""

    exit_code = EXIT_GENERIC_FAILURE
