"""Error taxonomy shared by the auth, builder and gateway layers.

Nothing here writes a response. Route handlers catch `NurseryError`, and
`error_response` turns it into the status code and JSON body the frontend
expects.
"""

from __future__ import annotations


class NurseryError(Exception):
    """Base class for every condition this package raises on purpose."""

    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class AuthenticationMissing(NurseryError):
    """No credential supplied where one is required."""

    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class InvalidToken(NurseryError):
    status_code = 403

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class TokenExpired(NurseryError):
    status_code = 403

    def __init__(self, message: str = "Token expired") -> None:
        super().__init__(message)


class AuthorizationDenied(NurseryError):
    """Valid identity, but none of its roles is accepted."""

    status_code = 403


class ValidationError(NurseryError):
    """Caller input failed schema checks before reaching the builder.

    `details` is a list of ``{"field": ..., "message": ...}`` dicts.
    """

    status_code = 400

    def __init__(self, message: str, details: list[dict[str, str]] | None = None) -> None:
        super().__init__(message)
        self.details = details or []

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(message, [{"field": field, "message": message}])


class EmptyPayload(ValidationError):
    """Builder invoked with no columns or no predicate where one was required."""


class NotFound(NurseryError):
    status_code = 404

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class DataStoreError(NurseryError):
    """The store rejected or failed a statement.

    The message is the driver's own message; the driver exception is kept
    as ``__cause__``.
    """

    status_code = 500

    def __init__(self, message: str, *, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql


class ConfigError(NurseryError):
    """Configuration is unusable (missing database, default secret in production)."""

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        super().__init__(message)
        self.problems = problems or []


def http_status(err: BaseException) -> int:
    if isinstance(err, NurseryError):
        return err.status_code
    return 500


def error_response(err: BaseException, *, development: bool = False) -> tuple[int, dict]:
    """Render an exception as ``(status, body)`` for the route layer.

    Store failures only expose the driver message in development. Unknown
    exceptions always become a generic 500.
    """
    if isinstance(err, ValidationError):
        body: dict[str, object] = {"error": err.message or "Validation error"}
        if err.details:
            body["details"] = err.details
        return err.status_code, body

    if isinstance(err, DataStoreError):
        return err.status_code, {
            "error": "Database error",
            "message": err.message if development else "A database error occurred",
        }

    if isinstance(err, NurseryError):
        return err.status_code, {"error": err.message}

    body = {"error": "Internal server error"}
    if development:
        body["originalMessage"] = str(err)
    return 500, body
