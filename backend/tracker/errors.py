from __future__ import annotations


class TrackerError(Exception):
    """Base for failures that map onto an HTTP status and a JSON detail."""

    status_code = 500
    detail = "Server error"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationFailure(TrackerError):
    status_code = 400
    detail = "invalid input"


class DuplicateUser(TrackerError):
    status_code = 400
    detail = "User already exists"


class InvalidCredentials(TrackerError):
    status_code = 400
    detail = "Invalid credentials"


class Unauthorized(TrackerError):
    status_code = 401
    detail = "No token, auth denied"


class InvalidToken(Unauthorized):
    detail = "Token is not valid"


class NotFound(TrackerError):
    status_code = 404
    detail = "not found"


class ServerError(TrackerError):
    pass


class ServiceUnavailable(TrackerError):
    status_code = 503
    detail = "db not ready"
