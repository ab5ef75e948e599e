from __future__ import annotations


class TeamboardError(Exception):
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code


class ConfigurationError(TeamboardError):
    status_code = 400
    error_code = "MISCONFIGURED"


class ValidationError(TeamboardError):
    status_code = 400
    error_code = "INVALID_BODY"


class NotFoundError(TeamboardError):
    status_code = 404
    error_code = "NOT_FOUND"


class MethodNotAllowedError(TeamboardError):
    status_code = 405
    error_code = "METHOD_NOT_ALLOWED"


class UpstreamError(TeamboardError):
    status_code = 500
    error_code = "UPSTREAM_ERROR"
