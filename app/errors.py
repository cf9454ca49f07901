# app/errors.py
from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base error rendered by the API layer as a JSON error envelope."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"message": self.message, "error": error}


class UpstreamUnavailable(AppError):
    """A third-party market-data call failed (transport error or non-2xx)."""

    status_code = 500
    code = "upstream_unavailable"

    def __init__(self, provider: str, message: str, *, upstream_status: int | None = None) -> None:
        super().__init__(
            message,
            details={"provider": provider, "upstream_status": upstream_status},
        )
        self.provider = provider
        self.upstream_status = upstream_status


class NotFound(AppError):
    status_code = 404
    code = "not_found"


class CoinNotFound(NotFound):
    pass


class FavoriteNotFound(NotFound):
    pass


class Conflict(AppError):
    status_code = 409
    code = "conflict"


class FavoriteConflict(Conflict):
    pass


class AlreadyRegistered(Conflict):
    pass


class Unauthorized(AppError):
    status_code = 401
    code = "unauthorized"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"


class InvalidCredentials(AppError):
    status_code = 401
    code = "invalid_credentials"


class ValidationFailed(AppError):
    status_code = 422
    code = "validation_error"
