"""
Error taxonomy shared by every module.

Services raise these instead of building HTTP responses themselves; the
handler registered in app.main turns them into JSON with a stable code.
Invitation business outcomes (expired, wrong user, already processed) are
NOT errors and never go through here.
"""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    status_code: int = 500
    code: str = "APP_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            result["details"] = self.details
        return result


class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "You do not have permission to perform this action", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class Conflict(AppError):
    status_code = 409
    code = "CONFLICT"


class ValidationError(AppError):
    status_code = 422
    code = "VALIDATION_ERROR"


class DependencyFailure(AppError):
    """Store, email provider or blob storage failed. Safe to retry."""

    status_code = 503
    code = "DEPENDENCY_FAILURE"
    retryable = True

    def __init__(self, message: str, dependency: str = "database", details: Optional[Dict[str, Any]] = None):
        merged = {"dependency": dependency, "retryable": True}
        merged.update(details or {})
        super().__init__(message, merged)
        self.dependency = dependency


FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"


def error_code_of(exc: Exception) -> Optional[str]:
    """Postgres error code carried by a PostgREST APIError, if any."""
    code = getattr(exc, "code", None)
    return str(code) if code is not None else None


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
