"""Error taxonomy and the mapping from errors to HTTP responses."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

log = logging.getLogger("uvicorn.error")


class PhoneAuthError(Exception):
    """Base for every error the service reports to clients."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PhoneAuthError):
    status_code = 400
    default_message = "Invalid request"


class ConflictError(PhoneAuthError):
    status_code = 400
    default_message = "User already exists"


class NotFoundError(PhoneAuthError):
    status_code = 404
    default_message = "User not found"


class InvalidCodeError(PhoneAuthError):
    status_code = 400
    default_message = "Invalid or expired OTP"


class SessionExpiredError(PhoneAuthError):
    status_code = 400
    default_message = "Signup session expired"


class UpstreamError(PhoneAuthError):
    status_code = 500
    default_message = "Failed to send OTP"


class MissingTokenError(PhoneAuthError):
    status_code = 401
    default_message = "Unauthorized"


class MalformedTokenError(PhoneAuthError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidTokenError(PhoneAuthError):
    status_code = 401
    default_message = "Invalid token"


class InternalError(PhoneAuthError):
    status_code = 500


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ValidationError.default_message
    first = errors[0]
    kind = first.get("type")
    if kind == "json_invalid":
        return "Request body must be valid JSON"
    field = next((p for p in reversed(first.get("loc") or ()) if isinstance(p, str) and p != "body"), None)
    if not field:
        return ValidationError.default_message
    if kind in ("missing", "string_too_short"):
        return f"{field} is required"
    return f"{field}: {first.get('msg')}"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PhoneAuthError)
    async def phone_auth_error_handler(request: Request, exc: PhoneAuthError):
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error_response(ValidationError.status_code, _validation_message(exc))

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        log.error("[DB] %s %s failed", request.method, request.url.path, exc_info=exc)
        return _error_response(InternalError.status_code, InternalError.default_message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        log.error("[App] %s %s failed", request.method, request.url.path, exc_info=exc)
        return _error_response(InternalError.status_code, InternalError.default_message)
