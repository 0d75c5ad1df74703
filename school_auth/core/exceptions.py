"""
School Auth — Error taxonomy and the top-level error translation layer.

Services and dependencies raise the typed errors below; the handlers installed by
register_exception_handlers() turn every failure into the JSON envelope
{"success": false, "error": <message>} (plus "stack" outside production).
"""
import logging
import traceback
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from school_auth.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, *, details: Any | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


# ─── 401 ───────────────────────────────────────────────────────────────────────

class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication failed"


class MissingToken(AuthenticationError):
    default_message = "Access token required"


class InvalidToken(AuthenticationError):
    default_message = "Invalid token"


class ExpiredToken(AuthenticationError):
    default_message = "Token expired"


class RevokedToken(AuthenticationError):
    default_message = "Token has been revoked"


class UserNotFound(AuthenticationError):
    default_message = "Invalid token - user not found"


class AccountDeactivated(AuthenticationError):
    default_message = "Account is deactivated"


# ─── 403 ───────────────────────────────────────────────────────────────────────

class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class InsufficientPermissions(AuthorizationError):
    pass


# ─── Other ─────────────────────────────────────────────────────────────────────

class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class RateLimitError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests"


class ConfigurationError(AppError):
    default_message = "Server misconfiguration"


def error_payload(message: str, exc: BaseException | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": False, "error": message}
    if exc is not None and not settings.is_production:
        payload["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return payload


def _request_meta(request: Request) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "ip": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
        "timestamp": datetime.now(tz=timezone.utc).isoformat(),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error translation layer on a FastAPI app."""

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        headers: dict[str, str] = {}
        if isinstance(exc, AuthenticationError):
            headers["WWW-Authenticate"] = "Bearer"
        if isinstance(exc, (AuthenticationError, AuthorizationError)):
            logger.warning("%s: %s %s", type(exc).__name__, exc.message, _request_meta(request))
        elif exc.status_code >= 500:
            logger.error("%s: %s %s", type(exc).__name__, exc.message, _request_meta(request))
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(exc.message, exc),
            headers=headers or None,
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ())[1:])
            messages.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_payload("; ".join(messages) or "Invalid request body"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception %s", _request_meta(request))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_payload("Internal server error", exc),
        )
