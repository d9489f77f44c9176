"""Error taxonomy shared by services and route handlers.

Services raise these exceptions; ``register_exception_handlers`` turns them
into JSON responses of the form ``{"error": "<detail>"}``. Only the
``detail`` of a :class:`GatewayError` ever reaches the client.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(GatewayError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request data"


class AuthenticationRequired(GatewayError):
    """The route requires a principal and none was resolved."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"


class AuthorizationDenied(GatewayError):
    """The principal lacks the role or ownership the route requires."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFound(GatewayError):
    """The requested resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class PayloadTooLarge(GatewayError):
    """Uploaded file exceeds the configured maximum size."""

    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_detail = "File too large"


class QuotaExceeded(GatewayError):
    """Upload would push the account past its storage ceiling."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Quota exceeded"


class UpstreamFailure(GatewayError):
    """An external service call failed; its status is propagated."""

    default_detail = "Upstream service failed"

    def __init__(self, detail: str | None = None, status_code: int | None = None) -> None:
        super().__init__(detail)
        # Informational or missing statuses cannot be relayed as failures.
        if status_code is None or status_code < 200:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        self.status_code = status_code


class InternalError(GatewayError):
    """Unexpected failure; never carries internal details to the client."""


def _error_response(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": detail})


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Translate a :class:`GatewayError` into its JSON response."""
    return _error_response(exc.status_code, exc.detail)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body/query validation failures as a generic 400."""
    logger.debug("Rejected request to %s: %s", request.url.path, exc.errors())
    return _error_response(status.HTTP_400_BAD_REQUEST, ValidationError.default_detail)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep framework-level errors (unknown routes, bad methods) in the same shape."""
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort boundary: log the failure and answer with a generic 500."""
    logger.exception("Unhandled error while serving %s %s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalError.default_detail)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the gateway's error translation on ``app``."""
    app.add_exception_handler(GatewayError, gateway_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
