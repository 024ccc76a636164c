"""
Error Handlers

Centralized exception handlers for the FastAPI application. Every failure
leaves as an error envelope and is audited as request_failed.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ..envelope import error_response
from ...domain.enums import AuditAction
from ...domain.errors import DomainError, InvalidInputError
from ...utils.logger import get_logger

logger = get_logger(__name__)


class InternalError(DomainError):
    """Unhandled failure as callers see it"""
    error_code = "INTERNAL_ERROR"
    http_status = 500


def _origin(request: Request) -> str:
    return request.query_params.get("origin", "") or request.headers.get("Origin", "")


def _audit_failure(request: Request, error: DomainError) -> None:
    container = getattr(request.app.state, "container", None)
    if container is None:
        return
    actor_id = getattr(request.state, "actor_id", "") or request.query_params.get("actor_id", "")
    container.audit.write(
        AuditAction.REQUEST_FAILED,
        actor_id,
        "",
        {
            "path": request.url.path,
            "error_code": error.error_code,
            "status": error.http_status,
            "message": error.message,
        },
    )


def _render(request: Request, error: DomainError) -> JSONResponse:
    container = getattr(request.app.state, "container", None)
    settings = container.settings if container is not None else None
    _audit_failure(request, error)
    return error_response(error, _origin(request), settings)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Handle domain-specific errors (business logic errors).

    These are expected errors that occur during normal operation,
    such as invalid input, rate limiting and authorization denials.
    """
    logger.warning(
        f"Domain error: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "reason_code": getattr(exc, "reason_code", None),
            "status_code": exc.http_status,
        }
    )
    return _render(request, exc)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    These occur when the body is not a JSON object or a query value has the
    wrong type.
    """
    logger.warning(
        f"Validation error: {exc.errors()}, "
        f"path={request.url.path}, "
        f"method={request.method}",
        extra={"error_code": "INVALID_INPUT"}
    )
    return _render(request, InvalidInputError("Request validation failed"))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Logs full stack trace for debugging; the caller sees INTERNAL_ERROR only.
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True, extra={"error_code": "INTERNAL_ERROR"})
    return _render(request, InternalError("An unexpected error occurred"))


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
