"""
Correlation ID Middleware

Adds a unique correlation ID to each request for distributed tracing and logging,
and records the caller facts that audit records carry.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ...utils.logger import set_correlation_id, set_request_context
from ...utils.idgen import generate_correlation_id


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds correlation ID to all requests.

    - Checks for existing X-Correlation-Id header
    - Generates new ID if not present
    - Sets correlation ID and request context (ip, ua, origin, path) in logging context
    - Adds correlation ID to response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = (
            request.headers.get("X-Correlation-Id") or generate_correlation_id()
        )

        set_correlation_id(correlation_id)
        set_request_context({
            "ip": client_ip(request),
            "ua": request.headers.get("User-Agent", ""),
            "origin": request.query_params.get("origin", "") or request.headers.get("Origin", ""),
            "path": request.url.path,
        })

        response = await call_next(request)

        response.headers["X-Correlation-Id"] = correlation_id

        return response
