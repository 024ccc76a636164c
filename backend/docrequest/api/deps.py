"""API Dependencies - Common dependencies for routes"""
from typing import Optional
from fastapi import Header, Query, Request

from ..services.container import ServiceContainer
from ..utils.logger import set_correlation_id
from ..utils.idgen import generate_correlation_id


def get_container(request: Request) -> ServiceContainer:
    """Service container built at app creation"""
    return request.app.state.container


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise generate a new one.
    """
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


async def get_bearer_token_dep(
    authorization: Optional[str] = Header(None)
) -> str:
    """
    Raw ID token from the Authorization header

    Returns "" when absent; the admin services decide what a missing token means.
    """
    if not authorization:
        return ""
    if authorization[:7].lower() == "bearer ":
        return authorization[7:].strip()
    return authorization.strip()


async def get_origin_dep(
    origin_header: Optional[str] = Header(None, alias="Origin"),
    origin_query: Optional[str] = Query(None, alias="origin")
) -> str:
    """Caller origin from the origin query parameter, else the Origin header"""
    return (origin_query or origin_header or "").strip()


def remember_actor(request: Request, actor_id: Optional[str]) -> None:
    """Keep the caller's actor id for failure auditing"""
    request.state.actor_id = str(actor_id or "").strip()
