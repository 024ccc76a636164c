"""Admin API Routes - sign-in and read-only access to all drafts"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from ..deps import (
    get_bearer_token_dep,
    get_container,
    get_correlation_id_dep,
    get_origin_dep,
    remember_actor,
)
from ..envelope import success_response
from ...services.container import ServiceContainer

router = APIRouter()


class AdminLoginRequest(BaseModel):
    """Request for admin sign-in; the ID token travels in the Authorization header"""
    actor_id: Optional[Any] = None
    client_ts: Optional[Any] = None
    origin: Optional[str] = None


@router.post("/login")
def admin_login(
    request: Request,
    body: AdminLoginRequest,
    token: str = Depends(get_bearer_token_dep),
    origin: str = Depends(get_origin_dep),
    container: ServiceContainer = Depends(get_container),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Verify the caller's Google identity against the admin allow-list"""
    remember_actor(request, body.actor_id)
    result = container.admin_auth.login(body.actor_id, token, body.client_ts or "")
    return success_response(result, body.origin or origin, container.settings)


@router.get("/me")
def admin_me(
    request: Request,
    actor_id: Optional[str] = Query(None),
    token: str = Depends(get_bearer_token_dep),
    origin: str = Depends(get_origin_dep),
    container: ServiceContainer = Depends(get_container),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Identity of a verified admin"""
    remember_actor(request, actor_id)
    return success_response(container.admin_auth.me(actor_id, token), origin, container.settings)


@router.get("/requests")
def admin_list_requests(
    request: Request,
    actor_id: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    cursor: Optional[str] = Query(None),
    token: str = Depends(get_bearer_token_dep),
    origin: str = Depends(get_origin_dep),
    container: ServiceContainer = Depends(get_container),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Newest-first page of all drafts"""
    remember_actor(request, actor_id)
    page = container.admin_requests.list_requests(actor_id, token, limit, cursor)
    return success_response(
        {"items": page.items, "next_cursor": page.next_cursor, "limit": page.limit},
        origin,
        container.settings,
    )


@router.get("/requests/{request_id}")
def admin_get_request(
    request: Request,
    request_id: str,
    actor_id: Optional[str] = Query(None),
    token: str = Depends(get_bearer_token_dep),
    origin: str = Depends(get_origin_dep),
    container: ServiceContainer = Depends(get_container),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """One draft in full"""
    remember_actor(request, actor_id)
    result = container.admin_requests.get_request(actor_id, token, request_id)
    return success_response(result, origin, container.settings)
