"""Draft API Routes - section saves and draft reads for the LIFF form"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from ..deps import get_container, get_correlation_id_dep, get_origin_dep, remember_actor
from ..envelope import success_response
from ...domain.enums import AuditAction
from ...services.container import ServiceContainer
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


class SaveSectionRequest(BaseModel):
    """Request to save one section; fields are validated by the draft engine"""
    actor_id: Optional[Any] = None
    section: Optional[Any] = None
    data: Optional[Any] = None
    client_ts: Optional[Any] = None
    origin: Optional[str] = None


@router.post("/drafts/sections")
def save_section(
    request: Request,
    body: SaveSectionRequest,
    origin: str = Depends(get_origin_dep),
    container: ServiceContainer = Depends(get_container),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Merge one section into the caller's draft"""
    remember_actor(request, body.actor_id)
    result = container.drafts.save_section(body.actor_id, body.section, body.data, body.client_ts or "")
    return success_response(result.model_dump(), body.origin or origin, container.settings)


@router.get("/drafts")
def get_draft(
    request: Request,
    actor_id: Optional[str] = Query(None),
    origin: str = Depends(get_origin_dep),
    container: ServiceContainer = Depends(get_container),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """Current draft of the caller"""
    remember_actor(request, actor_id)
    return success_response(container.drafts.get_draft(actor_id), origin, container.settings)


@router.get("/me")
def whoami(
    request: Request,
    actor_id: Optional[str] = Query(None),
    origin: str = Depends(get_origin_dep),
    container: ServiceContainer = Depends(get_container),
    correlation_id: str = Depends(get_correlation_id_dep)
):
    """
    Role of the caller plus store readiness.

    Store problems are reported, not raised, so the client can still pick
    a screen.
    """
    remember_actor(request, actor_id)
    payload = {"actor_id": str(actor_id or "").strip(), "store_ready": True, "store_error": ""}
    try:
        container.schema.ensure_ready()
        payload.update(container.admin_auth.role_of(actor_id))
    except Exception as e:
        logger.error(f"Store not ready for role lookup: {e}", extra={"actor_id": payload["actor_id"]})
        payload.update({"role": "unknown", "is_admin": False, "store_ready": False, "store_error": str(e)})
        container.audit.write(
            AuditAction.STORE_INIT_FAILED,
            payload["actor_id"],
            "",
            {"path": request.url.path, "error_code": getattr(e, "error_code", "SCHEMA_ERROR"), "message": str(e)},
        )
    return success_response(payload, origin, container.settings)
