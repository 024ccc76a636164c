"""Response envelope shared by every endpoint"""
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from ..config.settings import Settings, settings as default_settings
from ..domain.errors import DomainError
from ..utils.logger import get_correlation_id
from ..utils.time import format_iso, utc_now

ALLOW_METHODS = "GET,POST,OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"


def resolve_allowed_origin(origin: Optional[str], settings: Optional[Settings] = None) -> str:
    """
    Origin to echo back to the caller.

    An empty allow-list allows everyone; otherwise only listed origins are
    echoed and anything else gets "null".
    """
    settings = settings or default_settings
    allowed = settings.allowed_origins_list
    if not allowed:
        return "*"
    candidate = str(origin or "").strip().rstrip("/")
    return candidate if candidate and candidate in allowed else "null"


def cors_block(origin: Optional[str], settings: Optional[Settings] = None) -> Dict[str, str]:
    return {
        "allow_origin": resolve_allowed_origin(origin, settings),
        "allow_methods": ALLOW_METHODS,
        "allow_headers": ALLOW_HEADERS,
    }


def _headers() -> Dict[str, str]:
    return {"X-Correlation-Id": get_correlation_id() or ""}


def success_response(
    payload: Optional[Dict[str, Any]] = None,
    origin: Optional[str] = None,
    settings: Optional[Settings] = None
) -> JSONResponse:
    content: Dict[str, Any] = {
        "ok": True,
        "timestamp": format_iso(utc_now()),
        "cors": cors_block(origin, settings),
    }
    content.update(payload or {})
    return JSONResponse(status_code=200, content=content, headers=_headers())


def error_response(
    error: DomainError,
    origin: Optional[str] = None,
    settings: Optional[Settings] = None
) -> JSONResponse:
    """Render a domain error; the HTTP status always equals the body's status"""
    content: Dict[str, Any] = {
        "ok": False,
        "status": error.http_status,
        "error": error.to_dict(),
        "timestamp": format_iso(utc_now()),
        "cors": cors_block(origin, settings),
    }
    retry_after = getattr(error, "retry_after_seconds", None)
    headers = _headers()
    if retry_after:
        headers["Retry-After"] = str(retry_after)
    return JSONResponse(status_code=error.http_status, content=content, headers=headers)
