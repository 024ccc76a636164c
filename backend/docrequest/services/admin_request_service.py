"""Admin Request Service - paginated listing and detail reads of drafts"""
from datetime import datetime
from typing import Any, Dict, Optional

from .admin_auth_service import AdminAuthService, failure_code, normalize_admin_error
from ..config.settings import Settings, settings as default_settings
from ..domain.enums import AuditAction, DraftStatus
from ..domain.errors import MissingFieldError, NotFoundError
from ..domain.models import AdminAuthContext, AdminListPage
from ..engine.audit_writer import AuditWriter
from ..engine.sections import BOOLEAN_FIELDS
from ..repositories.request_repo import RequestRepository
from ..utils.logger import get_logger
from ..utils.text import to_bool_strict, to_number_or_blank, truncate
from ..utils.time import format_iso, timestamp_millis

logger = get_logger(__name__)

# Identifiers and phone numbers are always shown as text so leading zeros survive
FORCE_TEXT_FIELDS = frozenset({
    "request_id",
    "owner_id",
    "tax_id13",
    "office_phone",
    "contact_phone",
    "contact_line_id",
})

DOC_LABELS = (
    ("doc_quotation", "ใบเสนอราคา"),
    ("doc_invoice", "ใบแจ้งหนี้/ใบส่งสินค้า"),
    ("doc_store", "เอกสารร้าน"),
    ("doc_receipt_tax", "ใบเสร็จ/ใบกำกับภาษี"),
)
DOC_SUMMARY_MAX_LENGTH = 120


# ============================================================================
# Projection helpers
# ============================================================================

def map_admin_row(row: Dict[str, Any]) -> Dict[str, Any]:
    mapped: Dict[str, Any] = {}
    for key, value in row.items():
        key = str(key or "").strip()
        if not key:
            continue
        if key in FORCE_TEXT_FIELDS:
            mapped[key] = "" if value is None else str(value).strip()
        elif key in BOOLEAN_FIELDS:
            mapped[key] = to_bool_strict(value)
        elif isinstance(value, datetime):
            mapped[key] = format_iso(value)
        else:
            mapped[key] = "" if value is None else value
    return mapped


def build_doc_summary(row: Dict[str, Any]) -> str:
    """Human-readable list of the requested document types"""
    text = ", ".join(label for flag, label in DOC_LABELS if to_bool_strict(row.get(flag)))
    if not text:
        return "-"
    if len(text) > DOC_SUMMARY_MAX_LENGTH:
        return f"{text[:DOC_SUMMARY_MAX_LENGTH - 3]}..."
    return text


def format_total_amount(value: Any) -> str:
    if value is None or value == "":
        return ""
    number = to_number_or_blank(value)
    return str(value) if number == "" else str(number)


def progress_of(row: Dict[str, Any]) -> int:
    number = to_number_or_blank(row.get("progress_percent"))
    return int(number) if number != "" else 0


def to_list_item(row: Dict[str, Any]) -> Dict[str, Any]:
    """Compact projection for the admin list"""
    return {
        "request_id": str(row.get("request_id") or "").strip(),
        "owner_id": str(row.get("owner_id") or "").strip(),
        "office_name": str(row.get("office_name") or "").strip(),
        "office_phone": str(row.get("office_phone") or "").strip(),
        "contact_line_id": str(row.get("contact_line_id") or "").strip(),
        "contact_phone": str(row.get("contact_phone") or "").strip(),
        "progress_percent": progress_of(row),
        "status": str(row.get("status") or "").strip() or DraftStatus.DRAFT.value,
        "updated_at": str(row.get("updated_at") or row.get("created_at") or ""),
        "doc_summary": build_doc_summary(row),
        "payment_method": str(row.get("payment_method") or "").strip(),
        "total_amount": format_total_amount(row.get("total_amount")),
    }


def normalize_limit(raw: Any, default: int, maximum: int) -> int:
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    limit = int(number // 1)
    if limit < 1:
        return default
    return min(limit, maximum)


def normalize_cursor(raw: Any) -> int:
    if raw is None or raw == "":
        return 0
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return 0
    if number != number or number in (float("inf"), float("-inf")):
        return 0
    return max(0, int(number // 1))


class AdminRequestService:
    """Read paths over all drafts for verified admins"""

    def __init__(
        self,
        auth_service: AdminAuthService,
        request_repo: RequestRepository,
        audit_writer: AuditWriter,
        settings: Optional[Settings] = None
    ):
        self.auth = auth_service
        self.repo = request_repo
        self.audit = audit_writer
        self.settings = settings or default_settings

    def _audit_failure(
        self,
        action: AuditAction,
        owner_id: str,
        error: Exception,
        context: Optional[AdminAuthContext],
        target_request_id: str = "",
        extra: Optional[Dict[str, Any]] = None
    ):
        normalized = normalize_admin_error(error)
        meta: Dict[str, Any] = {
            "result": "fail",
            "error_code": failure_code(normalized),
            "message": normalized.message,
            "original_code": getattr(error, "error_code", type(error).__name__),
            **(extra or {}),
        }
        if context is not None:
            meta["email"] = context.email
            meta["token_from_cache"] = context.from_cache
        logger.warning(
            f"{getattr(action, 'value', action)} failed: {meta['error_code']}",
            extra={"actor_id": owner_id, "request_id": target_request_id}
        )
        self.audit.write(action, owner_id, target_request_id, meta)
        return normalized

    # =========================================================================
    # List
    # =========================================================================

    def list_requests(self, actor_id: Any, raw_token: Any, limit: Any = None, cursor: Any = None) -> AdminListPage:
        """Newest-first page of drafts with an opaque offset cursor"""
        owner_id = truncate(str(actor_id or "").strip(), 120)
        page_limit = normalize_limit(limit, self.settings.admin_list_default_limit, self.settings.admin_list_max_limit)
        offset = normalize_cursor(cursor)
        context: Optional[AdminAuthContext] = None

        try:
            context = self.auth.verify_admin_context(owner_id, raw_token, "admin_list_requests")

            rows = [
                map_admin_row(ref.row)
                for ref in self.repo.list_all()
                if str(ref.row.get("owner_id") or "").strip()
            ]
            rows.sort(
                key=lambda row: timestamp_millis(row.get("updated_at") or row.get("created_at")),
                reverse=True,
            )

            start = min(offset, len(rows))
            end = min(start + page_limit, len(rows))
            items = [to_list_item(row) for row in rows[start:end]]
            next_cursor = str(end) if end < len(rows) else None
        except Exception as e:
            raise self._audit_failure(AuditAction.ADMIN_LIST_REQUESTS, owner_id, e, context) from e

        meta: Dict[str, Any] = {
            "result": "success",
            "email": context.email,
            "token_from_cache": context.from_cache,
            "item_count": len(items),
            "limit": page_limit,
            "cursor": offset,
        }
        if next_cursor is not None:
            meta["next_cursor"] = next_cursor
        self.audit.write(AuditAction.ADMIN_LIST_REQUESTS, owner_id, "", meta)

        return AdminListPage(items=items, next_cursor=next_cursor, limit=page_limit, cursor=offset, total=len(rows))

    # =========================================================================
    # Detail
    # =========================================================================

    def get_request(self, actor_id: Any, raw_token: Any, request_id: Any) -> Dict[str, Any]:
        """One draft in full, with its document summary"""
        owner_id = truncate(str(actor_id or "").strip(), 120)
        wanted = truncate(str(request_id or "").strip(), 120)
        context: Optional[AdminAuthContext] = None

        if not wanted:
            error = MissingFieldError("request_id is required.", error_code="MISSING_REQUEST_ID")
            self.audit.write(
                AuditAction.ADMIN_GET_REQUEST, owner_id, "",
                {"result": "fail", "error_code": error.error_code, "message": error.message}
            )
            raise error

        try:
            context = self.auth.verify_admin_context(owner_id, raw_token, "admin_get_request")
            ref = self.repo.find_by_request_id(wanted)
            if ref is None:
                raise NotFoundError("Request not found", details={"request_id": wanted})
            mapped = map_admin_row(ref.row)
            item = {
                **mapped,
                "doc_summary": build_doc_summary(mapped),
                "progress_percent": progress_of(mapped),
                "status": str(mapped.get("status") or "").strip() or DraftStatus.DRAFT.value,
            }
        except Exception as e:
            raise self._audit_failure(
                AuditAction.ADMIN_GET_REQUEST, owner_id, e, context, wanted, {"request_id": wanted}
            ) from e

        self.audit.write(
            AuditAction.ADMIN_GET_REQUEST, owner_id, wanted,
            {
                "result": "success",
                "email": context.email,
                "token_from_cache": context.from_cache,
                "request_id": wanted,
            }
        )
        return {"item": item}
