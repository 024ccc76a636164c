"""Audit Writer - Append-only, best-effort audit records"""
import json
import threading
from typing import Any, Dict, List, Optional, Union

from ..config.settings import Settings, settings as default_settings
from ..domain.enums import AuditAction
from ..repositories.audit_repo import AuditRepository
from ..utils.logger import get_logger, get_request_context, get_correlation_id
from ..utils.text import truncate
from ..utils.time import utc_now, format_iso

logger = get_logger(__name__)

RESERVED_META_KEYS = frozenset({
    "ip", "ua", "origin", "path", "request_id", "section",
    "changes", "changed_keys", "error_code", "code",
})


def _normalize_changes(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    result: List[str] = []
    for item in value:
        text = truncate(item, 80)
        if text and text not in result:
            result.append(text)
    return result[:25]


def _normalize_section(value: Any) -> Union[int, str]:
    if value is None or value == "":
        return ""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return truncate(value, 20)
    return int(number) if number.is_integer() else truncate(value, 20)


def _extra_value(value: Any) -> Any:
    if isinstance(value, str):
        return truncate(value, 350)
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        return list(value)[:20]
    if isinstance(value, dict):
        return value
    return truncate(str(value), 350)


def build_audit_meta(target_request_id: str, meta: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Shape audit metadata: fixed bounded keys first, everything else under "extra".

    Request context (ip, ua, origin, path) fills gaps the caller left.
    """
    context = get_request_context()
    source = meta if isinstance(meta, dict) else {}

    base: Dict[str, Any] = {
        "ip": truncate(source.get("ip") or context.get("ip") or "", 120),
        "ua": truncate(source.get("ua") or context.get("ua") or "", 350),
        "origin": truncate(source.get("origin") or context.get("origin") or "", 200),
        "path": truncate(source.get("path") or context.get("path") or "", 120),
        "request_id": truncate(source.get("request_id") or target_request_id or "", 120),
        "section": _normalize_section(source.get("section")),
        "changes": _normalize_changes(source.get("changes") or source.get("changed_keys")),
        "error_code": truncate(source.get("error_code") or source.get("code") or "", 100),
    }

    correlation_id = get_correlation_id()
    if correlation_id:
        base["correlation_id"] = correlation_id

    extra = {
        key: _extra_value(value)
        for key, value in source.items()
        if key not in RESERVED_META_KEYS and value is not None
    }
    if extra:
        base["extra"] = extra
    return base


def capped_json(value: Dict[str, Any], max_length: int) -> str:
    """Serialize; on overflow replace with a truncation marker and a preview"""
    raw = json.dumps(value or {}, ensure_ascii=False, default=str, separators=(",", ":"))
    if len(raw) <= max_length:
        return raw
    return json.dumps(
        {
            "truncated": True,
            "overflow": len(raw) - max_length,
            "preview": raw[:max(1, max_length - 120)],
        },
        ensure_ascii=False,
        separators=(",", ":"),
    )


class AuditWriter:
    """
    Write audit records (append-only)

    Audit must never break the operation being audited: every failure is
    logged as [audit-skip] and counted, and write() returns False.
    """

    def __init__(self, repo: AuditRepository, settings: Optional[Settings] = None):
        self.repo = repo
        self.settings = settings or default_settings
        self._counter_lock = threading.Lock()
        self.dropped_count = 0
        self.last_drop_reason: Optional[str] = None

    def write(
        self,
        action: Union[AuditAction, str],
        actor_id: str = "",
        target_request_id: str = "",
        meta: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Append one audit record; returns whether it was stored"""
        action_name = action.value if isinstance(action, AuditAction) else str(action or "")
        try:
            target = truncate(target_request_id, 120)
            record = {
                "ts": format_iso(utc_now()),
                "actor_id": truncate(actor_id, 120),
                "action": truncate(action_name, 80),
                "target_request_id": target,
                "meta_json": capped_json(
                    build_audit_meta(target, meta),
                    max(2, self.settings.audit_meta_max_len),
                ),
            }
            self.repo.append(record)
            return True
        except Exception as e:
            with self._counter_lock:
                self.dropped_count += 1
                self.last_drop_reason = str(e)
            logger.warning(
                f"[audit-skip] action={action_name} reason={e}",
                extra={"action": action_name}
            )
            return False

    def write_schema_mismatch(self, report) -> bool:
        """Record critical column drift found while ensuring a table"""
        return self.write(
            AuditAction.SCHEMA_MISMATCH,
            meta={
                "error_code": "SCHEMA_MISMATCH",
                "table": report.table,
                "missing": report.missing_critical,
                "moved": report.moved_critical,
            },
        )
