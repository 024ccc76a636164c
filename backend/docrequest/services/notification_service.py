"""
Notification Service - milestone push messages to the draft owner

At most one push per milestone: a push is attempted only when the draft's
progress is above the last notified milestone, and the caller persists the
new milestone only when the push succeeded (or was a dry run).
"""
from typing import Any, Dict, List, Mapping, Optional, Protocol

from ..config.settings import Settings, settings as default_settings
from ..domain.enums import AuditAction
from ..domain.models import NotifyResult, PushResult
from ..engine.audit_writer import AuditWriter
from ..utils.logger import get_logger
from ..utils.text import to_number_or_blank, truncate_with_marker

logger = get_logger(__name__)

MILESTONE_MESSAGES: Dict[int, str] = {
    25: "บันทึกข้อมูลลูกค้าแล้ว ✅ (1/4) ต่อไป: เลือกประเภทเอกสาร",
    50: "เลือกประเภทเอกสารแล้ว ✅ (2/4) ต่อไป: รายละเอียดการชำระเงิน",
    75: "บันทึกรายละเอียดการชำระแล้ว ✅ (3/4) ต่อไป: ช่องทางติดต่อ",
    100: "ข้อมูลครบแล้ว ✅ ทีมงานจะติดต่อกลับ ขอบคุณค่ะ",
}
GENERIC_PROGRESS_MESSAGE = "อัปเดตความคืบหน้าแล้ว ✅"
DEEP_LINK_LABEL = "เปิดแบบฟอร์ม"

# Leaves room for the marker within the 350-character cap on audit extras
RESPONSE_BODY_AUDIT_LIMIT = 300


class PushSender(Protocol):
    def push(self, to: str, messages: List[Dict[str, Any]], access_token: str) -> PushResult:
        ...


def _as_progress(value: Any) -> int:
    number = to_number_or_blank(value)
    return 0 if number == "" else int(number)


def build_progress_message(progress_percent: int, deep_link_url: str = "") -> str:
    """Message text for a milestone, with an optional link back to the form"""
    text = MILESTONE_MESSAGES.get(progress_percent, GENERIC_PROGRESS_MESSAGE)
    if deep_link_url:
        return f"{text}\n{DEEP_LINK_LABEL}: {deep_link_url}"
    return text


class NotificationService:
    """Decides whether a saved draft earns a progress push and sends it"""

    def __init__(
        self,
        push_client: PushSender,
        audit_writer: AuditWriter,
        settings: Optional[Settings] = None
    ):
        self.push_client = push_client
        self.audit = audit_writer
        self.settings = settings or default_settings

    def maybe_notify(self, row: Mapping[str, Any]) -> NotifyResult:
        """
        Push a progress message if the draft reached a new milestone.

        Returns whether last_notified_progress should advance, and to what.
        """
        owner_id = str(row.get("owner_id") or "").strip()
        request_id = str(row.get("request_id") or "").strip()
        progress = _as_progress(row.get("progress_percent"))
        last_notified = _as_progress(row.get("last_notified_progress"))

        if not owner_id:
            return NotifyResult()

        counters = {"progress_percent": progress, "last_notified_progress": last_notified}

        if not self.settings.line_push_enabled:
            self.audit.write(AuditAction.LINE_PUSH_SKIPPED_DISABLED, owner_id, request_id, counters)
            return NotifyResult()

        if progress <= last_notified:
            self.audit.write(AuditAction.LINE_PUSH_SKIPPED_NO_INCREASE, owner_id, request_id, counters)
            return NotifyResult()

        messages = [{
            "type": "text",
            "text": build_progress_message(progress, self.settings.liff_app_base_url.strip()),
        }]

        if self.settings.line_push_dry_run:
            self.audit.write(
                AuditAction.LINE_PUSH_DRY_RUN, owner_id, request_id,
                {**counters, "messages": messages}
            )
            logger.info(f"Dry-run push for milestone {progress}", extra={"request_id": request_id})
            return NotifyResult(should_advance=True, new_milestone=progress)

        access_token = self.settings.line_channel_access_token.strip()
        if not access_token:
            self.audit.write(
                AuditAction.LINE_PUSH_FAILED, owner_id, request_id,
                {"reason": "Missing LINE channel access token", "progress_percent": progress}
            )
            return NotifyResult()

        result = self.push_client.push(owner_id, messages, access_token)
        if not result.ok:
            self.audit.write(
                AuditAction.LINE_PUSH_FAILED, owner_id, request_id,
                {
                    "progress_percent": progress,
                    "status_code": result.status_code,
                    "response_body": truncate_with_marker(result.body, RESPONSE_BODY_AUDIT_LIMIT),
                }
            )
            return NotifyResult()

        self.audit.write(
            AuditAction.LINE_PUSH_SENT, owner_id, request_id,
            {"progress_percent": progress, "status_code": result.status_code, "messages": messages}
        )
        logger.info(f"Pushed milestone {progress}", extra={"request_id": request_id})
        return NotifyResult(should_advance=True, new_milestone=progress)
