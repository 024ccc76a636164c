"""Draft Engine - section saves and draft reads for one owner at a time"""
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from .audit_writer import AuditWriter
from .lock_registry import OwnerLockRegistry
from .rate_limiter import RateLimiter
from .sections import (
    apply_partial_update,
    apply_progress,
    compute_progress,
    default_row,
    is_valid_section,
    normalize_draft_record,
    parse_section,
    refresh_tax_id_checks,
    TAX_ID_NOT_CHECKED,
)
from ..config.settings import Settings, settings as default_settings
from ..domain.enums import AuditAction, Section
from ..domain.errors import InvalidInputError, MaintenanceError, MissingFieldError
from ..domain.models import NotifyResult, SaveSectionResult
from ..repositories.request_repo import RequestRepository
from ..repositories.schema import SchemaManager
from ..utils.idgen import stable_request_id
from ..utils.logger import get_logger
from ..utils.text import is_same_cell_value, to_number_or_blank, truncate, unique_list
from ..utils.time import format_iso, utc_now

logger = get_logger(__name__)

SAVE_SECTION_ACTION = "save_section"

# Derived columns reported in changed_fields whenever their value moves
DERIVED_COLUMNS = (
    "request_id",
    "owner_id",
    "status",
    "sec1_done",
    "sec2_done",
    "sec3_done",
    "sec5_done",
    "progress_percent",
    "last_notified_progress",
    "updated_at",
)


class ProgressNotifier(Protocol):
    def maybe_notify(self, row: Mapping[str, Any]) -> NotifyResult:
        ...


class DraftEngine:
    """
    Owns the write path of request drafts.

    Writes for one owner are serialized by a per-owner lock; reads take no
    lock and may observe a draft mid-update.
    """

    def __init__(
        self,
        request_repo: RequestRepository,
        schema: SchemaManager,
        rate_limiter: RateLimiter,
        locks: OwnerLockRegistry,
        notifier: ProgressNotifier,
        audit_writer: AuditWriter,
        settings: Optional[Settings] = None,
        now: Callable[[], datetime] = utc_now
    ):
        self.repo = request_repo
        self.schema = schema
        self.rate_limiter = rate_limiter
        self.locks = locks
        self.notifier = notifier
        self.audit = audit_writer
        self.settings = settings or default_settings
        self._now = now

    # =========================================================================
    # Save
    # =========================================================================

    def save_section(
        self,
        actor_id: Any,
        section: Any,
        data: Any,
        client_ts: Any = ""
    ) -> SaveSectionResult:
        """Apply one section's fields to the caller's draft and recompute progress"""
        owner_id = truncate(str(actor_id or "").strip(), 120)
        section_number = parse_section(section)
        client_ts = truncate(client_ts, 80)

        if not owner_id:
            raise InvalidInputError("actor_id is required", details={"field": "actor_id"})
        if not is_valid_section(section_number):
            raise InvalidInputError(
                "section must be one of: 1, 2, 3, 5.",
                details={"section": truncate(section, 20)},
            )
        if not isinstance(data, Mapping):
            raise MissingFieldError("data object is required.", error_code="MISSING_DATA")

        if self.settings.maintenance_mode:
            self.audit.write(
                AuditAction.MAINTENANCE_BLOCKED, owner_id, "",
                {"path": SAVE_SECTION_ACTION, "section": section_number, "error_code": "MAINTENANCE"}
            )
            raise MaintenanceError("The system is temporarily under maintenance")

        self.rate_limiter.enforce(
            SAVE_SECTION_ACTION,
            owner_id,
            self.settings.save_rate_limit_count,
            self.settings.save_rate_limit_window_seconds,
        )

        self.schema.ensure_ready()

        with self.locks.hold(owner_id):
            result = self._upsert(owner_id, section_number, data)

        audit_meta: Dict[str, Any] = {"section": section_number, "changes": result.changed_fields}
        if client_ts:
            audit_meta["client_ts"] = client_ts
        self.audit.write(AuditAction.SAVE_SECTION, owner_id, result.request_id, audit_meta)
        return result

    def _upsert(self, owner_id: str, section: int, data: Mapping[str, Any]) -> SaveSectionResult:
        now = self._now()
        request_id = stable_request_id(owner_id)

        existing = self.repo.find_by_owner(owner_id)
        if existing is not None:
            row = dict(existing.row)
            before = dict(existing.row)
        else:
            row = default_row(owner_id, request_id, now)
            before = {}

        if not row.get("request_id"):
            row["request_id"] = request_id
        if not row.get("owner_id"):
            row["owner_id"] = owner_id
        if not row.get("created_at"):
            row["created_at"] = now
        if not row.get("tax_id_verify_status"):
            row["tax_id_verify_status"] = TAX_ID_NOT_CHECKED

        changed, truncated = apply_partial_update(row, section, data)
        if truncated:
            self.audit.write(
                AuditAction.INPUT_TRUNCATED, owner_id, row["request_id"],
                {"section": section, "changes": truncated}
            )
        if section == Section.OFFICE.value:
            refresh_tax_id_checks(row)

        progress = compute_progress(row)
        apply_progress(row, progress)
        row["updated_at"] = now

        position = self.repo.save(row, existing.position if existing is not None else None)

        self._notify_progress(row, position)

        inspect = unique_list(
            changed
            + [field for field in ("tax_id_format_ok", "tax_id_checksum_ok") if section == Section.OFFICE.value]
            + list(DERIVED_COLUMNS)
            + ([] if existing is not None else ["created_at"])
        )
        changed_fields = [key for key in inspect if not is_same_cell_value(before.get(key), row.get(key))]

        logger.info(
            f"Saved section {section} at {progress.progress_percent}%",
            extra={"request_id": row["request_id"], "actor_id": owner_id, "section": section}
        )
        return SaveSectionResult(
            request_id=row["request_id"],
            actor_id=row["owner_id"],
            updated_at=format_iso(now),
            status=progress.status,
            progress=progress,
            changed_fields=changed_fields,
        )

    def _notify_progress(self, row: Dict[str, Any], position: int) -> None:
        """Dispatch a milestone push; failures never undo the saved draft"""
        try:
            outcome = self.notifier.maybe_notify(row)
        except Exception as e:
            logger.error(f"Progress notification failed: {e}", exc_info=True,
                         extra={"request_id": row.get("request_id")})
            self.audit.write(
                AuditAction.LINE_PUSH_FAILED, row.get("owner_id", ""), row.get("request_id", ""),
                {"reason": str(e), "progress_percent": row.get("progress_percent")}
            )
            return

        previous = to_number_or_blank(row.get("last_notified_progress")) or 0
        if not outcome.should_advance or outcome.new_milestone is None:
            return
        if outcome.new_milestone <= float(previous):
            return

        try:
            self.repo.update_last_notified(position, outcome.new_milestone)
        except Exception as e:
            # Milestone stays unrecorded, so the next save may push it again
            logger.error(f"Failed to record notified milestone: {e}", exc_info=True,
                         extra={"request_id": row.get("request_id")})
            self.audit.write(
                AuditAction.LINE_PUSH_FAILED, row.get("owner_id", ""), row.get("request_id", ""),
                {"reason": f"milestone not recorded: {e}", "progress_percent": outcome.new_milestone}
            )
            return
        row["last_notified_progress"] = outcome.new_milestone

    # =========================================================================
    # Read
    # =========================================================================

    def get_draft(self, actor_id: Any) -> Dict[str, Any]:
        """Current draft of an owner, or {"found": False}"""
        owner_id = str(actor_id or "").strip()
        if not owner_id:
            raise MissingFieldError("actor_id is required", error_code="MISSING_ACTOR")

        self.schema.ensure_ready()
        existing = self.repo.find_by_owner(owner_id)
        if existing is None:
            return {"found": False}
        return {"found": True, "request": normalize_draft_record(self.repo.columns, existing.row)}

