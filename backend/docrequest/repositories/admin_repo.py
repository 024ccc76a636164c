"""Admin Repository - Admin allow-list lookups"""
from datetime import datetime
from typing import Any, Dict, Optional

from .schema import ADMINS
from .table_adapter import TableAdapter
from ..domain.enums import AdminRole
from ..domain.models import AdminAllowlistEntry
from ..utils.logger import get_logger
from ..utils.text import to_bool_strict
from ..utils.time import utc_now

logger = get_logger(__name__)


def _entry_from_row(row: Dict[str, Any], position: int) -> AdminAllowlistEntry:
    return AdminAllowlistEntry(
        owner_id=str(row.get("owner_id") or "").strip(),
        email=str(row.get("email") or "").strip().lower(),
        role=str(row.get("role") or "").strip().lower() or AdminRole.ADMIN.value,
        is_active=to_bool_strict(row.get("is_active")),
        position=position,
    )


class AdminRepository:
    """Repository for the admin allow-list"""

    def __init__(self, adapter: TableAdapter):
        self._adapter = adapter
        self.table = ADMINS.name

    def get_entry(self, owner_id: str) -> Optional[AdminAllowlistEntry]:
        """
        Get the allow-list entry of an owner.

        The first active entry wins. Without one, the first inactive entry is
        returned so callers can tell "deactivated" from "never listed".
        """
        wanted = str(owner_id or "").strip()
        if not wanted:
            return None

        fallback: Optional[AdminAllowlistEntry] = None
        for ref in self._adapter.scan_all(self.table):
            entry = _entry_from_row(ref.row, ref.position)
            if entry.owner_id != wanted:
                continue
            if entry.is_active:
                return entry
            if fallback is None:
                fallback = entry
        return fallback

    def get_active_role(self, owner_id: str) -> str:
        """Role of an active admin, or empty string"""
        entry = self.get_entry(owner_id)
        if entry is None or not entry.is_active:
            return ""
        return entry.role

    def add_entry(
        self,
        owner_id: str,
        email: str,
        role: str = AdminRole.ADMIN.value,
        is_active: bool = True,
        now: Optional[datetime] = None
    ) -> AdminAllowlistEntry:
        """Append an allow-list entry"""
        now = now or utc_now()
        row = {
            "owner_id": owner_id.strip(),
            "email": email.strip().lower(),
            "role": role.strip().lower() or AdminRole.ADMIN.value,
            "is_active": is_active,
            "created_at": now,
            "updated_at": now,
        }
        position = self._adapter.append_record(self.table, row)
        logger.info(f"Added admin allow-list entry for {row['email']}", extra={"actor_id": row["owner_id"]})
        return _entry_from_row(row, position)
