"""Request Repository - Data access for request drafts"""
from typing import Any, Dict, List, Optional

from .schema import REQUESTS
from .table_adapter import TableAdapter
from ..domain.models import RowRef
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RequestRepository:
    """Repository for request draft rows (one per owner)"""

    def __init__(self, adapter: TableAdapter):
        self._adapter = adapter
        self.table = REQUESTS.name

    @property
    def columns(self) -> List[str]:
        """Current header, which may carry columns beyond the canonical ones"""
        return self._adapter.headers(self.table)

    def find_by_owner(self, owner_id: str) -> Optional[RowRef]:
        """Get the draft of an owner"""
        return self._adapter.find_row_by_key(self.table, "owner_id", owner_id)

    def find_by_request_id(self, request_id: str) -> Optional[RowRef]:
        """Get a draft by request ID (linear scan)"""
        return self._adapter.find_row_by_key(self.table, "request_id", request_id)

    def list_all(self) -> List[RowRef]:
        """Get every draft in storage order"""
        return self._adapter.scan_all(self.table)

    def save(self, row: Dict[str, Any], position: Optional[int] = None) -> int:
        """Write the full draft row; appends when position is None"""
        new_position = self._adapter.upsert_row(self.table, row, position)
        logger.info(
            f"Saved draft {row.get('request_id')} at position {new_position}",
            extra={"request_id": row.get("request_id")}
        )
        return new_position

    def update_last_notified(self, position: int, milestone: int) -> None:
        """Single-cell write of the notified milestone"""
        self._adapter.update_cell(self.table, position, "last_notified_progress", milestone)
