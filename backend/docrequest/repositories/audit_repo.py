"""Audit Repository - Append-only audit rows"""
from typing import Any, Dict, List

from .schema import AUDIT_LOG
from .table_adapter import TableAdapter


class AuditRepository:
    """Repository for audit records (append-only)"""

    def __init__(self, adapter: TableAdapter):
        self._adapter = adapter
        self.table = AUDIT_LOG.name

    def append(self, record: Dict[str, Any]) -> int:
        """Append one audit row"""
        return self._adapter.append_record(self.table, record)

    def list_all(self) -> List[Dict[str, Any]]:
        """Get every audit row, oldest first"""
        return [ref.row for ref in self._adapter.scan_all(self.table)]
