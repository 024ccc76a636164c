"""Table Schemas - canonical column order and the startup migration step"""
import threading
from typing import List, Optional, Tuple

from .table_adapter import TableAdapter
from ..domain.models import SchemaReport
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TableSchema:
    """Canonical header of one table and the columns whose position matters"""

    def __init__(self, name: str, columns: Tuple[str, ...], critical_columns: Tuple[str, ...]):
        self.name = name
        self.columns = columns
        self.critical_columns = critical_columns


REQUESTS = TableSchema(
    name="requests",
    columns=(
        "request_id",
        "owner_id",
        "status",
        "sec1_done",
        "sec2_done",
        "sec3_done",
        "sec5_done",
        "progress_percent",
        "last_notified_progress",
        "office_name",
        "tax_invoice_address",
        "tax_id13",
        "office_phone",
        "tax_id_format_ok",
        "tax_id_checksum_ok",
        "tax_id_verify_status",
        "tax_id_verify_note",
        "doc_quotation",
        "doc_quotation_date",
        "doc_invoice",
        "doc_invoice_date",
        "doc_store",
        "doc_store_text",
        "doc_receipt_tax",
        "doc_receipt_tax_date",
        "total_amount",
        "payment_method",
        "payment_notes",
        "contact_line_id",
        "contact_phone",
        "created_at",
        "updated_at",
    ),
    critical_columns=(
        "request_id",
        "owner_id",
        "status",
        "sec1_done",
        "sec2_done",
        "sec3_done",
        "sec5_done",
        "progress_percent",
        "last_notified_progress",
        "created_at",
        "updated_at",
    ),
)

ADMINS = TableSchema(
    name="admins",
    columns=("owner_id", "email", "role", "is_active", "created_at", "updated_at"),
    critical_columns=("owner_id", "is_active"),
)

AUDIT_LOG = TableSchema(
    name="audit_log",
    columns=("ts", "actor_id", "action", "target_request_id", "meta_json"),
    critical_columns=("ts", "action", "meta_json"),
)

# Audit first so drift found in later tables can be recorded
ALL_TABLES = (AUDIT_LOG, REQUESTS, ADMINS)


class SchemaManager:
    """
    Runs header self-healing for every table once per process.

    A failed run is not remembered as ready, so the next call retries.
    """

    def __init__(self, adapter: TableAdapter):
        self.adapter = adapter
        self._lock = threading.Lock()
        self._ready = False
        self.last_error: Optional[str] = None
        self.last_reports: List[SchemaReport] = []

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure_ready(self) -> List[SchemaReport]:
        """Ensure all tables exist with their canonical columns"""
        if self._ready:
            return self.last_reports
        with self._lock:
            if self._ready:
                return self.last_reports
            try:
                reports = [
                    self.adapter.ensure_schema(table.name, table.columns, table.critical_columns)
                    for table in ALL_TABLES
                ]
            except Exception as e:
                self.last_error = getattr(e, "message", None) or str(e)
                logger.error(
                    f"Schema migration failed: {self.last_error}",
                    extra={"error_code": getattr(e, "error_code", "SCHEMA_ERROR")}
                )
                raise
            self.last_reports = reports
            self.last_error = None
            self._ready = True
            logger.info("Schema ready for tables: " + ", ".join(t.name for t in ALL_TABLES))
            return reports
