"""Table Adapter - keyed row access and header self-healing over a TabularStore"""
from typing import Any, Callable, Dict, List, Optional, Sequence

from .tabular_store import TabularStore, to_cell_value, from_cell_value
from ..domain.errors import SchemaError
from ..domain.models import RowRef, SchemaReport
from ..utils.logger import get_logger

logger = get_logger(__name__)

DriftListener = Callable[[SchemaReport], None]


def _normalize_column(name: Any) -> str:
    return str(name or "").strip().lower()


def column_index(header: Sequence[str], column: str) -> int:
    """Position of a column in a header, matched case-insensitively; -1 if absent"""
    try:
        return list(header).index(column)
    except ValueError:
        pass
    wanted = _normalize_column(column)
    for index, name in enumerate(header):
        if _normalize_column(name) == wanted:
            return index
    return -1


class TableAdapter:
    """
    Maps dict rows onto positional rows of a TabularStore.

    Header self-healing appends missing columns at the end and never reorders.
    Drift of critical columns is reported, not repaired.
    """

    def __init__(self, store: TabularStore, on_drift: Optional[DriftListener] = None):
        self.store = store
        self._on_drift = on_drift

    def set_drift_listener(self, listener: Optional[DriftListener]) -> None:
        self._on_drift = listener

    # =========================================================================
    # Schema
    # =========================================================================

    def ensure_schema(
        self,
        table: str,
        required_columns: Sequence[str],
        critical_columns: Sequence[str] = ()
    ) -> SchemaReport:
        """Create the table and header if needed and append missing columns"""
        report = SchemaReport(table=table)
        try:
            if not self.store.table_exists(table):
                self.store.create_table(table)
                report.created = True

            original = [str(name) for name in self.store.get_header(table)]
            if not any(name.strip() for name in original):
                self.store.set_header(table, list(required_columns))
                report.added_columns = list(required_columns)
                return report

            missing = [col for col in required_columns if column_index(original, col) == -1]
            if missing:
                self.store.set_header(table, original + missing)
                report.added_columns = missing
                logger.info(
                    f"Appended columns to {table}: {', '.join(missing)}",
                    extra={"table": table}
                )
        except Exception as e:
            raise SchemaError(
                f"Failed to ensure schema for {table}: {e}",
                details={"table": table},
                error_code="SCHEMA_ENSURE_FAILED"
            ) from e

        self._detect_drift(report, original, required_columns, critical_columns)
        return report

    def _detect_drift(
        self,
        report: SchemaReport,
        header: List[str],
        required_columns: Sequence[str],
        critical_columns: Sequence[str]
    ) -> None:
        for column in critical_columns:
            expected = list(required_columns).index(column)
            actual = column_index(header, column)
            if actual == -1:
                report.missing_critical.append(column)
            elif actual != expected:
                report.moved_critical.append(f"{column}:{actual + 1}")

        if not report.has_drift:
            return

        logger.error(
            f"[schema_mismatch] table={report.table} "
            f"missing={report.missing_critical} moved={report.moved_critical}",
            extra={"table": report.table, "error_code": "SCHEMA_MISMATCH"}
        )
        if self._on_drift is not None:
            self._on_drift(report)

    def headers(self, table: str) -> List[str]:
        return [str(name) for name in self.store.get_header(table)]

    # =========================================================================
    # Rows
    # =========================================================================

    def _to_dict(self, header: List[str], values: List[Any]) -> Dict[str, Any]:
        row: Dict[str, Any] = {}
        for index, name in enumerate(header):
            if not name:
                continue
            row[name] = from_cell_value(values[index]) if index < len(values) else ""
        return row

    def _to_values(self, header: List[str], row: Dict[str, Any]) -> List[Any]:
        lookup = {_normalize_column(key): value for key, value in row.items()}
        values = []
        for name in header:
            if name in row:
                values.append(to_cell_value(row[name]))
            else:
                values.append(to_cell_value(lookup.get(_normalize_column(name))))
        return values

    def scan_all(self, table: str) -> List[RowRef]:
        """Every data row in position order"""
        header = self.headers(table)
        return [
            RowRef(position=position, row=self._to_dict(header, values))
            for position, values in self.store.get_rows(table)
        ]

    def find_row_by_key(self, table: str, key_column: str, key_value: str) -> Optional[RowRef]:
        """First row whose key column equals key_value (compared as trimmed text)"""
        header = self.headers(table)
        key_index = column_index(header, key_column)
        if key_index == -1:
            raise SchemaError(
                f"Column {key_column} not found in {table}",
                details={"table": table, "column": key_column},
                error_code="SCHEMA_INVALID"
            )
        wanted = str(key_value).strip()
        for position, values in self.store.get_rows(table):
            cell = values[key_index] if key_index < len(values) else ""
            if str(from_cell_value(cell)).strip() == wanted:
                return RowRef(position=position, row=self._to_dict(header, values))
        return None

    def upsert_row(self, table: str, row: Dict[str, Any], position: Optional[int] = None) -> int:
        """Write a full row in header order; append when no position is given"""
        values = self._to_values(self.headers(table), row)
        if position is None:
            return self.store.append_row(table, values)
        self.store.set_row(table, position, values)
        return position

    def append_record(self, table: str, row: Dict[str, Any]) -> int:
        return self.upsert_row(table, row)

    def update_cell(self, table: str, position: int, column: str, value: Any) -> None:
        index = column_index(self.headers(table), column)
        if index == -1:
            raise SchemaError(
                f"Column {column} not found in {table}",
                details={"table": table, "column": column},
                error_code="SCHEMA_INVALID"
            )
        self.store.set_cell(table, position, index, to_cell_value(value))
