"""Tabular Store - header-plus-rows tables behind one small interface"""
import math
import threading
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Tuple


def to_cell_value(value: Any) -> Any:
    """
    Normalize a Python value to what a cell can hold.

    Cells hold text, numbers, booleans or timestamps; anything else is
    stringified and None becomes empty text.
    """
    if value is None:
        return ""
    if isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else ""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return str(value)


def from_cell_value(value: Any) -> Any:
    """Inverse of to_cell_value for values read back from a backend"""
    if value is None:
        return ""
    if isinstance(value, datetime) and value.tzinfo is None:
        # BSON datetimes come back naive but are UTC
        return value.replace(tzinfo=timezone.utc)
    return value


class TabularStore(ABC):
    """
    Row store with a header row per table.

    Rows are addressed by zero-based data positions. Positions are stable
    once assigned; append is atomic and returns the new position.
    """

    @abstractmethod
    def table_exists(self, table: str) -> bool:
        ...

    @abstractmethod
    def create_table(self, table: str) -> None:
        ...

    @abstractmethod
    def get_header(self, table: str) -> List[str]:
        ...

    @abstractmethod
    def set_header(self, table: str, header: List[str]) -> None:
        ...

    @abstractmethod
    def get_rows(self, table: str) -> List[Tuple[int, List[Any]]]:
        """All data rows as (position, values), ordered by position"""

    @abstractmethod
    def set_row(self, table: str, position: int, values: List[Any]) -> None:
        ...

    @abstractmethod
    def append_row(self, table: str, values: List[Any]) -> int:
        ...

    @abstractmethod
    def set_cell(self, table: str, position: int, column_index: int, value: Any) -> None:
        ...

    def ping(self) -> bool:
        """Whether the backend is reachable"""
        return True


class InMemoryTabularStore(TabularStore):
    """Process-local store for tests and single-process local runs"""

    def __init__(self):
        self._lock = threading.RLock()
        self._headers: Dict[str, List[str]] = {}
        self._rows: Dict[str, List[List[Any]]] = {}

    def _require(self, table: str) -> None:
        if table not in self._headers:
            raise KeyError(f"Table not found: {table}")

    def table_exists(self, table: str) -> bool:
        with self._lock:
            return table in self._headers

    def create_table(self, table: str) -> None:
        with self._lock:
            self._headers.setdefault(table, [])
            self._rows.setdefault(table, [])

    def get_header(self, table: str) -> List[str]:
        with self._lock:
            self._require(table)
            return list(self._headers[table])

    def set_header(self, table: str, header: List[str]) -> None:
        with self._lock:
            self._require(table)
            self._headers[table] = list(header)

    def get_rows(self, table: str) -> List[Tuple[int, List[Any]]]:
        with self._lock:
            self._require(table)
            return [(position, list(values)) for position, values in enumerate(self._rows[table])]

    def set_row(self, table: str, position: int, values: List[Any]) -> None:
        with self._lock:
            self._require(table)
            rows = self._rows[table]
            if position < 0 or position >= len(rows):
                raise IndexError(f"No row at position {position} in {table}")
            rows[position] = list(values)

    def append_row(self, table: str, values: List[Any]) -> int:
        with self._lock:
            self._require(table)
            self._rows[table].append(list(values))
            return len(self._rows[table]) - 1

    def set_cell(self, table: str, position: int, column_index: int, value: Any) -> None:
        with self._lock:
            self._require(table)
            row = self._rows[table][position]
            if column_index >= len(row):
                row.extend([""] * (column_index + 1 - len(row)))
            row[column_index] = value
