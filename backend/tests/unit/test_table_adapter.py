"""Tests for header self-healing, drift reporting and keyed row access"""
import pytest

from docrequest.domain.errors import SchemaError
from docrequest.repositories.schema import ADMINS, REQUESTS, SchemaManager
from docrequest.repositories.table_adapter import TableAdapter, column_index
from docrequest.repositories.tabular_store import InMemoryTabularStore


@pytest.fixture
def store():
    return InMemoryTabularStore()


@pytest.fixture
def adapter(store):
    return TableAdapter(store)


def test_column_index_is_case_insensitive():
    header = ["Owner_ID", "email"]
    assert column_index(header, "owner_id") == 0
    assert column_index(header, "EMAIL") == 1
    assert column_index(header, "role") == -1


class TestEnsureSchema:
    def test_creates_table_with_canonical_header(self, adapter, store):
        report = adapter.ensure_schema(ADMINS.name, ADMINS.columns, ADMINS.critical_columns)
        assert report.created is True
        assert report.added_columns == list(ADMINS.columns)
        assert store.get_header(ADMINS.name) == list(ADMINS.columns)
        assert not report.has_drift

    def test_appends_missing_columns_without_reordering(self, adapter, store):
        store.create_table(ADMINS.name)
        store.set_header(ADMINS.name, ["owner_id", "email", "note"])

        report = adapter.ensure_schema(ADMINS.name, ADMINS.columns, ())

        assert report.created is False
        assert report.added_columns == ["role", "is_active", "created_at", "updated_at"]
        assert store.get_header(ADMINS.name) == [
            "owner_id", "email", "note", "role", "is_active", "created_at", "updated_at"
        ]

    def test_second_run_is_a_no_op(self, adapter):
        adapter.ensure_schema(ADMINS.name, ADMINS.columns, ADMINS.critical_columns)
        report = adapter.ensure_schema(ADMINS.name, ADMINS.columns, ADMINS.critical_columns)
        assert report.created is False
        assert report.added_columns == []

    def test_moved_and_missing_critical_columns_are_reported(self, store):
        store.create_table(ADMINS.name)
        store.set_header(ADMINS.name, ["email", "owner_id", "role"])
        seen = []
        adapter = TableAdapter(store, on_drift=seen.append)

        report = adapter.ensure_schema(ADMINS.name, ADMINS.columns, ADMINS.critical_columns)

        # Drift is judged against the header as found, before columns were appended
        assert report.moved_critical == ["owner_id:2"]
        assert report.missing_critical == ["is_active"]
        assert seen == [report]
        assert store.get_header(ADMINS.name)[:3] == ["email", "owner_id", "role"]

    def test_store_failure_becomes_schema_error(self, adapter, monkeypatch, store):
        def broken(table):
            raise RuntimeError("backend down")

        monkeypatch.setattr(store, "table_exists", broken)
        with pytest.raises(SchemaError) as exc_info:
            adapter.ensure_schema(ADMINS.name, ADMINS.columns)
        assert exc_info.value.error_code == "SCHEMA_ENSURE_FAILED"


class TestRows:
    def test_upsert_and_find_by_key(self, adapter):
        adapter.ensure_schema(ADMINS.name, ADMINS.columns)
        first = adapter.upsert_row(ADMINS.name, {"owner_id": "U1", "email": "a@example.com", "is_active": True})
        second = adapter.upsert_row(ADMINS.name, {"owner_id": "U2", "email": "b@example.com"})
        assert (first, second) == (0, 1)

        found = adapter.find_row_by_key(ADMINS.name, "owner_id", " U2 ")
        assert found.position == 1
        assert found.row["email"] == "b@example.com"
        assert found.row["role"] == ""

        adapter.upsert_row(ADMINS.name, {**found.row, "role": "viewer"}, found.position)
        assert adapter.find_row_by_key(ADMINS.name, "owner_id", "U2").row["role"] == "viewer"
        assert adapter.find_row_by_key(ADMINS.name, "owner_id", "U3") is None

    def test_missing_key_column_is_schema_invalid(self, adapter):
        adapter.ensure_schema(ADMINS.name, ("email",))
        with pytest.raises(SchemaError) as exc_info:
            adapter.find_row_by_key(ADMINS.name, "owner_id", "U1")
        assert exc_info.value.error_code == "SCHEMA_INVALID"

    def test_update_cell_touches_one_column(self, adapter):
        adapter.ensure_schema(REQUESTS.name, REQUESTS.columns)
        position = adapter.upsert_row(REQUESTS.name, {"request_id": "req_U1", "owner_id": "U1"})
        adapter.update_cell(REQUESTS.name, position, "last_notified_progress", 50)
        row = adapter.find_row_by_key(REQUESTS.name, "owner_id", "U1").row
        assert row["last_notified_progress"] == 50
        assert row["request_id"] == "req_U1"


class TestSchemaManager:
    def test_runs_once_and_retries_after_failure(self, store, monkeypatch):
        manager = SchemaManager(TableAdapter(store))
        original = store.create_table
        calls = {"count": 0}

        def flaky(table):
            calls["count"] += 1
            if calls["count"] == 1:
                raise RuntimeError("transient")
            original(table)

        monkeypatch.setattr(store, "create_table", flaky)

        with pytest.raises(SchemaError):
            manager.ensure_ready()
        assert manager.ready is False
        assert "transient" in manager.last_error

        reports = manager.ensure_ready()
        assert manager.ready is True
        assert manager.last_error is None
        assert [r.table for r in reports] == ["audit_log", "requests", "admins"]
        assert manager.ensure_ready() is reports
