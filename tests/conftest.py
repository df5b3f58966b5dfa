"""
Shared test fixtures.

The Supabase fake keeps real rows per table and applies filters, so
service tests can assert on stored state instead of canned responses.
"""

import os
import sys
from pathlib import Path

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are read at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest
from unittest.mock import patch
from datetime import datetime, timezone
from typing import Any, Callable, Generator, Optional, Union
from uuid import uuid4

from models.record import Platform, Record
from services.staging_store import StagingStore
from services.sync_executor import SyncExecutor
from tests.fakes import FakeSyncService


# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: Any = None, count: Optional[int] = None):
        self.data = data if data is not None else []
        self.count = count


class MockSupabaseQuery:
    """
    Chainable query over one in-memory table.

    Filters and ordering are applied on execute(); writes mutate the
    table's rows.
    """

    def __init__(self, table: "MockSupabaseTable", operation: str, payload: Any = None):
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters: list[Callable[[dict], bool]] = []
        self._order: list[tuple[str, bool]] = []
        self._limit: Optional[int] = None
        self._range: Optional[tuple[int, int]] = None
        self._count: Optional[str] = None
        self._is_single = False

    def select(self, *args, count: Optional[str] = None, **kwargs):
        self._count = count
        return self

    def eq(self, column: str, value: Any):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column: str, value: Any):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column: str, values: list):
        allowed = list(values)
        self._filters.append(lambda row: row.get(column) in allowed)
        return self

    def order(self, column: str, desc: bool = False, **kwargs):
        self._order.append((column, desc))
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    def range(self, start: int, end: int):
        self._range = (start, end)
        return self

    def single(self):
        self._is_single = True
        return self

    def _matches(self, row: dict) -> bool:
        return all(f(row) for f in self._filters)

    def execute(self) -> MockSupabaseResponse:
        self._table.client.calls.append((self._table.name, self._operation))
        self._table.client.raise_if_failing(self._table.name, self._operation)

        if self._operation == "insert":
            data = self._table.insert_rows(self._payload)
        elif self._operation == "update":
            data = []
            for row in self._table.rows:
                if self._matches(row):
                    row.update(self._payload)
                    data.append(dict(row))
        elif self._operation == "delete":
            data = [dict(row) for row in self._table.rows if self._matches(row)]
            self._table.rows = [row for row in self._table.rows if not self._matches(row)]
        else:
            data = [dict(row) for row in self._table.rows if self._matches(row)]
            for column, desc in reversed(self._order):
                data.sort(key=lambda row: (row.get(column) is None, row.get(column) or ""), reverse=desc)
            if self._range is not None:
                data = data[self._range[0]:self._range[1] + 1]
            if self._limit is not None:
                data = data[:self._limit]

        count = len(data) if self._count else None
        if self._is_single:
            return MockSupabaseResponse(data=data[0] if data else None, count=count)
        return MockSupabaseResponse(data=data, count=count)


class MockSupabaseTable:
    """One in-memory table."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self.client = client
        self.name = name
        self.rows: list[dict] = []

    def insert_rows(self, data: Union[dict, list]) -> list[dict]:
        now = datetime.now(timezone.utc).isoformat()
        inserted = []
        for item in data if isinstance(data, list) else [data]:
            row = {"id": str(uuid4()), "created_at": now, "updated_at": now, **item}
            self.rows.append(row)
            inserted.append(dict(row))
        return inserted

    def select(self, *args, **kwargs) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, "select").select(*args, **kwargs)

    def insert(self, data) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, "update", data)

    def delete(self) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, "delete")


class MockSupabaseClient:
    """Mock Supabase client holding real rows per table."""

    def __init__(self):
        self._tables: dict[str, MockSupabaseTable] = {}
        self._failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str]] = []

    def set_table_data(self, table_name: str, data: list):
        """Replace a table's rows."""
        self.table(table_name).rows = [dict(row) for row in data]

    def rows(self, table_name: str) -> list[dict]:
        return [dict(row) for row in self.table(table_name).rows]

    def fail_on(self, table_name: str, operation: str, error: Optional[Exception] = None):
        """Make every `operation` on `table_name` raise."""
        self._failures[(table_name, operation)] = error or RuntimeError("connection reset")

    def raise_if_failing(self, table_name: str, operation: str):
        error = self._failures.get((table_name, operation))
        if error is not None:
            raise error

    def table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(self, name)
        return self._tables[name]


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("sync_list", [
                {"id": "1", "sku": "SKU-A", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase, monkeypatch) -> Generator:
    """
    Patch the database client with mock.

    Service singletons are reset so they pick up the mock.
    """
    import integrations.edge_functions
    import services.pattern_populator
    import services.saved_pattern_service
    import services.sync_history_service
    import services.sync_queue_service

    monkeypatch.setattr(services.sync_queue_service, "_sync_queue_service", None)
    monkeypatch.setattr(services.saved_pattern_service, "_saved_pattern_service", None)
    monkeypatch.setattr(services.sync_history_service, "_sync_history_service", None)
    monkeypatch.setattr(services.pattern_populator, "_pattern_populator", None)
    monkeypatch.setattr(integrations.edge_functions, "_edge_functions_client", None)

    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.sync_queue_service.get_supabase_client", return_value=mock_supabase):
            with patch("services.saved_pattern_service.get_supabase_client", return_value=mock_supabase):
                with patch("services.sync_history_service.get_supabase_client", return_value=mock_supabase):
                    yield mock_supabase


@pytest.fixture
def staging_store() -> StagingStore:
    return StagingStore()


@pytest.fixture
def sync_service() -> FakeSyncService:
    return FakeSyncService()


@pytest.fixture
def executor(sync_service, staging_store) -> SyncExecutor:
    return SyncExecutor(sync_service, staging_store)


@pytest.fixture
def sample_source_records() -> list[Record]:
    """NetSuite side of the SKU-A / SKU-B example."""
    return [
        Record(id="s1", natural_key="SKU-A", platform=Platform.NETSUITE, name="Widget A", price=10.0, quantity=5),
        Record(id="s2", natural_key="SKU-B", platform=Platform.NETSUITE, name="Widget B", price=12.5, quantity=0),
    ]


@pytest.fixture
def sample_target_records() -> list[Record]:
    """Shopify side of the SKU-A / SKU-B example."""
    return [
        Record(id="t9", natural_key="SKU-A", platform=Platform.SHOPIFY, name="Widget A", price=9.0, quantity=5),
    ]
