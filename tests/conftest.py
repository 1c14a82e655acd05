"""
Shared test fixtures.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings are loaded at import time; give them something to load.
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("CUSTOMER_NUMBER", "1000123")
os.environ.setdefault("BUSINESS_UNITS", "1700")
os.environ.setdefault("WAREHOUSES", "1710")
os.environ.setdefault("DEFAULT_PAGE_SIZE", "50")
os.environ.setdefault("ENVIRONMENT", "development")

import copy
import re
import uuid
import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime
from typing import Generator

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data if data is not None else []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """
    Mock Supabase query builder with chainable methods.

    Operates on the shared in-memory rows of its table, so inserts and
    updates are visible to later queries in the same test.
    """

    def __init__(self, table: "MockSupabaseTable", action: str = "select", payload=None):
        self._table = table
        self._action = action
        self._payload = payload
        self._filters = []
        self._order = None
        self._range = None
        self._limit = None

    # --- filters ---

    def eq(self, column, value):
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        self._filters.append(lambda row: row.get(column) in values)
        return self

    def ilike(self, column, pattern):
        self._filters.append(lambda row: _ilike(row.get(column), pattern))
        return self

    def or_(self, expression):
        clauses = []
        for part in expression.split(","):
            column, op, pattern = part.split(".", 2)
            if op == "ilike":
                clauses.append((column, pattern))
        self._filters.append(
            lambda row: any(_ilike(row.get(col), pat) for col, pat in clauses)
        )
        return self

    # --- modifiers ---

    def order(self, column, desc=False, **kwargs):
        self._order = (column, desc)
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def single(self):
        self._limit = 1
        return self

    def _matching(self) -> list:
        return [row for row in self._table.rows if all(f(row) for f in self._filters)]

    def execute(self) -> MockSupabaseResponse:
        if self._table.fail_on == self._action:
            raise Exception(self._table.fail_message)

        if self._action == "insert":
            rows = self._payload if isinstance(self._payload, list) else [self._payload]
            inserted = []
            for row in rows:
                row = copy.deepcopy(row)
                row.setdefault(self._table.primary_key, str(uuid.uuid4()))
                row.setdefault("created_at", datetime.utcnow().isoformat() + "Z")
                self._table.rows.append(row)
                inserted.append(copy.deepcopy(row))
            return MockSupabaseResponse(data=inserted)

        matching = self._matching()

        if self._action == "update":
            for row in matching:
                row.update(copy.deepcopy(self._payload))
            return MockSupabaseResponse(data=copy.deepcopy(matching))

        if self._action == "delete":
            self._table.rows[:] = [row for row in self._table.rows if row not in matching]
            return MockSupabaseResponse(data=matching, count=len(matching))

        total = len(matching)
        if self._order:
            column, desc = self._order
            matching = sorted(matching, key=lambda r: str(r.get(column) or ""), reverse=desc)
        if self._range:
            start, end = self._range
            matching = matching[start:end + 1]
        if self._limit is not None:
            matching = matching[:self._limit]
        return MockSupabaseResponse(data=copy.deepcopy(matching), count=total)


def _ilike(value, pattern) -> bool:
    if value is None:
        return False
    regex = ""
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            regex += re.escape(pattern[i + 1])
            i += 2
            continue
        regex += ".*" if ch == "%" else "." if ch == "_" else re.escape(ch)
        i += 1
    return re.fullmatch(regex, str(value), re.IGNORECASE | re.DOTALL) is not None


class MockSupabaseTable:
    """Mock Supabase table backed by a list of dicts."""

    def __init__(self, rows: list = None, primary_key: str = "id"):
        self.rows = rows if rows is not None else []
        self.primary_key = primary_key
        self.fail_on = None
        self.fail_message = "mock failure"

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self, "update", data)

    def delete(self, **kwargs):
        return MockSupabaseQuery(self, "delete")


PRIMARY_KEYS = {"supplier_items": "item_number"}


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self._tables = {}

    def set_table_data(self, table_name: str, data: list):
        """Configure rows for a table."""
        self._table(table_name).rows[:] = copy.deepcopy(data)

    def rows(self, table_name: str) -> list:
        """Current rows of a table (for assertions)."""
        return self._table(table_name).rows

    def fail(self, table_name: str, action: str, message: str = "mock failure"):
        """Make every `action` on a table raise."""
        table = self._table(table_name)
        table.fail_on = action
        table.fail_message = message

    def _table(self, name: str) -> MockSupabaseTable:
        if name not in self._tables:
            self._tables[name] = MockSupabaseTable(primary_key=PRIMARY_KEYS.get(name, "id"))
        return self._tables[name]

    def table(self, name: str) -> MockSupabaseTable:
        return self._table(name)


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("supplier_items", [
                {"item_number": "ZEB123", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock and reset service singletons.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("import_jobs", [...])
    """
    with patch("services.staging_service.get_supabase_client", return_value=mock_supabase), \
         patch("services.import_job_service.get_supabase_client", return_value=mock_supabase), \
         patch("services.publish_service.get_supabase_client", return_value=mock_supabase), \
         patch("services.auth_service.get_supabase_client", return_value=mock_supabase), \
         patch("services.staging_service._staging_service", None), \
         patch("services.import_job_service._import_job_service", None), \
         patch("services.publish_service._publish_service", None):
        yield mock_supabase


@pytest.fixture
def mock_scansource():
    """
    Stand-in for ScanSourceClient.

    Configure search/detail/pricing with side_effect or return_value.
    """
    client = MagicMock()
    client.customer_number = "1000123"
    client.search.return_value = []
    client.detail.return_value = {}
    client.pricing.return_value = {}
    return client


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def admin_user():
    from services.auth_service import AdminUser
    return AdminUser(auth_user_id="auth-admin-1", role="admin")


@pytest.fixture
def test_client_with_mock_db(mock_db, admin_user):
    """
    FastAPI test client with mocked database and admin auth bypassed.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("supplier_items", [...])
            response = test_client_with_mock_db.get(".../staging/items")
    """
    from fastapi.testclient import TestClient
    from main import app
    from routes.dependencies import require_admin

    app.dependency_overrides[require_admin] = lambda: admin_user
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def mock_auth_client():
    """
    Supabase auth stand-in.

    Usage:
        mock_auth_client.auth.get_user.return_value = MagicMock(user=MagicMock(id="u1"))
    """
    client = MagicMock()
    client.auth.get_user.return_value = MagicMock(user=None)
    return client


@pytest.fixture
def test_client_no_auth_override(mock_db, mock_auth_client):
    """FastAPI test client that runs the real admin check against mock_supabase."""
    from fastapi.testclient import TestClient
    from main import app

    with patch("services.auth_service.get_auth_client", return_value=mock_auth_client):
        yield TestClient(app)
