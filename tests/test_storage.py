"""
Unit tests for storage layer.

Tests schema creation, bounded history and model serialization.
"""

import os
import tempfile
from datetime import datetime

import pytest

from energyiq.core.devices import DeviceType
from energyiq.storage.db import get_connection
from energyiq.storage.models import (
    CalculationResult,
    Device,
    DeviceResult,
    generate_id,
)
from energyiq.storage.repository import (
    HistoryRepository,
    InMemoryHistoryStore,
    get_repository,
    initialize_schema,
)


def _result(result_id: str, cost: float = 100.0) -> CalculationResult:
    device = Device(id=f"{result_id}-d", type=DeviceType.FAN, quantity=2, wattage=75, hours_per_day=1.5)
    return CalculationResult(
        id=result_id,
        timestamp=datetime(2024, 1, 1, 12, 0, 0),
        devices=(DeviceResult(device=device, daily_kwh=0.23, monthly_kwh=6.75, monthly_cost=cost, percentage=100.0),),
        total_daily_kwh=0.23,
        total_monthly_kwh=6.75,
        total_monthly_cost=cost,
        rate_per_kwh=8.0,
        currency="₹",
        country="India"
    )


class TestStorageSchema:
    """Test database schema creation and structure."""

    def test_schema_creation(self):
        """Verify table is created correctly."""
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "test.db")
            initialize_schema(db_path)

            conn = get_connection(db_path)
            try:
                cursor = conn.execute("PRAGMA table_info(calculation_result)")
                column_names = [col[1] for col in cursor.fetchall()]
                assert column_names == ['seq', 'id', 'timestamp', 'payload']
            finally:
                conn.close()

    def test_parent_directory_created(self):
        """A database in a missing directory is still created."""
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = os.path.join(temp_dir, "nested", "dir", "test.db")
            initialize_schema(db_path)

            assert os.path.exists(db_path)


class TestHistoryRepository:
    """Test the SQLite history."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.temp_dir, "history.db")

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_append_and_get(self):
        """A stored result reads back unchanged."""
        repo = HistoryRepository(self.db_path)
        result = _result("r1")
        repo.append(result)

        assert repo.get("r1") == result
        assert repo.get("missing") is None

    def test_list_newest_first(self):
        """Results are listed newest first."""
        repo = HistoryRepository(self.db_path)
        for i in range(3):
            repo.append(_result(f"r{i}"))

        assert [r.id for r in repo.list()] == ["r2", "r1", "r0"]
        assert [r.id for r in repo.list(limit=2)] == ["r2", "r1"]

    def test_capacity_evicts_oldest(self):
        """Appending 51 results keeps the newest 50."""
        repo = HistoryRepository(self.db_path)
        for i in range(51):
            repo.append(_result(f"r{i}"))

        results = repo.list()
        assert len(results) == 50
        assert results[0].id == "r50"
        assert results[-1].id == "r1"
        assert repo.get("r0") is None

    def test_custom_capacity(self):
        """A smaller capacity is honoured."""
        repo = HistoryRepository(self.db_path, capacity=2)
        for i in range(4):
            repo.append(_result(f"r{i}"))

        assert [r.id for r in repo.list()] == ["r3", "r2"]

    def test_invalid_capacity(self):
        """Capacity must be positive."""
        with pytest.raises(ValueError, match="capacity must be > 0"):
            HistoryRepository(self.db_path, capacity=0)

    def test_remove(self):
        """Removing reports whether anything was deleted."""
        repo = HistoryRepository(self.db_path)
        repo.append(_result("r1"))

        assert repo.remove("r1") is True
        assert repo.remove("r1") is False
        assert repo.list() == []

    def test_clear(self):
        """Clear deletes every result."""
        repo = HistoryRepository(self.db_path)
        repo.append(_result("r1"))
        repo.append(_result("r2"))
        repo.clear()

        assert repo.list() == []

    def test_persists_across_instances(self):
        """History survives a new repository on the same file."""
        HistoryRepository(self.db_path).append(_result("r1"))

        assert HistoryRepository(self.db_path).get("r1") is not None

    def test_get_repository_reuses_instance(self):
        """The shared repository is rebuilt only when the path changes."""
        first = get_repository(self.db_path)
        assert get_repository(self.db_path) is first

        other = get_repository(os.path.join(self.temp_dir, "other.db"))
        assert other is not first


class TestInMemoryHistoryStore:
    """Test the in-memory history."""

    def test_capacity_and_order(self):
        """Appending 51 results keeps the newest 50, newest first."""
        store = InMemoryHistoryStore()
        for i in range(51):
            store.append(_result(f"r{i}"))

        results = store.list()
        assert len(results) == 50
        assert results[0].id == "r50"
        assert store.get("r0") is None

    def test_remove_and_clear(self):
        """Remove and clear behave like the SQLite history."""
        store = InMemoryHistoryStore()
        store.append(_result("r1"))
        store.append(_result("r2"))

        assert store.remove("r1") is True
        assert store.remove("r1") is False
        store.clear()
        assert store.list() == []


class TestModels:
    """Test model serialization."""

    def test_result_round_trip(self):
        """to_dict/from_dict preserve every field."""
        result = _result("r1", cost=54.25)
        data = result.to_dict()

        assert data["totalMonthlyCost"] == 54.25
        assert data["devices"][0]["device"]["hoursPerDay"] == 1.5
        assert data["devices"][0]["device"]["type"] == "Fan"
        assert CalculationResult.from_dict(data) == result

    def test_generate_id_unique(self):
        """Generated ids are unique and timestamp-prefixed."""
        ids = {generate_id() for _ in range(100)}

        assert len(ids) == 100
        assert all(i.split("-")[0].isdigit() for i in ids)
