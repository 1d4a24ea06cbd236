"""
Calculation history.

Append-only, capacity-bounded history of calculation results. Once the
capacity is exceeded the oldest entries are evicted.
"""

import json
import logging
from typing import List, Optional

from .db import DEFAULT_DB_PATH, get_connection
from .models import CalculationResult

logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 50


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the calculation_result table if it doesn't exist.

    Rows are never updated; results are only appended, trimmed or deleted.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS calculation_result (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                timestamp TEXT NOT NULL,
                payload TEXT NOT NULL
            )
        """)
        conn.commit()
    finally:
        conn.close()


class HistoryRepository:
    """SQLite-backed calculation history.

    Results are stored as JSON documents and returned newest first.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH, capacity: int = MAX_HISTORY_ENTRIES):
        """Initialize the repository and make sure the schema exists.

        Args:
            db_path: Path to SQLite database file
            capacity: Maximum number of results to keep

        Raises:
            ValueError: If capacity is not positive
        """
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.db_path = db_path
        self.capacity = capacity
        initialize_schema(db_path)

    def append(self, result: CalculationResult) -> None:
        """Insert a result and evict the oldest entries past capacity.

        Insert and trim happen in one transaction.
        """
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN TRANSACTION")
            conn.execute(
                "INSERT INTO calculation_result (id, timestamp, payload) VALUES (?, ?, ?)",
                (result.id, result.timestamp.isoformat(), json.dumps(result.to_dict()))
            )
            cursor = conn.execute("""
                DELETE FROM calculation_result
                WHERE seq NOT IN (
                    SELECT seq FROM calculation_result ORDER BY seq DESC LIMIT ?
                )
            """, (self.capacity,))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        if cursor.rowcount > 0:
            logger.debug("Evicted %d old history entries", cursor.rowcount)

    def list(self, limit: Optional[int] = None) -> List[CalculationResult]:
        """Return stored results, newest first."""
        conn = get_connection(self.db_path)
        try:
            query = "SELECT payload FROM calculation_result ORDER BY seq DESC"
            params = []
            if limit is not None:
                query += " LIMIT ?"
                params.append(limit)
            cursor = conn.execute(query, params)
            return [CalculationResult.from_dict(json.loads(row[0])) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get(self, result_id: str) -> Optional[CalculationResult]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT payload FROM calculation_result WHERE id = ?", (result_id,)
            )
            row = cursor.fetchone()
            return CalculationResult.from_dict(json.loads(row[0])) if row else None
        finally:
            conn.close()

    def remove(self, result_id: str) -> bool:
        """Delete one result by id. Returns True if something was deleted."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("DELETE FROM calculation_result WHERE id = ?", (result_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def clear(self) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute("DELETE FROM calculation_result")
            conn.commit()
        finally:
            conn.close()


class InMemoryHistoryStore:
    """History kept in process memory, same interface as HistoryRepository."""

    def __init__(self, capacity: int = MAX_HISTORY_ENTRIES):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self._results: List[CalculationResult] = []

    def append(self, result: CalculationResult) -> None:
        self._results.insert(0, result)
        del self._results[self.capacity:]

    def list(self, limit: Optional[int] = None) -> List[CalculationResult]:
        results = list(self._results)
        return results if limit is None else results[:limit]

    def get(self, result_id: str) -> Optional[CalculationResult]:
        return next((r for r in self._results if r.id == result_id), None)

    def remove(self, result_id: str) -> bool:
        before = len(self._results)
        self._results = [r for r in self._results if r.id != result_id]
        return len(self._results) < before

    def clear(self) -> None:
        self._results.clear()


# Global repository instance
_default_repository: Optional[HistoryRepository] = None


def get_repository(
    db_path: str = DEFAULT_DB_PATH,
    capacity: int = MAX_HISTORY_ENTRIES
) -> HistoryRepository:
    """Get the shared repository instance for a database path.

    Args:
        db_path: Path to SQLite database file
        capacity: Maximum number of results to keep

    Returns:
        An instance of HistoryRepository
    """
    global _default_repository
    if (
        _default_repository is None
        or _default_repository.db_path != db_path
        or _default_repository.capacity != capacity
    ):
        _default_repository = HistoryRepository(db_path, capacity)
    return _default_repository
