"""
Database connection management.

Provides the SQLite connection used by the calculation history.
"""

import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = "energyiq.db"


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Create and return a SQLite database connection.

    The parent directory is created if it does not exist yet.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection
    """
    path = Path(db_path)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(str(path))
