"""
Top score storage.

The game core only knows the TopScoreStore protocol. Two stores ship with
the package: an in-memory one and a SQLite file holding a single row.
"""

from __future__ import annotations
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Protocol
import sqlite3


# Default database location
DEFAULT_DB_PATH = Path.home() / ".tetrix" / "scores.db"


class TopScoreStore(Protocol):
    """Durable home of the best score."""
    def load(self) -> int:
        ...

    def save(self, value: int) -> None:
        ...


class MemoryTopScoreStore:
    """Keeps the top score in memory only."""

    def __init__(self, value: int = 0):
        self.value = value
        self.saves = 0

    def load(self) -> int:
        return self.value

    def save(self, value: int) -> None:
        self.value = value
        self.saves += 1


@contextmanager
def get_connection(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Get a database connection with proper cleanup."""
    conn = sqlite3.connect(str(db_path), timeout=10.0)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


class SQLiteTopScoreStore:
    """
    Top score in a SQLite file.

    The table holds at most one row (id = 1). Saving never lowers the
    stored value.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path) if db_path is not None else DEFAULT_DB_PATH
        self._initialized = False

    def init_db(self) -> None:
        """Create the schema if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with get_connection(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS top_score (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    value INTEGER NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()
        self._initialized = True

    def load(self) -> int:
        if not self._initialized:
            self.init_db()
        with get_connection(self.db_path) as conn:
            row = conn.execute("SELECT value FROM top_score WHERE id = 1").fetchone()
        return int(row["value"]) if row is not None else 0

    def save(self, value: int) -> None:
        if not self._initialized:
            self.init_db()
        now = datetime.now().isoformat()
        with get_connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO top_score (id, value, updated_at) VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    value = MAX(top_score.value, excluded.value),
                    updated_at = excluded.updated_at
                """,
                (int(value), now),
            )
            conn.commit()
