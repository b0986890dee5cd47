"""Tests for top score storage."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from tetrix.storage import MemoryTopScoreStore, SQLiteTopScoreStore
from tetrix.core.session import GameSession


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "nested" / "scores.db"


class TestMemoryStore:
    def test_roundtrip(self):
        store = MemoryTopScoreStore()
        assert store.load() == 0
        store.save(30)
        assert store.load() == 30
        assert store.saves == 1


class TestSQLiteStore:
    def test_empty_database(self, db_path):
        store = SQLiteTopScoreStore(db_path)
        assert store.load() == 0
        assert db_path.exists()

    def test_save_and_load(self, db_path):
        SQLiteTopScoreStore(db_path).save(120)
        assert SQLiteTopScoreStore(db_path).load() == 120

    def test_single_row(self, db_path):
        store = SQLiteTopScoreStore(db_path)
        store.save(10)
        store.save(20)
        store.save(30)
        assert store.load() == 30

    def test_never_lowers(self, db_path):
        store = SQLiteTopScoreStore(db_path)
        store.save(50)
        store.save(20)
        assert store.load() == 50

    def test_session_reads_store(self, db_path):
        SQLiteTopScoreStore(db_path).save(90)
        session = GameSession(store=SQLiteTopScoreStore(db_path), seed=1)
        assert session.top_score == 90
