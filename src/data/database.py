"""
SQLite database initialization and connection management.

The app only needs a key/value table: every blob (profile, goals, area
order, UI preferences) is a JSON string stored under its own key, the way a
browser's local storage would hold it. All reads and writes go through
PersistenceGateway.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional, Union

from src.config import DEFAULT_DB_PATH

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT    PRIMARY KEY,
    value       TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL DEFAULT (datetime('now'))
);
"""


class Database:
    """Thin wrapper around a SQLite connection."""

    def __init__(self, db_path: Optional[Union[Path, str]] = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.conn: Optional[sqlite3.Connection] = None

    # -- lifecycle -----------------------------------------------------------

    def connect(self) -> sqlite3.Connection:
        """Open (or return existing) connection and ensure schema exists."""
        if self.conn is not None:
            return self.conn
        logger.info("Connecting to SQLite at %s", self.db_path)
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        if str(self.db_path) != ":memory:":
            self.conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()
        return self.conn

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Database connection closed.")

    # -- internal ------------------------------------------------------------

    def _create_tables(self) -> None:
        assert self.conn is not None
        self.conn.executescript(SCHEMA_SQL)
        self.conn.commit()
        logger.info("Database schema ensured.")


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Opens the SQLite file and makes sure the one table we need exists.
#
# Key pieces:
#   - SCHEMA_SQL: a single kv_store table. Values are opaque strings; the
#     gateway and the models decide what goes inside.
#   - Database class: holds one connection. ":memory:" gives tests a
#     throwaway store with the same code path as production.
#
# Data flow:
#   App start → Database.connect() → PersistenceGateway(conn) →
#   GoalRepository.load()
#
# Interviewer-friendly talking points:
#   1. Why key/value instead of normalized tables: the whole goal
#      collection is written at once after every change, so rows per goal
#      would buy nothing but mapping code.
#   2. WAL keeps a reader (e.g. an export) from blocking the UI's writes.
