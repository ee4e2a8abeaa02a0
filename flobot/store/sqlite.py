"""
SQLite Store

Trigger and edit persistence on a single SQLite file (or ":memory:").

- Auto-creates tables on connect
- Shared by concurrent dispatch tasks: check_same_thread=False plus a lock
  around every statement
- Adding a trigger or a team edit that already exists for the team replaces it
"""

import logging
import sqlite3
import threading
from typing import List, Optional, Tuple

from ..errors import StoreError
from .base import Edit, EditStore, Trigger, TriggerStore

logger = logging.getLogger("flobot.store.sqlite")


class SQLiteStore(TriggerStore, EditStore):
    """Persistent storage using SQLite."""

    def __init__(self, db_path: str = "flobot.db"):
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def connect(self) -> "SQLiteStore":
        """Open database connection and create tables."""
        try:
            self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._create_tables()
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {self._db_path}: {e}") from e
        logger.info("SQLite store connected: %s", self._db_path)
        return self

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def _create_tables(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS triggers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                team_id TEXT NOT NULL,
                triggered_by TEXT NOT NULL,
                emoji TEXT,
                text_ TEXT,
                UNIQUE (team_id, triggered_by)
            );
            CREATE TABLE IF NOT EXISTS edits (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                edit TEXT NOT NULL,
                replace_with_text TEXT,
                replace_with_file TEXT,
                team_id TEXT,
                user_id TEXT
            );
            CREATE INDEX IF NOT EXISTS idx_edits_team ON edits(team_id, edit);
        """)
        self._conn.commit()

    def _execute(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        if self._conn is None:
            raise StoreError("store is not connected")
        with self._lock:
            try:
                cursor = self._conn.execute(sql, params)
                rows = cursor.fetchall()
                self._conn.commit()
                return rows
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreError(str(e)) from e

    def _transaction(self, statements: List[Tuple[str, tuple]]) -> None:
        if self._conn is None:
            raise StoreError("store is not connected")
        with self._lock:
            try:
                for sql, params in statements:
                    self._conn.execute(sql, params)
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreError(str(e)) from e

    @staticmethod
    def _to_trigger(row: sqlite3.Row) -> Trigger:
        return Trigger(
            id=row["id"],
            team_id=row["team_id"],
            triggered_by=row["triggered_by"],
            emoji=row["emoji"],
            text=row["text_"],
        )

    # ------------------------------------------------------------------ #

    def list_triggers(self, team_id: str) -> List[Trigger]:
        rows = self._execute(
            "SELECT * FROM triggers WHERE team_id = ? ORDER BY triggered_by",
            (team_id,),
        )
        return [self._to_trigger(r) for r in rows]

    def search_triggers(self, team_id: str) -> List[Trigger]:
        # NULL text_ (emoji triggers) sort first
        rows = self._execute(
            "SELECT * FROM triggers WHERE team_id = ? ORDER BY text_ IS NOT NULL, id",
            (team_id,),
        )
        return [self._to_trigger(r) for r in rows]

    def add_text_trigger(self, team_id: str, trigger: str, text: str) -> None:
        self._execute(
            "INSERT OR REPLACE INTO triggers (team_id, triggered_by, emoji, text_) "
            "VALUES (?, ?, NULL, ?)",
            (team_id, trigger, text),
        )

    def add_emoji_trigger(self, team_id: str, trigger: str, emoji: str) -> None:
        self._execute(
            "INSERT OR REPLACE INTO triggers (team_id, triggered_by, emoji, text_) "
            "VALUES (?, ?, ?, NULL)",
            (team_id, trigger, emoji),
        )

    def del_trigger(self, team_id: str, trigger: str) -> None:
        self._execute(
            "DELETE FROM triggers WHERE team_id = ? AND triggered_by = ?",
            (team_id, trigger),
        )

    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_edit(row: sqlite3.Row) -> Edit:
        return Edit(
            id=row["id"],
            edit=row["edit"],
            replace_with_text=row["replace_with_text"],
            replace_with_file=row["replace_with_file"],
            team_id=row["team_id"],
            user_id=row["user_id"],
        )

    def list_edits(self, team_id: str) -> List[Edit]:
        rows = self._execute(
            "SELECT * FROM edits WHERE team_id = ? ORDER BY edit",
            (team_id,),
        )
        return [self._to_edit(r) for r in rows]

    def find_edit(self, user_id: str, team_id: str, edit: str) -> Optional[Edit]:
        # Team edits have a NULL user_id: sort them after the user's
        rows = self._execute(
            "SELECT * FROM edits WHERE (team_id = ? OR user_id = ?) AND edit = ? "
            "ORDER BY user_id IS NULL, id LIMIT 1",
            (team_id, user_id, edit.strip()),
        )
        return self._to_edit(rows[0]) if rows else None

    def add_team_edit(self, team_id: str, edit: str, replace: str) -> None:
        self._transaction([
            ("DELETE FROM edits WHERE team_id = ? AND edit = ?", (team_id, edit)),
            (
                "INSERT INTO edits (edit, replace_with_text, replace_with_file, team_id, user_id) "
                "VALUES (?, ?, NULL, ?, NULL)",
                (edit, replace, team_id),
            ),
        ])

    def del_team_edit(self, team_id: str, edit: str) -> None:
        self._execute(
            "DELETE FROM edits WHERE team_id = ? AND edit = ?",
            (team_id, edit),
        )
