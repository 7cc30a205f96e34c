"""Conversation history store."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterable

from streamchat.types import ConversationMessage

_logger = logging.getLogger(__name__)


class HistoryStore:
    """SQLite-backed ordered message lists, keyed by session id.

    Reasoning is never written: only the fields of
    :meth:`ConversationMessage.to_record` are stored.
    """

    def __init__(self, db_path: str = "~/.streamchat/history.db"):
        if db_path == ":memory:":
            self.db_path = None
            self._conn = sqlite3.connect(":memory:")
        else:
            self.db_path = Path(db_path).expanduser()
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path))
        self._init_schema()

    def _init_schema(self):
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS messages (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                tool_call_id TEXT,
                tool_name TEXT,
                is_tool_call INTEGER NOT NULL DEFAULT 0,
                created_at REAL NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_msg_session ON messages(session_id, position);
        """)
        self._conn.commit()

    def save(self, session_id: str, messages: Iterable[ConversationMessage]):
        """Replace the stored list for *session_id* with *messages*."""
        rows = []
        for position, msg in enumerate(messages):
            rec = msg.to_record()
            rows.append((
                session_id, position, rec["role"], rec["content"],
                rec["tool_call_id"], rec["tool_name"], int(rec["is_tool_call"]),
                rec["timestamp"],
            ))
        with self._conn:
            self._conn.execute("DELETE FROM messages WHERE session_id = ?", (session_id,))
            self._conn.executemany(
                "INSERT INTO messages (session_id, position, role, content, "
                "tool_call_id, tool_name, is_tool_call, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                rows,
            )
        _logger.debug("Saved %d messages for session %s", len(rows), session_id)

    def load(self, session_id: str) -> list[ConversationMessage]:
        """Load the stored list for *session_id* (empty if unknown)."""
        rows = self._conn.execute(
            "SELECT role, content, tool_call_id, tool_name, is_tool_call, created_at "
            "FROM messages WHERE session_id = ? ORDER BY position",
            (session_id,),
        ).fetchall()
        return [
            ConversationMessage.from_record({
                "role": role,
                "content": content,
                "tool_call_id": tool_call_id,
                "tool_name": tool_name,
                "is_tool_call": bool(is_tool_call),
                "timestamp": ts,
            })
            for role, content, tool_call_id, tool_name, is_tool_call, ts in rows
        ]

    def clear(self, session_id: str):
        with self._conn:
            self._conn.execute("DELETE FROM messages WHERE session_id = ?", (session_id,))

    def close(self):
        self._conn.close()
