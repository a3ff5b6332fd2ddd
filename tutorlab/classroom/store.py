"""
KeyValueStore - Namespaced JSON key-value persistence in ~/.tutorlab/store.db.

Holds the learner's state between sessions:
- Knowledge graph
- Lesson/curriculum history
- In-progress curriculum position
- Learning queue and theme preference
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from tutorlab.config import DEFAULT_DATA_DIR

logger = logging.getLogger(__name__)

DEFAULT_STORE_DB = DEFAULT_DATA_DIR / "store.db"

# Stable key names
KNOWLEDGE_GRAPH_KEY = "knowledge_graph"
HISTORY_KEY = "history"
CURRICULUM_POSITION_KEY = "curriculum_position"
LEARNING_QUEUE_KEY = "learning_queue"
THEME_KEY = "theme"


class KeyValueStore:
    """
    Flat key -> JSON value store backed by SQLite.

    Keys live under a namespace so several learners (or tests) can share
    one database file. Each method opens its own connection.
    """

    def __init__(self, db_path: Optional[Path] = None, namespace: str = "default"):
        """
        Initialize the store.

        Args:
            db_path: Path to store.db (default: ~/.tutorlab/store.db)
            namespace: Key namespace, one per learner
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_STORE_DB
        self.namespace = namespace
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (namespace, key)
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    # -------------------------------------------------------------------------
    # Raw access
    # -------------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get the decoded value stored under key.

        Unparsable JSON is treated as corruption: the key is deleted and
        the default returned.
        """
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT value FROM kv_store WHERE namespace = ? AND key = ?",
                (self.namespace, key)
            )
            row = cursor.fetchone()
        finally:
            conn.close()

        if not row:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding corrupted value for key '{key}': {e}")
            self.delete(key)
            return default

    def set(self, key: str, value: Any):
        """Store a JSON-serializable value under key."""
        payload = json.dumps(value, ensure_ascii=False)
        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """INSERT INTO kv_store (namespace, key, value, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(namespace, key) DO UPDATE SET
                     value = excluded.value,
                     updated_at = excluded.updated_at""",
                (self.namespace, key, payload, now)
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str):
        conn = self._get_connection()
        try:
            conn.execute(
                "DELETE FROM kv_store WHERE namespace = ? AND key = ?",
                (self.namespace, key)
            )
            conn.commit()
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT key FROM kv_store WHERE namespace = ? ORDER BY key",
                (self.namespace,)
            )
            return [row["key"] for row in cursor.fetchall()]
        finally:
            conn.close()

    def clear(self):
        """Remove every key in this namespace."""
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM kv_store WHERE namespace = ?", (self.namespace,))
            conn.commit()
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------------

    def get_theme(self) -> str:
        theme = self.get(THEME_KEY, "light")
        return theme if theme in ("light", "dark") else "light"

    def set_theme(self, theme: str):
        if theme not in ("light", "dark"):
            raise ValueError(f"Unknown theme: {theme}")
        self.set(THEME_KEY, theme)
