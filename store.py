"""
SQLite persistence for imported conversations.

Every write is INSERT OR REPLACE keyed by the row's id, so importing the
same archive twice leaves the same rows behind.
"""
import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

TABLES = ("conversations", "messages", "attachments")


# =============================================================================
# EXCEPTIONS
# =============================================================================

class StoreError(Exception):
    """Raised when the database cannot be opened or written."""
    pass


class SchemaError(StoreError):
    """Raised when the schema script is missing or fails to apply."""
    pass


# =============================================================================
# STORE
# =============================================================================

class ConversationStore:
    """Thin wrapper around a single exclusively-owned sqlite3 connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: str | Path, schema_path: str | Path) -> "ConversationStore":
        """
        Open (or create) the database and apply the schema script.

        Raises:
            StoreError: If the database cannot be opened
            SchemaError: If schema_path is missing or the DDL fails
        """
        try:
            conn = sqlite3.connect(str(db_path))
        except sqlite3.Error as e:
            raise StoreError(f"Failed to create database {db_path}: {e}") from e

        store = cls(conn)
        try:
            store.apply_schema(schema_path)
            conn.execute("PRAGMA foreign_keys = ON")
            # REPLACE must fire the delete trigger to keep messages_fts in sync
            conn.execute("PRAGMA recursive_triggers = ON")
        except Exception:
            conn.close()
            raise
        return store

    def apply_schema(self, schema_path: str | Path) -> None:
        try:
            schema_sql = Path(schema_path).read_text(encoding="utf-8")
        except OSError as e:
            raise SchemaError(f"Failed to read schema script {schema_path}: {e}") from e
        try:
            self.conn.executescript(schema_sql)
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to execute schema script {schema_path}: {e}") from e

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "ConversationStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Integrity mode
    # -------------------------------------------------------------------------

    @property
    def foreign_keys_enabled(self) -> bool:
        return bool(self.conn.execute("PRAGMA foreign_keys").fetchone()[0])

    @contextmanager
    def foreign_keys_disabled(self) -> Iterator["ConversationStore"]:
        """
        Run a block as one transaction with foreign key checks off.

        Commits on success, rolls back on error, and restores the previous
        enforcement setting either way. The pragma is a no-op inside an
        open transaction, so pending work is committed first.
        """
        previous = self.foreign_keys_enabled
        self.conn.commit()
        self.conn.execute("PRAGMA foreign_keys = OFF")
        try:
            yield self
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        finally:
            self.conn.execute(f"PRAGMA foreign_keys = {'ON' if previous else 'OFF'}")

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _execute(self, sql: str, params: tuple, what: str) -> None:
        try:
            self.conn.execute(sql, params)
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(f"Failed to insert {what}: {e}") from e

    def upsert_conversation(self, id: str, title: str, create_time: float,
                            update_time: float, model_slug: str | None,
                            is_archived: bool) -> None:
        self._execute(
            "INSERT OR REPLACE INTO conversations "
            "(id, title, create_time, update_time, model_slug, is_archived) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (id, title, int(create_time), int(update_time), model_slug, bool(is_archived)),
            f"conversation: {title}",
        )

    def upsert_message(self, id: str, conversation_id: str, parent_id: str | None,
                       author_role: str, content_type: str, text: str | None,
                       create_time: float | None, model_slug: str | None,
                       order_index: int, has_attachments: bool) -> None:
        self._execute(
            "INSERT OR REPLACE INTO messages "
            "(id, conversation_id, parent_id, author_role, content_type, text_content, "
            "create_time, model_slug, message_order, has_attachments) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (id, conversation_id, parent_id, author_role, content_type, text,
             int(create_time) if create_time is not None else None,
             model_slug, order_index, has_attachments),
            f"message: {id}",
        )

    def upsert_attachment(self, id: str, message_id: str, pointer: str,
                          content_type: str, size_bytes: int | None,
                          width: int | None, height: int | None,
                          metadata: Any, order_index: int, payload: bytes,
                          file_name: str, mime_type: str) -> None:
        metadata_json = json.dumps(metadata) if metadata is not None else None
        self._execute(
            "INSERT OR REPLACE INTO attachments "
            "(id, message_id, pointer, content_type, size_bytes, width, height, "
            "metadata, attachment_order, payload, file_name, mime_type) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (id, message_id, pointer, content_type, size_bytes, width, height,
             metadata_json, order_index, sqlite3.Binary(payload), file_name, mime_type),
            f"attachment: {id}",
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def count_rows(self) -> dict[str, int]:
        return {
            table: self.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            for table in TABLES
        }

    def search_messages(self, query: str, limit: int = 20) -> list[dict]:
        """
        Full-text search over message text.

        Returns dicts with message_id, conversation_id, conversation_title
        and text_content, best match first.
        """
        try:
            rows = self.conn.execute(
                "SELECT m.id, m.conversation_id, messages_fts.conversation_title, m.text_content "
                "FROM messages_fts JOIN messages m ON m.rowid = messages_fts.rowid "
                "WHERE messages_fts MATCH ? ORDER BY messages_fts.rank LIMIT ?",
                (query, limit),
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Search failed for {query!r}: {e}") from e

        return [
            {
                "message_id": row[0],
                "conversation_id": row[1],
                "conversation_title": row[2],
                "text_content": row[3],
            }
            for row in rows
        ]
