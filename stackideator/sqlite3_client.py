import sqlite3
from pathlib import Path
from typing import Optional


class SQLiteClient:
    """Key-value store backed by a single sqlite table."""

    def __init__(self, db_path):
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path)
        self.cursor = self.conn.cursor()
        self.cursor.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
        """)
        self.conn.commit()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def get(self, key: str) -> Optional[str]:
        self.cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = self.cursor.fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str):
        self.cursor.execute("""
            INSERT INTO kv_store (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP;
        """, (key, value))
        self.conn.commit()

    def delete(self, key: str):
        self.cursor.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self.conn.commit()

    def close(self):
        self.cursor.close()
        self.conn.close()
