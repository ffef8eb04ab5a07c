"""
SQLite schema for the document store.
"""

import sqlite3
from pathlib import Path

from .config import DB_PATH


def connect(db_path: str = None) -> sqlite3.Connection:
    """Open a connection in autocommit mode; transactions are explicit."""
    db_path = db_path or DB_PATH
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create the documents and embeddings tables."""
    cursor = conn.cursor()

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS documents (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            content TEXT NOT NULL
        )
    ''')

    # One float32 vector per document, stored as raw bytes
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS embeddings (
            doc_id INTEGER PRIMARY KEY REFERENCES documents(id) ON DELETE CASCADE,
            vec BLOB NOT NULL
        )
    ''')


def health_check(conn: sqlite3.Connection) -> bool:
    """Check that the required tables exist."""
    try:
        cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table';")
        table_names = [row[0] for row in cursor.fetchall()]
        return all(table in table_names for table in ("documents", "embeddings"))
    except sqlite3.Error:
        return False
