"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from neuroquiz.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);

CREATE TABLE IF NOT EXISTS quiz_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_name TEXT NOT NULL,
    category TEXT,
    total_questions INTEGER NOT NULL,
    accuracy INTEGER NOT NULL,
    total_score INTEGER NOT NULL,
    final_level INTEGER NOT NULL,
    final_difficulty INTEGER NOT NULL,
    summary_json TEXT NOT NULL,
    completed_at TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
