"""Learner setup and finished-session storage."""
import json
from datetime import datetime

from neuroquiz.config import normalize_level, normalize_literacy
from neuroquiz.db import get_connection

SETUP_KEYS = ("name", "level", "literacy_level", "category")


def save_user_setup(db_path: str, setup: dict) -> None:
    conn = get_connection(db_path)
    for key in SETUP_KEYS:
        value = setup.get(key)
        conn.execute(
            "INSERT INTO user_settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, None if value is None else str(value)),
        )
    conn.commit()
    conn.close()


def load_user_setup(db_path: str) -> dict | None:
    """Stored setup with level and literacy normalized, or None if never saved."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT key, value FROM user_settings WHERE key IN (?, ?, ?, ?)", SETUP_KEYS
    ).fetchall()
    conn.close()
    if not rows:
        return None
    stored = {row["key"]: row["value"] for row in rows}
    return {
        "name": stored.get("name") or "User",
        "level": normalize_level(stored.get("level")),
        "literacy_level": normalize_literacy(stored.get("literacy_level")),
        "category": stored.get("category") or None,
    }


def record_quiz_result(db_path: str, summary: dict) -> int:
    """Store a performance summary. Returns the new row id."""
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO quiz_results (user_name, category, total_questions, accuracy,
            total_score, final_level, final_difficulty, summary_json, completed_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            summary.get("user_name", "User"),
            (summary.get("session_config") or {}).get("category"),
            summary.get("total_questions", 0),
            summary.get("accuracy", 0),
            summary.get("total_score", 0),
            summary.get("final_level", 1),
            summary.get("final_difficulty", 1),
            json.dumps(summary),
            datetime.now().isoformat(),
        ),
    )
    conn.commit()
    result_id = cursor.lastrowid
    conn.close()
    return result_id


def get_recent_results(db_path: str, limit: int = 10) -> list[dict]:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT id, user_name, category, total_questions, accuracy, total_score,
            final_level, final_difficulty, completed_at
        FROM quiz_results ORDER BY id DESC LIMIT ?""",
        (limit,),
    ).fetchall()
    conn.close()
    return [dict(r) for r in rows]


def get_stored_summary(db_path: str, result_id: int) -> dict | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT summary_json FROM quiz_results WHERE id = ?", (result_id,)
    ).fetchone()
    conn.close()
    if row is None:
        return None
    return json.loads(row["summary_json"])
