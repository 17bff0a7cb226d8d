# storage.py
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

DB = Path(__file__).with_name("bot.db")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS recipient (
  slot INTEGER PRIMARY KEY CHECK (slot = 1),
  chat_id TEXT NOT NULL,
  registered_at TEXT
);
"""


def configure(path) -> None:
    """Point the module at a different database file (config / tests)."""
    global DB
    DB = Path(path)


def _conn():
    conn = sqlite3.connect(DB)
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def init_db():
    DB.parent.mkdir(parents=True, exist_ok=True)
    with _conn() as c:
        c.executescript(_SCHEMA)


## SINGLE NOTIFICATION RECIPIENT
def get_recipient() -> Optional[str]:
    with _conn() as c:
        row = c.execute("SELECT chat_id FROM recipient WHERE slot = 1").fetchone()
    return row[0] if row else None


def set_recipient(chat_id) -> None:
    with _conn() as c:
        c.execute("""
            INSERT OR REPLACE INTO recipient (slot, chat_id, registered_at)
            VALUES (1, ?, ?)
        """, (str(chat_id), datetime.utcnow().isoformat()))


def clear_recipient() -> None:
    with _conn() as c:
        c.execute("DELETE FROM recipient WHERE slot = 1")


def has_recipient() -> bool:
    return get_recipient() is not None
