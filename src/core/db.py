"""SQLite database layer for the result cache and quota counters."""

import sqlite3
from datetime import date
from pathlib import Path

_CACHE_TABLE = """
CREATE TABLE IF NOT EXISTS kv_cache (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    stored_at  REAL NOT NULL
);
"""

_QUOTA_TABLE = """
CREATE TABLE IF NOT EXISTS quota (
    caller_id  TEXT    NOT NULL,
    action     TEXT    NOT NULL,
    date       TEXT    NOT NULL,
    used       INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (caller_id, action, date)
);
"""

_ACCOUNTS_TABLE = """
CREATE TABLE IF NOT EXISTS accounts (
    caller_id  TEXT PRIMARY KEY,
    plan_tier  TEXT NOT NULL,
    tokens     INTEGER NOT NULL DEFAULT 0
);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection.

    ``":memory:"`` gives a private in-memory database.
    """
    if str(path) != ":memory:":
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_CACHE_TABLE)
    conn.execute(_QUOTA_TABLE)
    conn.execute(_ACCOUNTS_TABLE)
    conn.commit()
    return conn


# --- key/value cache ---


def get_cache_value(conn: sqlite3.Connection, key: str) -> tuple[str, float] | None:
    """Return (value, stored_at) for a key, or None."""
    row = conn.execute(
        "SELECT value, stored_at FROM kv_cache WHERE key = ?", (key,),
    ).fetchone()
    if row is None:
        return None
    return (row["value"], row["stored_at"])


def set_cache_value(
    conn: sqlite3.Connection, key: str, value: str, stored_at: float,
) -> None:
    """Insert or replace a cache value."""
    conn.execute(
        """
        INSERT INTO kv_cache (key, value, stored_at) VALUES (?, ?, ?)
        ON CONFLICT(key) DO UPDATE SET
            value = excluded.value,
            stored_at = excluded.stored_at
        """,
        (key, value, stored_at),
    )
    conn.commit()


def delete_cache_value(conn: sqlite3.Connection, key: str) -> None:
    conn.execute("DELETE FROM kv_cache WHERE key = ?", (key,))
    conn.commit()


def purge_cache(conn: sqlite3.Connection, older_than: float) -> int:
    """Delete cache rows stored before ``older_than``. Returns rows removed."""
    cursor = conn.execute("DELETE FROM kv_cache WHERE stored_at < ?", (older_than,))
    conn.commit()
    return cursor.rowcount


# --- quota ---


def get_usage(
    conn: sqlite3.Connection,
    caller_id: str,
    action: str,
    target_date: date | None = None,
) -> int:
    """Return units used today (or on the given date) for a caller/action."""
    d = (target_date or date.today()).isoformat()
    row = conn.execute(
        "SELECT used FROM quota WHERE caller_id = ? AND action = ? AND date = ?",
        (caller_id, action, d),
    ).fetchone()
    if row is None:
        return 0
    return int(row["used"])


def increment_usage(
    conn: sqlite3.Connection,
    caller_id: str,
    action: str,
    delta: int = 1,
    target_date: date | None = None,
) -> None:
    """Increment the usage counter for today (or given date). Creates row if needed."""
    d = (target_date or date.today()).isoformat()
    conn.execute(
        """
        INSERT INTO quota (caller_id, action, date, used)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(caller_id, action, date)
        DO UPDATE SET used = used + excluded.used
        """,
        (caller_id, action, d, delta),
    )
    conn.commit()


def get_account(conn: sqlite3.Connection, caller_id: str) -> tuple[str, int] | None:
    """Return (plan_tier, tokens) for a caller, or None if unknown."""
    row = conn.execute(
        "SELECT plan_tier, tokens FROM accounts WHERE caller_id = ?", (caller_id,),
    ).fetchone()
    if row is None:
        return None
    return (row["plan_tier"], int(row["tokens"]))


def upsert_account(
    conn: sqlite3.Connection,
    caller_id: str,
    plan_tier: str,
    tokens_delta: int = 0,
) -> None:
    """Create the account row or update its plan, adding ``tokens_delta`` tokens."""
    conn.execute(
        """
        INSERT INTO accounts (caller_id, plan_tier, tokens) VALUES (?, ?, MAX(0, ?))
        ON CONFLICT(caller_id) DO UPDATE SET
            plan_tier = excluded.plan_tier,
            tokens = MAX(0, tokens + ?)
        """,
        (caller_id, plan_tier, tokens_delta, tokens_delta),
    )
    conn.commit()
