"""Database connection, DDL, and low-level row access for translation-store."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from translation_store.exceptions import DatabaseError

SCHEMA_VERSION = "1.0"

_COLUMNS = 'rowid, locale, namespace, "group", item, text, unstable, locked'


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- Translation entries
CREATE TABLE IF NOT EXISTS translations (
    rowid INTEGER PRIMARY KEY,
    locale TEXT NOT NULL,
    namespace TEXT NOT NULL DEFAULT '*',
    "group" TEXT NOT NULL,
    item TEXT NOT NULL,
    text TEXT NOT NULL DEFAULT '',
    unstable BOOLEAN CHECK( unstable IN (0, 1) ) DEFAULT 0 NOT NULL,
    locked BOOLEAN CHECK( locked IN (0, 1) ) DEFAULT 0 NOT NULL,
    UNIQUE (locale, namespace, "group", item)
);
CREATE INDEX IF NOT EXISTS translation_key_index
    ON translations (namespace, "group", item);
CREATE INDEX IF NOT EXISTS translation_locale_index ON translations (locale);
CREATE INDEX IF NOT EXISTS translation_text_index ON translations (locale, text);

-- Edit history
CREATE TABLE IF NOT EXISTS edit_history (
    rowid INTEGER PRIMARY KEY,
    entity_type TEXT NOT NULL CHECK( entity_type IN ('translation', 'family') ),
    entity_id TEXT NOT NULL,
    field_name TEXT,
    operation TEXT NOT NULL CHECK( operation IN ('CREATE', 'UPDATE', 'DELETE') ),
    old_value TEXT,
    new_value TEXT,
    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
CREATE INDEX IF NOT EXISTS edit_history_entity_index ON edit_history (entity_type, entity_id);
CREATE INDEX IF NOT EXISTS edit_history_timestamp_index ON edit_history (timestamp);
"""


def connect(
    db_path: str | Path = ":memory:",
    *,
    timeout: float = 5.0,
) -> sqlite3.Connection:
    """Open a database connection with store PRAGMA settings."""
    db_path_str = str(db_path)
    conn = sqlite3.connect(db_path_str, timeout=timeout)
    if db_path_str != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")
    conn.row_factory = sqlite3.Row
    # Unicode-aware case folding for substring filters; SQLite's own
    # LIKE only folds ASCII.
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


# ---------------------------------------------------------------------------
# Translation row helpers
# ---------------------------------------------------------------------------

def select_columns(alias: str | None = None) -> str:
    """Column list for translation queries, optionally table-qualified."""
    if alias is None:
        return _COLUMNS
    return ", ".join(f"{alias}.{c.strip()}" for c in _COLUMNS.split(","))


def get_translation_row(
    conn: sqlite3.Connection, translation_id: int
) -> sqlite3.Row | None:
    """Get a full translation row by rowid."""
    return conn.execute(
        f"SELECT {_COLUMNS} FROM translations WHERE rowid = ?",
        (translation_id,),
    ).fetchone()


def get_translation_row_by_key(
    conn: sqlite3.Connection,
    locale: str,
    namespace: str,
    group: str,
    item: str,
) -> sqlite3.Row | None:
    """Get the row of one locale for a key, or None."""
    return conn.execute(
        f"SELECT {_COLUMNS} FROM translations "
        'WHERE locale = ? AND namespace = ? AND "group" = ? AND item = ?',
        (locale, namespace, group, item),
    ).fetchone()


def key_exists(
    conn: sqlite3.Connection,
    locale: str,
    namespace: str,
    group: str,
    item: str,
    *,
    exclude_id: int | None = None,
) -> bool:
    """Whether a row other than ``exclude_id`` already holds this key."""
    sql = (
        "SELECT 1 FROM translations "
        'WHERE locale = ? AND namespace = ? AND "group" = ? AND item = ?'
    )
    params: list[object] = [locale, namespace, group, item]
    if exclude_id is not None:
        sql += " AND rowid != ?"
        params.append(exclude_id)
    return conn.execute(sql, params).fetchone() is not None


def insert_translation(
    conn: sqlite3.Connection,
    locale: str,
    namespace: str,
    group: str,
    item: str,
    text: str,
    *,
    unstable: bool = False,
    locked: bool = False,
) -> int:
    """Insert a translation row and return its rowid."""
    cur = conn.execute(
        "INSERT INTO translations "
        '(locale, namespace, "group", item, text, unstable, locked) '
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        (locale, namespace, group, item, text, int(unstable), int(locked)),
    )
    return int(cur.lastrowid)
