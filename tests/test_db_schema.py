import sqlite3

import pytest

from translation_store import db
from translation_store.db import check_schema_version, SCHEMA_VERSION
from translation_store.exceptions import DatabaseError


def test_incompatible_schema_version():
    """Test that check_schema_version raises DatabaseError for incompatible version."""
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE meta (key TEXT, value TEXT)")
    conn.execute("INSERT INTO meta (key, value) VALUES ('schema_version', '99.9')")

    with pytest.raises(DatabaseError, match=rf"Incompatible schema version: 99.9 \(expected {SCHEMA_VERSION}\)"):
        check_schema_version(conn)
    conn.close()


def test_uninitialized_database():
    """Test that check_schema_version returns for uninitialized database (no meta table)."""
    conn = sqlite3.connect(":memory:")
    try:
        check_schema_version(conn)
    except Exception as e:
        pytest.fail(f"check_schema_version raised unexpected exception: {e}")
    conn.close()


def test_unique_key_constraint():
    """The table itself rejects a second row for the same locale and key."""
    conn = db.connect(":memory:")
    db.init_db(conn)
    db.insert_translation(conn, "en", "*", "messages", "greeting", "Hello")
    with pytest.raises(sqlite3.IntegrityError):
        db.insert_translation(conn, "en", "*", "messages", "greeting", "Hi")
    # Same key in another locale is fine
    db.insert_translation(conn, "es", "*", "messages", "greeting", "Hola")
    conn.close()


def test_key_exists_excludes_own_row():
    conn = db.connect(":memory:")
    db.init_db(conn)
    rowid = db.insert_translation(conn, "en", "*", "messages", "greeting", "Hello")
    assert db.key_exists(conn, "en", "*", "messages", "greeting")
    assert not db.key_exists(
        conn, "en", "*", "messages", "greeting", exclude_id=rowid
    )
    conn.close()


def test_casefold_function():
    conn = db.connect(":memory:")
    row = conn.execute("SELECT casefold('STRASSE'), casefold(NULL)").fetchone()
    assert row[0] == "strasse"
    assert row[1] is None
    conn.close()


def test_connection_settings(tmp_path):
    conn = db.connect(tmp_path / "store.db")
    assert conn.row_factory is sqlite3.Row
    assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
    # No table references another, so foreign key enforcement stays off
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 0
    conn.close()
