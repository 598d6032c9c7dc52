"""Audit log of translation writes, cascades and review-flag changes.

Values are stored JSON-encoded. Entries about a single row use
``HistoryEntity.TRANSLATION`` and the rowid; entries about a whole key
across locales use ``HistoryEntity.FAMILY`` and the rendered code.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Mapping
from typing import Any

from translation_store.models import EditOperation, EditRecord, HistoryEntity

Scalar = str | int | float | bool | None

_BOOLEAN_COLUMNS = frozenset({"unstable", "locked"})


def _append(
    conn: sqlite3.Connection,
    entity: HistoryEntity | str,
    entity_id: str,
    operation: EditOperation,
    *,
    field_name: str | None = None,
    old_value: str | None = None,
    new_value: str | None = None,
) -> None:
    entity = HistoryEntity(entity)
    conn.execute(
        "INSERT INTO edit_history "
        "(entity_type, entity_id, field_name, operation, old_value, new_value) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (entity.value, entity_id, field_name, operation.value, old_value, new_value),
    )


def _encode_snapshot(values: Mapping[str, Any] | None) -> str | None:
    return json.dumps(dict(values)) if values else None


def record_create(
    conn: sqlite3.Connection,
    entity: HistoryEntity | str,
    entity_id: str,
    new_value: Mapping[str, Any] | None = None,
) -> None:
    """Log a new row together with a snapshot of its attributes."""
    _append(
        conn, entity, entity_id, EditOperation.CREATE,
        new_value=_encode_snapshot(new_value),
    )


def record_update(
    conn: sqlite3.Connection,
    entity: HistoryEntity | str,
    entity_id: str,
    field_name: str,
    old_value: Scalar,
    new_value: Scalar,
) -> None:
    _append(
        conn, entity, entity_id, EditOperation.UPDATE,
        field_name=field_name,
        old_value=json.dumps(old_value),
        new_value=json.dumps(new_value),
    )


def record_row_changes(
    conn: sqlite3.Connection,
    translation_id: int,
    old_row: Mapping[str, Any] | sqlite3.Row,
    new_values: Mapping[str, Scalar],
) -> int:
    """Log one UPDATE per column whose value differs from ``old_row``.

    Returns the number of entries written.
    """
    written = 0
    for field_name, new_value in new_values.items():
        old_value = old_row[field_name]
        if field_name in _BOOLEAN_COLUMNS:
            old_value, new_value = bool(old_value), bool(new_value)
        if old_value == new_value:
            continue
        record_update(
            conn, HistoryEntity.TRANSLATION, str(translation_id),
            field_name, old_value, new_value,
        )
        written += 1
    return written


def record_delete(
    conn: sqlite3.Connection,
    entity: HistoryEntity | str,
    entity_id: str,
    old_value: Mapping[str, Any] | None = None,
) -> None:
    """Log a removal together with what was removed."""
    _append(
        conn, entity, entity_id, EditOperation.DELETE,
        old_value=_encode_snapshot(old_value),
    )


def query_history(
    conn: sqlite3.Connection,
    *,
    entity_type: HistoryEntity | str | None = None,
    entity_id: str | None = None,
    since: str | None = None,
    operation: EditOperation | str | None = None,
) -> list[EditRecord]:
    """Return matching entries oldest first.

    Raises:
        ValueError: If ``entity_type`` or ``operation`` is not a known value.
    """
    filters: list[tuple[str, str]] = []
    if entity_type is not None:
        filters.append(("entity_type = ?", HistoryEntity(entity_type).value))
    if entity_id is not None:
        filters.append(("entity_id = ?", entity_id))
    if since is not None:
        filters.append(("timestamp > ?", since))
    if operation is not None:
        filters.append(("operation = ?", EditOperation(operation).value))

    where = " AND ".join(clause for clause, _ in filters) or "1=1"
    rows = conn.execute(
        f"SELECT rowid, * FROM edit_history WHERE {where} "
        "ORDER BY timestamp, rowid",
        [param for _, param in filters],
    ).fetchall()
    return [
        EditRecord(
            id=row["rowid"],
            entity_type=HistoryEntity(row["entity_type"]),
            entity_id=row["entity_id"],
            field_name=row["field_name"],
            operation=EditOperation(row["operation"]),
            old_value=row["old_value"],
            new_value=row["new_value"],
            timestamp=row["timestamp"],
        )
        for row in rows
    ]
