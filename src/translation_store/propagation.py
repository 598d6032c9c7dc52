"""Staleness propagation and family-wide cascades.

Each function issues a single statement and runs inside the caller's
transaction, so concurrent readers see either none or all of its effect.
"""

from __future__ import annotations

import logging
import sqlite3

from translation_store import history as _hist
from translation_store.codec import render_code
from translation_store.models import HistoryEntity

logger = logging.getLogger(__name__)


def flag_as_unstable(
    conn: sqlite3.Connection,
    namespace: str,
    group: str,
    item: str,
    source_locale: str,
) -> int:
    """Mark every translation of the key outside ``source_locale`` unstable.

    Locked translations are flagged too: the lock only protects text.
    Returns the number of rows in the family that were touched.
    """
    cur = conn.execute(
        "UPDATE translations SET unstable = 1 "
        'WHERE namespace = ? AND "group" = ? AND item = ? AND locale != ?',
        (namespace, group, item, source_locale),
    )
    code = render_code(namespace, group, item)
    if cur.rowcount:
        _hist.record_update(
            conn, HistoryEntity.FAMILY, code, "unstable", None, True
        )
    logger.debug("Flagged %d translation(s) of %s as unstable", cur.rowcount, code)
    return cur.rowcount


def delete_family(
    conn: sqlite3.Connection,
    namespace: str,
    group: str,
    item: str,
) -> int:
    """Delete every translation of the key, in all locales."""
    cur = conn.execute(
        'DELETE FROM translations WHERE namespace = ? AND "group" = ? AND item = ?',
        (namespace, group, item),
    )
    code = render_code(namespace, group, item)
    if cur.rowcount:
        _hist.record_delete(
            conn, HistoryEntity.FAMILY, code, {"deleted": cur.rowcount}
        )
    logger.debug("Deleted %d translation(s) of %s", cur.rowcount, code)
    return cur.rowcount


def flag_as_reviewed(conn: sqlite3.Connection, translation_id: int) -> bool:
    """Clear the unstable flag of one translation. False if it doesn't exist."""
    row = conn.execute(
        "SELECT unstable FROM translations WHERE rowid = ?", (translation_id,)
    ).fetchone()
    if row is None:
        return False
    if row["unstable"]:
        conn.execute(
            "UPDATE translations SET unstable = 0 WHERE rowid = ?",
            (translation_id,),
        )
        _hist.record_update(
            conn, HistoryEntity.TRANSLATION, str(translation_id),
            "unstable", True, False,
        )
    return True
