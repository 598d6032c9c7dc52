"""Read-only queries over the translation table.

Listings take ``per_page`` and ``page``. With ``per_page == 0`` they
return a lazy iterator over every match; with ``per_page > 0`` they return
a :class:`~translation_store.models.Page`.
"""

from __future__ import annotations

import random
import sqlite3
from collections.abc import Iterator, Sequence
from typing import Union

from translation_store import db as _db
from translation_store.codec import parse_partial_code
from translation_store.models import (
    DEFAULT_NAMESPACE,
    EditPolicy,
    Page,
    ReviewState,
    TranslationModel,
)

Listing = Union[Iterator[TranslationModel], Page[TranslationModel]]

_FETCH_SIZE = 256

_GROUP = '"group"'

_SAME_KEY = (
    'e.namespace = t.namespace AND e."group" = t."group" AND e.item = t.item'
)


def row_to_translation(row: sqlite3.Row) -> TranslationModel:
    return TranslationModel(
        id=row["rowid"],
        locale=row["locale"],
        namespace=row["namespace"],
        group=row["group"],
        item=row["item"],
        text=row["text"],
        review_state=ReviewState.from_flag(bool(row["unstable"])),
        edit_policy=EditPolicy.from_flag(bool(row["locked"])),
    )


def _like_pattern(needle: str) -> str:
    escaped = (
        needle.casefold()
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    return f"%{escaped}%"


def _contains(column: str) -> str:
    return f"casefold({column}) LIKE ? ESCAPE '\\'"


def _iter_rows(
    conn: sqlite3.Connection, sql: str, params: Sequence[object]
) -> Iterator[TranslationModel]:
    cur = conn.execute(sql, params)
    try:
        while True:
            rows = cur.fetchmany(_FETCH_SIZE)
            if not rows:
                return
            for row in rows:
                yield row_to_translation(row)
    finally:
        cur.close()


def _paginate(
    conn: sqlite3.Connection,
    sql: str,
    params: Sequence[object],
    per_page: int,
    page: int,
) -> Listing:
    if per_page < 0:
        raise ValueError(f"per_page must be >= 0, got {per_page}")
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if per_page == 0:
        return _iter_rows(conn, sql, params)

    total = conn.execute(f"SELECT COUNT(*) FROM ({sql})", params).fetchone()[0]
    rows = conn.execute(
        f"{sql} LIMIT ? OFFSET ?", (*params, per_page, (page - 1) * per_page)
    ).fetchall()
    return Page(
        items=tuple(row_to_translation(r) for r in rows),
        page=page,
        per_page=per_page,
        total=total,
    )


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def list_by_locale(
    conn: sqlite3.Connection, locale: str, per_page: int = 0, page: int = 1
) -> Listing:
    """Every translation of ``locale``."""
    sql = (
        f"SELECT {_db.select_columns()} FROM translations "
        "WHERE locale = ? ORDER BY rowid"
    )
    return _paginate(conn, sql, (locale,), per_page, page)


def under_review(
    conn: sqlite3.Connection, locale: str, per_page: int = 0, page: int = 1
) -> Listing:
    """Translations of ``locale`` whose source changed since they were edited."""
    sql = (
        f"SELECT {_db.select_columns()} FROM translations "
        "WHERE locale = ? AND unstable = 1 ORDER BY rowid"
    )
    return _paginate(conn, sql, (locale,), per_page, page)


def family(
    conn: sqlite3.Connection, namespace: str, group: str, item: str
) -> list[TranslationModel]:
    """All translations sharing one key, across locales."""
    rows = conn.execute(
        f"SELECT {_db.select_columns()} FROM translations "
        'WHERE namespace = ? AND "group" = ? AND item = ? ORDER BY locale',
        (namespace, group, item),
    ).fetchall()
    return [row_to_translation(r) for r in rows]


# ---------------------------------------------------------------------------
# Untranslated entries
# ---------------------------------------------------------------------------

def _untranslated_sql(text: str | None) -> str:
    clauses = ["t.locale = ?"]
    if text:
        clauses.append(_contains("t.text"))
    clauses.append(
        "NOT EXISTS (SELECT 1 FROM translations e "
        f"WHERE e.locale = ? AND {_SAME_KEY})"
    )
    sql = (
        f"SELECT {_db.select_columns('t')} FROM translations t "
        f"WHERE {' AND '.join(clauses)} ORDER BY t.rowid"
    )
    return sql


def untranslated(
    conn: sqlite3.Connection,
    reference_locale: str,
    target_locale: str,
    text: str | None = None,
    per_page: int = 0,
    page: int = 1,
) -> Listing:
    """Reference-locale translations whose key has no ``target_locale`` entry.

    ``text`` restricts the result to reference entries containing that
    substring, ignoring case.
    """
    sql = _untranslated_sql(text)
    params: list[object] = [reference_locale]
    if text:
        params.append(_like_pattern(text))
    params.append(target_locale)
    return _paginate(conn, sql, params, per_page, page)


def random_untranslated(
    conn: sqlite3.Connection,
    reference_locale: str,
    target_locale: str,
    rng: random.Random | None = None,
) -> TranslationModel | None:
    """Pick one untranslated entry with equal probability, or None.

    Reservoir sampling over the full untranslated sequence: the i-th
    candidate replaces the current pick with probability 1/i.
    """
    rng = rng or random.Random()
    chosen: TranslationModel | None = None
    candidates = untranslated(conn, reference_locale, target_locale)
    for seen, candidate in enumerate(candidates, start=1):
        if rng.randrange(seen) == 0:
            chosen = candidate
    return chosen


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

def search(
    conn: sqlite3.Connection,
    locale: str,
    partial_code: str,
    per_page: int = 0,
    page: int = 1,
) -> Listing:
    """Find translations of ``locale`` matching a partial code.

    A leading ``::`` keeps only namespaced entries; ``ns::`` matches
    ``ns`` inside the namespace. Each ``.``-separated segment must occur in
    the group, the item or the text.
    """
    partial = parse_partial_code(partial_code)
    clauses = ["locale = ?"]
    params: list[object] = [locale]

    if partial.any_namespace:
        clauses.append("namespace != ?")
        params.append(DEFAULT_NAMESPACE)
    elif partial.namespace:
        clauses.append(_contains("namespace"))
        params.append(_like_pattern(partial.namespace))

    for segment in partial.segments:
        clauses.append(
            f"({_contains(_GROUP)} "
            f"OR {_contains('item')} OR {_contains('text')})"
        )
        pattern = _like_pattern(segment)
        params.extend((pattern, pattern, pattern))

    sql = (
        f"SELECT {_db.select_columns()} FROM translations "
        f"WHERE {' AND '.join(clauses)} ORDER BY rowid"
    )
    return _paginate(conn, sql, params, per_page, page)


# ---------------------------------------------------------------------------
# Cross-locale equivalence
# ---------------------------------------------------------------------------

def translate_text(
    conn: sqlite3.Connection,
    text: str,
    source_locale: str,
    target_locale: str,
) -> set[str]:
    """How ``text`` (exact, in ``source_locale``) has been translated before.

    Collects every key whose ``source_locale`` text equals ``text`` and
    returns the distinct ``target_locale`` texts of those keys.
    """
    rows = conn.execute(
        "SELECT DISTINCT t.text FROM translations t "
        f"JOIN translations e ON {_SAME_KEY} "
        "WHERE e.locale = ? AND e.text = ? AND t.locale = ?",
        (source_locale, text, target_locale),
    ).fetchall()
    return {r["text"] for r in rows}
