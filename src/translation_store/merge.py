"""Bulk merge of one locale's lines into the translation table.

A merge is not atomic. Every key runs in its own transaction, so a failure
part-way leaves the earlier keys committed; the :class:`MergeReport` lists
what happened to each key.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import AbstractContextManager
from typing import Any

from translation_store import db as _db
from translation_store import history as _hist
from translation_store.codec import SEGMENT_SEPARATOR, render_code
from translation_store.exceptions import (
    MalformedCodeError,
    TranslationStoreError,
    ValidationError,
)
from translation_store.models import (
    DEFAULT_NAMESPACE,
    HistoryEntity,
    MergeItemResult,
    MergeOutcome,
    MergeReport,
)
from translation_store.propagation import flag_as_unstable
from translation_store.validator import validate_translation

logger = logging.getLogger(__name__)

TransactionFactory = Callable[[], AbstractContextManager[Any]]


def _branches(value: Any) -> list[tuple[Any, Any]] | None:
    """Child entries of a nested value, or None for a leaf."""
    if isinstance(value, Mapping):
        return list(value.items())
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return list(enumerate(value))
    return None


def flatten(
    lines: Mapping[str, Any] | Sequence[Any], prefix: str = ""
) -> Iterator[tuple[str, str]]:
    """Yield ``(dotted_key, text)`` pairs from a possibly nested mapping.

    ``{"auth": {"failed": "Nope"}}`` yields ``("auth.failed", "Nope")``.
    Lists are keyed by position, so ``{"days": ["Mon", "Tue"]}`` yields
    ``days.0`` and ``days.1``. ``None`` and empty containers become an
    empty text; other scalars are converted with ``str``.
    """
    for key, value in _branches(lines) or ():
        dotted = f"{prefix}{SEGMENT_SEPARATOR}{key}" if prefix else str(key)
        branches = _branches(value)
        if branches:
            yield from flatten(value, dotted)
        elif branches is not None or value is None:
            yield dotted, ""
        else:
            yield dotted, str(value)


def _split_key(key: str, group: str | None) -> tuple[str, str]:
    if group is not None:
        return group, key
    head, _, rest = key.partition(SEGMENT_SEPARATOR)
    if not head or not rest:
        raise MalformedCodeError(
            f"Key {key!r} has no group segment; pass group= explicitly"
        )
    return head, rest


def merge_lines(
    conn: sqlite3.Connection,
    lines: Mapping[str, Any],
    locale: str,
    *,
    transaction: TransactionFactory,
    default_locale: str,
    is_default: bool,
    group: str | None = None,
    namespace: str = DEFAULT_NAMESPACE,
) -> MergeReport:
    """Reconcile ``lines`` with the stored translations of ``locale``.

    For every flattened key: an unlocked translation gets the new text
    (and, for the default locale, its family is flagged unstable); a
    locked translation is left alone and reported as skipped; a missing
    translation is created.

    Args:
        conn: Open store connection.
        lines: Key to text mapping, nested or already dotted.
        locale: Locale the lines belong to.
        transaction: Factory for the per-key transaction context.
        default_locale: The store's default locale. It is never flagged
            unstable by a merge.
        is_default: Whether updates propagate to the rest of each family.
            Only allowed when ``locale`` is ``default_locale``.
        group: Group shared by every key. When None, each key's first
            segment is its group.
        namespace: Namespace shared by every key.

    Returns:
        MergeReport with one result per key.

    Raises:
        ValueError: If ``is_default`` is set for another locale.
    """
    if is_default and locale != default_locale:
        raise ValueError(
            f"Cannot merge {locale!r} as the default locale; "
            f"the default locale is {default_locale!r}"
        )
    namespace = namespace or DEFAULT_NAMESPACE
    report = MergeReport(locale=locale, namespace=namespace, is_default=is_default)
    start_time = time.monotonic()

    for key, text in flatten(lines):
        try:
            key_group, item = _split_key(key, group)
        except MalformedCodeError as e:
            report.results.append(MergeItemResult(
                namespace, group or "", key, MergeOutcome.FAILED, error=str(e),
            ))
            logger.warning("Merge of %s into %r failed: %s", key, locale, e)
            continue

        try:
            with transaction():
                result = _merge_one(
                    conn, locale, namespace, key_group, item, text, is_default
                )
        except (TranslationStoreError, sqlite3.Error) as e:
            result = MergeItemResult(
                namespace, key_group, item, MergeOutcome.FAILED, error=str(e),
            )
            logger.warning(
                "Merge of %s into %r failed: %s",
                render_code(namespace, key_group, item), locale, e,
            )
        report.results.append(result)

    logger.debug(
        "Merged %d key(s) into %r in %.3fs: %d created, %d updated, "
        "%d skipped, %d failed",
        report.total_count, locale, time.monotonic() - start_time,
        len(report.created), len(report.updated),
        len(report.skipped), len(report.failed),
    )
    return report


def _merge_one(
    conn: sqlite3.Connection,
    locale: str,
    namespace: str,
    group: str,
    item: str,
    text: str,
    is_default: bool,
) -> MergeItemResult:
    row = _db.get_translation_row_by_key(conn, locale, namespace, group, item)

    if row is not None and row["locked"]:
        return MergeItemResult(
            namespace, group, item, MergeOutcome.SKIPPED_LOCKED,
            translation_id=row["rowid"],
        )

    if row is not None:
        translation_id = row["rowid"]
        conn.execute(
            "UPDATE translations SET text = ? WHERE rowid = ?",
            (text, translation_id),
        )
        _hist.record_row_changes(conn, translation_id, row, {"text": text})
        if is_default:
            flag_as_unstable(conn, namespace, group, item, locale)
        return MergeItemResult(
            namespace, group, item, MergeOutcome.UPDATED,
            translation_id=translation_id,
        )

    attributes = {
        "locale": locale, "namespace": namespace, "group": group,
        "item": item, "text": text,
    }
    errors = validate_translation(conn, attributes)
    if errors:
        raise ValidationError(
            "; ".join(f"{e.field}: {e.message}" for e in errors), errors
        )
    # Creating a translation never flags its family.
    translation_id = _db.insert_translation(
        conn, locale, namespace, group, item, text
    )
    _hist.record_create(
        conn, HistoryEntity.TRANSLATION, str(translation_id), attributes
    )
    return MergeItemResult(
        namespace, group, item, MergeOutcome.CREATED,
        translation_id=translation_id,
    )
