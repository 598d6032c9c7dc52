"""Validation engine for translation-store."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Mapping
from typing import Any

from translation_store import db as _db
from translation_store.codec import render_code
from translation_store.models import (
    DEFAULT_NAMESPACE,
    FieldError,
    ValidationResult,
    ValidationSeverity,
)

UniquePredicate = Callable[[Mapping[str, Any]], bool]

REQUIRED = "required"
UNIQUE = "unique"

TRANSLATION_RULES: dict[str, str] = {
    "locale": "required",
    "namespace": "",  # empty means the default namespace "*"
    "group": "required",  # name of the file the entry originally came from
    "item": "required|unique",
    "text": "",  # translations may be empty placeholders
}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def validate(
    attributes: Mapping[str, Any],
    rules: Mapping[str, str],
    *,
    unique: UniquePredicate | None = None,
) -> list[FieldError]:
    """Check ``attributes`` against ``rules`` and return every failure.

    A rule is ``""`` (no constraint), ``"required"``, or a ``|``-joined
    combination with ``"unique"``. Uniqueness is decided by the ``unique``
    predicate, which returns True when a conflicting record exists. It is
    only consulted for fields that passed their other checks.
    """
    errors: list[FieldError] = []
    for field, rule in rules.items():
        constraints = {c for c in rule.split("|") if c}
        value = attributes.get(field)
        if REQUIRED in constraints and _is_blank(value):
            errors.append(FieldError(field, f"The {field} field is required."))
            continue
        if UNIQUE in constraints and unique is not None and unique(attributes):
            errors.append(FieldError(field, f"The {field} has already been taken."))
    return errors


def normalize_attributes(attributes: Mapping[str, Any]) -> dict[str, Any]:
    """Fill in the default namespace and an empty text."""
    normalized = dict(attributes)
    if _is_blank(normalized.get("namespace")):
        normalized["namespace"] = DEFAULT_NAMESPACE
    if normalized.get("text") is None:
        normalized["text"] = ""
    return normalized


def validate_translation(
    conn: sqlite3.Connection,
    attributes: Mapping[str, Any],
    *,
    exclude_id: int | None = None,
    default_locale: str | None = None,
) -> list[FieldError]:
    """Validate a translation candidate against the current table.

    ``exclude_id`` is the candidate's own rowid, so that updating a row
    never conflicts with itself.
    """
    candidate = normalize_attributes(attributes)

    def _taken(attrs: Mapping[str, Any]) -> bool:
        if any(_is_blank(attrs.get(f)) for f in ("locale", "group", "item")):
            return False
        return _db.key_exists(
            conn, attrs["locale"], attrs["namespace"], attrs["group"],
            attrs["item"], exclude_id=exclude_id,
        )

    errors = validate(candidate, TRANSLATION_RULES, unique=_taken)
    if (
        default_locale is not None
        and candidate.get("locale") == default_locale
        and candidate.get("unstable")
    ):
        errors.append(FieldError(
            "unstable",
            "Translations in the default locale cannot be pending review.",
        ))
    return errors


# ---------------------------------------------------------------------------
# Store-wide consistency checks
# ---------------------------------------------------------------------------

def check_consistency(
    conn: sqlite3.Connection, default_locale: str
) -> list[ValidationResult]:
    """Run all consistency rules over the stored translations."""
    results: list[ValidationResult] = []
    results.extend(_val_trn_001(conn, default_locale))
    results.extend(_val_trn_002(conn, default_locale))
    results.extend(_val_trn_003(conn))
    return results


def _val_trn_001(
    conn: sqlite3.Connection, default_locale: str
) -> list[ValidationResult]:
    """VAL-TRN-001: default-locale translation flagged as unstable."""
    rows = conn.execute(
        'SELECT rowid, namespace, "group", item FROM translations '
        "WHERE locale = ? AND unstable = 1",
        (default_locale,),
    ).fetchall()
    return [
        ValidationResult(
            rule_id="VAL-TRN-001",
            severity=ValidationSeverity.ERROR.value,
            entity_type="translation",
            entity_id=str(r["rowid"]),
            message="Default-locale translation is marked as needing review",
            details={"code": render_code(r["namespace"], r["group"], r["item"])},
        )
        for r in rows
    ]


def _val_trn_002(
    conn: sqlite3.Connection, default_locale: str
) -> list[ValidationResult]:
    """VAL-TRN-002: translation whose family has no default-locale source."""
    rows = conn.execute(
        'SELECT t.rowid AS rowid, t.locale, t.namespace, t."group", t.item '
        "FROM translations t WHERE t.locale != ? AND NOT EXISTS ("
        "SELECT 1 FROM translations d WHERE d.locale = ? "
        'AND d.namespace = t.namespace AND d."group" = t."group" '
        "AND d.item = t.item)",
        (default_locale, default_locale),
    ).fetchall()
    return [
        ValidationResult(
            rule_id="VAL-TRN-002",
            severity=ValidationSeverity.WARNING.value,
            entity_type="translation",
            entity_id=str(r["rowid"]),
            message=f"No {default_locale!r} source for this translation",
            details={
                "code": render_code(r["namespace"], r["group"], r["item"]),
                "locale": r["locale"],
            },
        )
        for r in rows
    ]


def _val_trn_003(conn: sqlite3.Connection) -> list[ValidationResult]:
    """VAL-TRN-003: translation with empty text."""
    rows = conn.execute(
        'SELECT rowid, locale, namespace, "group", item FROM translations '
        "WHERE TRIM(text) = ''"
    ).fetchall()
    return [
        ValidationResult(
            rule_id="VAL-TRN-003",
            severity=ValidationSeverity.WARNING.value,
            entity_type="translation",
            entity_id=str(r["rowid"]),
            message="Translation text is empty",
            details={
                "code": render_code(r["namespace"], r["group"], r["item"]),
                "locale": r["locale"],
            },
        )
        for r in rows
    ]
