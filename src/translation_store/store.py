"""TranslationStore: main entry point for the translation-store library."""

from __future__ import annotations

import functools
import logging
import random
import sqlite3
from collections.abc import Callable, Generator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any, TypeVar

from translation_store import db as _db
from translation_store import history as _hist
from translation_store import propagation as _prop
from translation_store import queries as _q
from translation_store.codec import parse_code
from translation_store.config import StoreConfig, load_config
from translation_store.exceptions import (
    ConstraintViolation,
    EntityNotFoundError,
    ValidationError,
)
from translation_store.merge import merge_lines
from translation_store.models import (
    DEFAULT_NAMESPACE,
    EditOperation,
    EditPolicy,
    EditRecord,
    FieldError,
    HistoryEntity,
    MergeReport,
    ReviewState,
    TranslationModel,
    ValidationResult,
)
from translation_store.validator import (
    check_consistency,
    normalize_attributes,
    validate_translation,
)

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])

_WRITABLE_FIELDS = ("locale", "namespace", "group", "item", "text", "unstable", "locked")


def _modifies_db(method: _F) -> _F:
    """Decorator: wraps mutation methods in a transaction (unless in batch)."""

    @functools.wraps(method)
    def wrapper(self: TranslationStore, *args: Any, **kwargs: Any) -> Any:
        if self._in_batch:
            return method(self, *args, **kwargs)
        with self._conn:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _raise_invalid(errors: list[FieldError]) -> None:
    raise ValidationError(
        "; ".join(f"{e.field}: {e.message}" for e in errors), errors
    )


class TranslationStore:
    """Translations keyed by locale, namespace, group and item.

    Writes to ``default_locale`` entries are the source of truth: updating
    one flags the rest of its family as needing review, deleting one
    deletes the whole family.
    """

    def __init__(
        self,
        db_path: str | Path = ":memory:",
        *,
        default_locale: str,
        timeout: float = 5.0,
        rng: random.Random | None = None,
    ) -> None:
        if not default_locale:
            raise ValueError("default_locale is required")
        self.default_locale = default_locale
        self._db_path = str(db_path)
        self._conn = _db.connect(db_path, timeout=timeout)
        _db.check_schema_version(self._conn)
        _db.init_db(self._conn)
        self._rng = rng or random.Random()
        self._in_batch = False
        self._batch_depth = 0

    @classmethod
    def from_config(
        cls, config: StoreConfig | str | Path | dict[str, Any]
    ) -> TranslationStore:
        """Build a store from a :class:`StoreConfig` or YAML source."""
        if not isinstance(config, StoreConfig):
            config = load_config(config)
        return cls(
            config.database,
            default_locale=config.default_locale,
            timeout=config.timeout,
        )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> TranslationStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Group multiple mutations into a single transaction."""
        self._batch_depth += 1
        if self._batch_depth == 1:
            self._in_batch = True
            self._conn.execute("BEGIN")
        try:
            yield
        except BaseException:
            if self._batch_depth == 1:
                self._conn.rollback()
                self._in_batch = False
            self._batch_depth -= 1
            raise
        else:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._conn.commit()
                self._in_batch = False

    @contextmanager
    def _key_transaction(self) -> Generator[None, None, None]:
        """One merge key: its own transaction, or a savepoint inside a batch."""
        if not self._in_batch:
            with self._conn:
                yield
            return
        self._conn.execute("SAVEPOINT merge_key")
        try:
            yield
        except BaseException:
            self._conn.execute("ROLLBACK TO merge_key")
            self._conn.execute("RELEASE merge_key")
            raise
        else:
            self._conn.execute("RELEASE merge_key")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @_modifies_db
    def create(
        self,
        *,
        locale: str,
        group: str,
        item: str,
        text: str = "",
        namespace: str = DEFAULT_NAMESPACE,
        review_state: ReviewState = ReviewState.STABLE,
        edit_policy: EditPolicy = EditPolicy.EDITABLE,
    ) -> TranslationModel:
        attrs = normalize_attributes({
            "locale": locale, "namespace": namespace, "group": group,
            "item": item, "text": text,
            "unstable": review_state is ReviewState.NEEDS_REVIEW,
            "locked": edit_policy is EditPolicy.LOCKED,
        })
        errors = validate_translation(
            self._conn, attrs, default_locale=self.default_locale
        )
        if errors:
            _raise_invalid(errors)

        try:
            translation_id = _db.insert_translation(
                self._conn, attrs["locale"], attrs["namespace"], attrs["group"],
                attrs["item"], attrs["text"],
                unstable=attrs["unstable"], locked=attrs["locked"],
            )
        except sqlite3.IntegrityError as e:
            raise ConstraintViolation(
                f"Translation already exists: {attrs['locale']} "
                f"{attrs['namespace']}::{attrs['group']}.{attrs['item']}",
                [FieldError("item", "The item has already been taken.")],
            ) from e

        _hist.record_create(
            self._conn, HistoryEntity.TRANSLATION, str(translation_id), attrs
        )
        return self.find(translation_id)

    @_modifies_db
    def update(self, translation: TranslationModel) -> TranslationModel:
        """Replace every field of the stored row ``translation.id``.

        Updating a default-locale translation flags the other locales of
        its key as unstable, even if the text did not change.
        """
        return self._write(translation, lock=False)

    @_modifies_db
    def update_and_lock(self, translation: TranslationModel) -> TranslationModel:
        """Like :meth:`update`, then lock against overwrite by merges."""
        return self._write(translation, lock=True)

    def _write(self, translation: TranslationModel, *, lock: bool) -> TranslationModel:
        row = _db.get_translation_row(self._conn, translation.id)
        if row is None:
            raise EntityNotFoundError(f"Translation not found: {translation.id!r}")

        attrs = normalize_attributes(translation.to_attributes())
        if lock:
            attrs["locked"] = True
        errors = validate_translation(
            self._conn, attrs,
            exclude_id=translation.id, default_locale=self.default_locale,
        )
        if errors:
            _raise_invalid(errors)

        new_values = {f: attrs[f] for f in _WRITABLE_FIELDS}
        try:
            self._conn.execute(
                "UPDATE translations SET locale = ?, namespace = ?, "
                '"group" = ?, item = ?, text = ?, unstable = ?, locked = ? '
                "WHERE rowid = ?",
                (
                    attrs["locale"], attrs["namespace"], attrs["group"],
                    attrs["item"], attrs["text"], int(attrs["unstable"]),
                    int(attrs["locked"]), translation.id,
                ),
            )
        except sqlite3.IntegrityError as e:
            raise ConstraintViolation(
                f"Translation already exists for key of {translation.id!r}",
                [FieldError("item", "The item has already been taken.")],
            ) from e

        _hist.record_row_changes(self._conn, translation.id, row, new_values)
        if attrs["locale"] == self.default_locale:
            _prop.flag_as_unstable(
                self._conn, attrs["namespace"], attrs["group"], attrs["item"],
                self.default_locale,
            )
        return self.find(translation.id)

    @_modifies_db
    def delete(self, translation_id: int) -> bool:
        """Delete a translation; a default-locale one takes its family along.

        Returns False if the id does not resolve.
        """
        row = _db.get_translation_row(self._conn, translation_id)
        if row is None:
            return False

        if row["locale"] == self.default_locale:
            count = _prop.delete_family(
                self._conn, row["namespace"], row["group"], row["item"]
            )
            logger.info(
                "Deleted default-locale translation %d and %d sibling(s)",
                translation_id, count - 1,
            )
        else:
            self._conn.execute(
                "DELETE FROM translations WHERE rowid = ?", (translation_id,)
            )
        _hist.record_delete(
            self._conn, HistoryEntity.TRANSLATION, str(translation_id),
            {"locale": row["locale"], "text": row["text"]},
        )
        return True

    @_modifies_db
    def delete_by_code(self, code: str) -> int:
        """Delete every locale of the key ``code``. Returns rows removed."""
        key = parse_code(code)
        return _prop.delete_family(self._conn, key.namespace, key.group, key.item)

    @_modifies_db
    def flag_as_reviewed(self, translation_id: int) -> bool:
        """Mark a translation as reviewed. False if the id does not resolve."""
        return _prop.flag_as_reviewed(self._conn, translation_id)

    def merge(
        self,
        locale: str,
        lines: Mapping[str, Any],
        *,
        group: str | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        is_default: bool | None = None,
    ) -> MergeReport:
        """Load one locale's lines, keeping locked translations intact.

        Not atomic: each key commits on its own and failures are listed in
        the returned report (see :meth:`MergeReport.raise_for_failures`).
        ``is_default`` defaults to ``locale == default_locale``. Passing
        False for the default locale loads text without flagging families;
        passing True for any other locale raises ValueError.
        """
        if is_default is None:
            is_default = locale == self.default_locale
        return merge_lines(
            self._conn, lines, locale,
            transaction=self._key_transaction,
            default_locale=self.default_locale,
            is_default=is_default,
            group=group,
            namespace=namespace,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find(self, translation_id: int) -> TranslationModel:
        row = _db.get_translation_row(self._conn, translation_id)
        if row is None:
            raise EntityNotFoundError(f"Translation not found: {translation_id!r}")
        return _q.row_to_translation(row)

    def find_by_key_and_locale(
        self, namespace: str, group: str, item: str, locale: str
    ) -> TranslationModel | None:
        row = _db.get_translation_row_by_key(
            self._conn, locale, namespace or DEFAULT_NAMESPACE, group, item
        )
        return _q.row_to_translation(row) if row is not None else None

    def find_by_code_and_locale(
        self, code: str, locale: str
    ) -> TranslationModel | None:
        key = parse_code(code)
        return self.find_by_key_and_locale(key.namespace, key.group, key.item, locale)

    def get_by_code(self, code: str) -> list[TranslationModel]:
        """Every locale's translation of the key ``code``."""
        key = parse_code(code)
        return _q.family(self._conn, key.namespace, key.group, key.item)

    def family(self, namespace: str, group: str, item: str) -> list[TranslationModel]:
        return _q.family(self._conn, namespace, group, item)

    def list_by_locale(
        self, locale: str, per_page: int = 0, page: int = 1
    ) -> _q.Listing:
        return _q.list_by_locale(self._conn, locale, per_page, page)

    def under_review(
        self, locale: str, per_page: int = 0, page: int = 1
    ) -> _q.Listing:
        return _q.under_review(self._conn, locale, per_page, page)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def untranslated(
        self,
        reference_locale: str,
        target_locale: str,
        text: str | None = None,
        per_page: int = 0,
        page: int = 1,
    ) -> _q.Listing:
        return _q.untranslated(
            self._conn, reference_locale, target_locale, text, per_page, page
        )

    def random_untranslated(
        self, reference_locale: str, target_locale: str
    ) -> TranslationModel | None:
        return _q.random_untranslated(
            self._conn, reference_locale, target_locale, self._rng
        )

    def search(
        self, locale: str, partial_code: str, per_page: int = 0, page: int = 1
    ) -> _q.Listing:
        return _q.search(self._conn, locale, partial_code, per_page, page)

    def translate_text(
        self, text: str, source_locale: str, target_locale: str
    ) -> set[str]:
        return _q.translate_text(self._conn, text, source_locale, target_locale)

    # ------------------------------------------------------------------
    # History & consistency
    # ------------------------------------------------------------------

    def get_history(
        self,
        *,
        entity_type: HistoryEntity | str | None = None,
        entity_id: str | None = None,
        since: str | None = None,
        operation: EditOperation | str | None = None,
    ) -> list[EditRecord]:
        return _hist.query_history(
            self._conn, entity_type=entity_type, entity_id=entity_id,
            since=since, operation=operation,
        )

    def get_changes_since(self, timestamp: str) -> list[EditRecord]:
        return _hist.query_history(self._conn, since=timestamp)

    def check_consistency(self) -> list[ValidationResult]:
        """Report default-locale rows under review, orphans and empty texts."""
        return check_consistency(self._conn, self.default_locale)
