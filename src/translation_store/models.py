"""Domain model dataclasses and enums for translation-store."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

DEFAULT_NAMESPACE = "*"

_T = TypeVar("_T")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ReviewState(str, Enum):
    """Whether a translation still matches its default-locale source."""

    STABLE = "stable"
    NEEDS_REVIEW = "needs_review"

    @classmethod
    def from_flag(cls, unstable: bool) -> ReviewState:
        return cls.NEEDS_REVIEW if unstable else cls.STABLE


class EditPolicy(str, Enum):
    """Whether automated merges may overwrite a translation's text."""

    EDITABLE = "editable"
    LOCKED = "locked"

    @classmethod
    def from_flag(cls, locked: bool) -> EditPolicy:
        return cls.LOCKED if locked else cls.EDITABLE


class EditOperation(str, Enum):
    """Type of mutation recorded in the edit history."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class HistoryEntity(str, Enum):
    """What an edit-history entry is about."""

    TRANSLATION = "translation"  # one row, by rowid
    FAMILY = "family"  # every locale of one key, by code


class MergeOutcome(str, Enum):
    """What a bulk merge did with one key."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED_LOCKED = "skipped_locked"
    FAILED = "failed"


class ValidationSeverity(str, Enum):
    """Severity level for consistency findings."""

    ERROR = "ERROR"
    WARNING = "WARNING"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TranslationKey:
    """The locale-independent key of a translation family."""

    namespace: str
    group: str
    item: str

    @property
    def code(self) -> str:
        from translation_store.codec import render_code

        return render_code(self.namespace, self.group, self.item)


@dataclass(frozen=True, slots=True)
class TranslationModel:
    """A single localized text entry."""

    id: int
    locale: str
    namespace: str
    group: str
    item: str
    text: str
    review_state: ReviewState = ReviewState.STABLE
    edit_policy: EditPolicy = EditPolicy.EDITABLE

    @property
    def unstable(self) -> bool:
        return self.review_state is ReviewState.NEEDS_REVIEW

    @property
    def locked(self) -> bool:
        return self.edit_policy is EditPolicy.LOCKED

    @property
    def key(self) -> TranslationKey:
        return TranslationKey(self.namespace, self.group, self.item)

    @property
    def code(self) -> str:
        return self.key.code

    def to_attributes(self) -> dict[str, Any]:
        """Column values for validation and persistence."""
        return {
            "id": self.id,
            "locale": self.locale,
            "namespace": self.namespace,
            "group": self.group,
            "item": self.item,
            "text": self.text,
            "unstable": self.unstable,
            "locked": self.locked,
        }


@dataclass(frozen=True, slots=True)
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str


@dataclass(frozen=True)
class Page(Generic[_T]):
    """One page of a paginated listing.

    ``next_page`` is the continuation token: pass it back as ``page`` to
    fetch the following page.
    """

    items: tuple[_T, ...]
    page: int
    per_page: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.page * self.per_page < self.total

    @property
    def next_page(self) -> int | None:
        return self.page + 1 if self.has_more else None

    def __iter__(self) -> Iterator[_T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class MergeItemResult:
    """Outcome of merging one key."""

    namespace: str
    group: str
    item: str
    outcome: MergeOutcome
    translation_id: int | None = None
    error: str | None = None

    @property
    def code(self) -> str:
        return TranslationKey(self.namespace, self.group, self.item).code


@dataclass
class MergeReport:
    """Result of a bulk merge of one locale.

    Merges are not atomic: every ``created``/``updated`` result is already
    committed even when ``failed`` is not empty.
    """

    locale: str
    namespace: str
    is_default: bool
    results: list[MergeItemResult] = field(default_factory=list)

    def _with(self, outcome: MergeOutcome) -> list[MergeItemResult]:
        return [r for r in self.results if r.outcome is outcome]

    @property
    def created(self) -> list[MergeItemResult]:
        return self._with(MergeOutcome.CREATED)

    @property
    def updated(self) -> list[MergeItemResult]:
        return self._with(MergeOutcome.UPDATED)

    @property
    def skipped(self) -> list[MergeItemResult]:
        return self._with(MergeOutcome.SKIPPED_LOCKED)

    @property
    def failed(self) -> list[MergeItemResult]:
        return self._with(MergeOutcome.FAILED)

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def complete(self) -> bool:
        return not self.failed

    def outcome_of(self, code: str) -> MergeOutcome | None:
        """Outcome recorded for a rendered code, or None if not merged."""
        for result in self.results:
            if result.code == code:
                return result.outcome
        return None

    def raise_for_failures(self) -> None:
        """Raise :class:`PartialMergeFailure` if any key failed."""
        if self.failed:
            from translation_store.exceptions import PartialMergeFailure

            raise PartialMergeFailure(self)


@dataclass(frozen=True, slots=True)
class EditRecord:
    """A single edit-history entry recording one field-level change."""

    id: int
    entity_type: HistoryEntity
    entity_id: str
    field_name: str | None
    operation: EditOperation
    old_value: str | None
    new_value: str | None
    timestamp: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """A single consistency finding (error or warning)."""

    rule_id: str
    severity: str
    entity_type: str
    entity_id: str
    message: str
    details: dict[str, Any] | None
