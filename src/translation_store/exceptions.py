"""Custom exception hierarchy for translation-store."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from translation_store.models import FieldError, MergeReport


class TranslationStoreError(Exception):
    """Base exception for all translation-store errors."""


class ValidationError(TranslationStoreError):
    """Invalid candidate record (missing field, duplicate key)."""

    def __init__(self, message: str, errors: list[FieldError] | None = None) -> None:
        super().__init__(message)
        self.errors: list[FieldError] = list(errors or [])

    def messages(self) -> dict[str, list[str]]:
        """Group the field errors by field name."""
        grouped: dict[str, list[str]] = {}
        for err in self.errors:
            grouped.setdefault(err.field, []).append(err.message)
        return grouped


class ConstraintViolation(ValidationError):
    """The storage uniqueness constraint rejected a write the pre-check allowed."""


class EntityNotFoundError(TranslationStoreError):
    """Translation doesn't exist in the database."""


class MalformedCodeError(TranslationStoreError):
    """Translation code has an empty group or item segment."""


class PartialMergeFailure(TranslationStoreError):
    """Some keys of a bulk merge failed; the others stay committed."""

    def __init__(self, report: MergeReport) -> None:
        failed = ", ".join(r.code for r in report.failed)
        super().__init__(
            f"Merge into {report.locale!r} failed for "
            f"{len(report.failed)} of {report.total_count} keys: {failed}"
        )
        self.report = report


class DatabaseError(TranslationStoreError):
    """Schema version mismatch, connection failure."""


class ConfigError(TranslationStoreError):
    """Unreadable or invalid store configuration."""
