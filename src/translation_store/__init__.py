"""Localized text entries with default-locale consistency rules."""

__version__ = "0.1.0"

from .store import TranslationStore as TranslationStore

from .codec import (
    parse_code as parse_code,
    render_code as render_code,
    parse_partial_code as parse_partial_code,
    PartialCode as PartialCode,
)

from .config import (
    StoreConfig as StoreConfig,
    load_config as load_config,
)

from .exceptions import (
    TranslationStoreError as TranslationStoreError,
    ValidationError as ValidationError,
    ConstraintViolation as ConstraintViolation,
    EntityNotFoundError as EntityNotFoundError,
    MalformedCodeError as MalformedCodeError,
    PartialMergeFailure as PartialMergeFailure,
    DatabaseError as DatabaseError,
    ConfigError as ConfigError,
)

from .models import (
    DEFAULT_NAMESPACE as DEFAULT_NAMESPACE,
    ReviewState as ReviewState,
    EditPolicy as EditPolicy,
    EditOperation as EditOperation,
    HistoryEntity as HistoryEntity,
    MergeOutcome as MergeOutcome,
    ValidationSeverity as ValidationSeverity,
    TranslationKey as TranslationKey,
    TranslationModel as TranslationModel,
    FieldError as FieldError,
    Page as Page,
    MergeItemResult as MergeItemResult,
    MergeReport as MergeReport,
    EditRecord as EditRecord,
    ValidationResult as ValidationResult,
)

from .merge import flatten as flatten
from .validator import validate as validate

__all__ = [
    # Store
    "TranslationStore",
    # Codec
    "parse_code",
    "render_code",
    "parse_partial_code",
    "PartialCode",
    # Configuration
    "StoreConfig",
    "load_config",
    # Exceptions
    "TranslationStoreError",
    "ValidationError",
    "ConstraintViolation",
    "EntityNotFoundError",
    "MalformedCodeError",
    "PartialMergeFailure",
    "DatabaseError",
    "ConfigError",
    # Enums
    "ReviewState",
    "EditPolicy",
    "EditOperation",
    "HistoryEntity",
    "MergeOutcome",
    "ValidationSeverity",
    # Data classes
    "TranslationKey",
    "TranslationModel",
    "FieldError",
    "Page",
    "MergeItemResult",
    "MergeReport",
    "EditRecord",
    "ValidationResult",
    # Constants
    "DEFAULT_NAMESPACE",
    # Functions
    "flatten",
    "validate",
]
