"""YAML configuration for a translation store.

Example::

    database: translations.db
    default_locale: en
    timeout: 10
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from translation_store.exceptions import ConfigError

DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class StoreConfig:
    """Settings a :class:`~translation_store.TranslationStore` is built from."""

    default_locale: str
    database: str = ":memory:"
    timeout: float = DEFAULT_TIMEOUT


def load_config(source: Union[str, Path, Dict[str, Any]]) -> StoreConfig:
    """Load store settings from a YAML file, a YAML string or a dictionary.

    Raises:
        ConfigError: If the YAML is invalid or a setting is missing/wrong
        FileNotFoundError: If the file does not exist
    """
    if isinstance(source, dict):
        data = source
    elif isinstance(source, Path) or (isinstance(source, str) and _is_file_path(source)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = _safe_load(f.read())
    else:
        data = _safe_load(source)

    return _parse_config(data)


def _is_file_path(s: str) -> bool:
    """Check if a string looks like a file path."""
    if "\n" in s:
        return False
    if "/" in s or "\\" in s:
        return True
    return s.endswith((".yaml", ".yml"))


def _safe_load(text: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" (line {mark.line + 1})" if mark else ""
        raise ConfigError(f"Invalid YAML{where}: {e}") from e

    if data is None:
        raise ConfigError("Empty configuration")
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping (dictionary)")
    return data


def _parse_config(data: Dict[str, Any]) -> StoreConfig:
    default_locale = data.get("default_locale")
    if not default_locale:
        raise ConfigError("Missing required field: 'default_locale'")
    if not isinstance(default_locale, str):
        raise ConfigError("Field 'default_locale' must be a string")

    database = data.get("database", ":memory:")
    if not isinstance(database, str):
        raise ConfigError("Field 'database' must be a string")

    timeout = data.get("timeout", DEFAULT_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ConfigError("Field 'timeout' must be a number")
    if timeout < 0:
        raise ConfigError("Field 'timeout' cannot be negative")

    return StoreConfig(
        default_locale=default_locale,
        database=database,
        timeout=float(timeout),
    )
