"""Parsing and rendering of translation codes (``namespace::group.item``)."""

from __future__ import annotations

from dataclasses import dataclass

from translation_store.exceptions import MalformedCodeError
from translation_store.models import DEFAULT_NAMESPACE, TranslationKey

NAMESPACE_SEPARATOR = "::"
SEGMENT_SEPARATOR = "."


def parse_code(code: str) -> TranslationKey:
    """Split a code into its namespace, group and item.

    ``"messages::validation.required"`` gives namespace ``messages``, group
    ``validation`` and item ``required``. Without a ``::`` prefix the
    namespace is ``"*"``. The item keeps any further dots
    (``"auth.messages.success"`` has item ``messages.success``).
    """
    namespace, sep, rest = code.partition(NAMESPACE_SEPARATOR)
    if not sep:
        namespace, rest = DEFAULT_NAMESPACE, code
    elif not namespace:
        namespace = DEFAULT_NAMESPACE

    group, _, item = rest.partition(SEGMENT_SEPARATOR)
    if not group:
        raise MalformedCodeError(f"Code has no group segment: {code!r}")
    if not item:
        raise MalformedCodeError(f"Code has no item segment: {code!r}")
    return TranslationKey(namespace, group, item)


def render_code(namespace: str, group: str, item: str) -> str:
    """Inverse of :func:`parse_code`."""
    body = f"{group}{SEGMENT_SEPARATOR}{item}"
    if not namespace or namespace == DEFAULT_NAMESPACE:
        return body
    return f"{namespace}{NAMESPACE_SEPARATOR}{body}"


@dataclass(frozen=True, slots=True)
class PartialCode:
    """A tolerant parse of a search string.

    ``any_namespace`` is set for a leading ``::`` (only namespaced entries
    match); ``namespace`` holds the substring typed before ``::``.
    """

    namespace: str | None
    any_namespace: bool
    segments: tuple[str, ...]


def parse_partial_code(partial: str) -> PartialCode:
    """Parse a possibly incomplete code for searching. Never raises."""
    namespace: str | None = None
    any_namespace = False
    index = partial.find(NAMESPACE_SEPARATOR)
    if index == 0:
        any_namespace = True
        partial = partial[len(NAMESPACE_SEPARATOR):]
    elif index > 0:
        namespace = partial[:index]
        partial = partial[index + len(NAMESPACE_SEPARATOR):]

    segments = tuple(s for s in partial.split(SEGMENT_SEPARATOR) if s)
    return PartialCode(namespace, any_namespace, segments)
