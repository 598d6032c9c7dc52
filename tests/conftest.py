"""Shared test fixtures for translation-store."""

import random

import pytest

from translation_store import TranslationStore


@pytest.fixture
def store():
    """Create an in-memory store with ``en`` as the default locale."""
    with TranslationStore(":memory:", default_locale="en", rng=random.Random(7)) as st:
        yield st


@pytest.fixture
def store_with_greeting(store):
    """Store with ``messages.greeting`` in English and Spanish."""
    en = store.create(locale="en", group="messages", item="greeting", text="Hello")
    es = store.create(locale="es", group="messages", item="greeting", text="Hola")
    return store, en, es


@pytest.fixture
def store_with_data(store):
    """Store with a small English source set, partially translated."""
    en_hello = store.create(locale="en", group="messages", item="greeting", text="Hello")
    en_bye = store.create(locale="en", group="messages", item="farewell", text="Goodbye")
    en_req = store.create(
        locale="en", namespace="validation", group="rules",
        item="required", text="This field is required",
    )
    en_ok = store.create(
        locale="en", group="auth", item="messages.success", text="Welcome back",
    )
    es_hello = store.create(locale="es", group="messages", item="greeting", text="Hola")
    es_ok = store.create(
        locale="es", group="auth", item="messages.success", text="Bienvenido",
    )
    return store, {
        "en_hello": en_hello,
        "en_bye": en_bye,
        "en_req": en_req,
        "en_ok": en_ok,
        "es_hello": es_hello,
        "es_ok": es_ok,
    }
