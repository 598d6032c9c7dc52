"""Tests for TranslationStore initialization and context manager."""

import os
import tempfile

import pytest

from translation_store import StoreConfig, TranslationStore


class TestInit:
    """Store construction and schema setup."""

    def test_create_new_file_database(self):
        with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
            path = f.name
        os.unlink(path)
        try:
            store = TranslationStore(path, default_locale="en")
            assert os.path.exists(path)
            row = store._conn.execute(
                "SELECT value FROM meta WHERE key='schema_version'"
            ).fetchone()
            assert row[0] == "1.0"
            store.close()
        finally:
            for suffix in ("", "-wal", "-shm"):
                if os.path.exists(path + suffix):
                    os.unlink(path + suffix)

    def test_in_memory_database(self):
        store = TranslationStore(":memory:", default_locale="en")
        row = store._conn.execute(
            "SELECT value FROM meta WHERE key='schema_version'"
        ).fetchone()
        assert row[0] == "1.0"
        store.close()

    def test_context_manager(self):
        with TranslationStore(default_locale="en") as store:
            assert store.default_locale == "en"

    def test_default_locale_required(self):
        with pytest.raises(ValueError):
            TranslationStore(default_locale="")

    def test_open_existing_database(self):
        with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
            path = f.name
        os.unlink(path)
        try:
            st1 = TranslationStore(path, default_locale="en")
            st1.create(locale="en", group="messages", item="greeting", text="Hello")
            st1.close()

            st2 = TranslationStore(path, default_locale="en")
            found = st2.find_by_code_and_locale("messages.greeting", "en")
            assert found is not None
            assert found.text == "Hello"
            st2.close()
        finally:
            for suffix in ("", "-wal", "-shm"):
                if os.path.exists(path + suffix):
                    os.unlink(path + suffix)


class TestFromConfig:

    def test_from_store_config(self):
        config = StoreConfig(default_locale="fr")
        with TranslationStore.from_config(config) as store:
            assert store.default_locale == "fr"

    def test_from_dict(self):
        with TranslationStore.from_config({"default_locale": "de"}) as store:
            assert store.default_locale == "de"

    def test_from_yaml_file(self, tmp_path):
        db_file = tmp_path / "translations.db"
        config_file = tmp_path / "store.yaml"
        config_file.write_text(
            f"database: {db_file}\ndefault_locale: en\ntimeout: 2\n"
        )
        with TranslationStore.from_config(config_file) as store:
            store.create(locale="en", group="messages", item="greeting")
        assert db_file.exists()


class TestBatch:
    """Grouping mutations into one transaction."""

    def test_batch_commits(self, store):
        with store.batch():
            store.create(locale="en", group="messages", item="greeting", text="Hello")
            store.create(locale="es", group="messages", item="greeting", text="Hola")
        assert len(store.get_by_code("messages.greeting")) == 2

    def test_batch_rolls_back_on_error(self, store):
        with pytest.raises(RuntimeError):
            with store.batch():
                store.create(locale="en", group="messages", item="greeting")
                raise RuntimeError("boom")
        assert store.get_by_code("messages.greeting") == []

    def test_nested_batch(self, store):
        with store.batch():
            store.create(locale="en", group="messages", item="greeting")
            with store.batch():
                store.create(locale="es", group="messages", item="greeting")
        assert len(store.get_by_code("messages.greeting")) == 2
