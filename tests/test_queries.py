"""Tests for untranslated discovery, search and text equivalence."""

import random
from collections import Counter

import pytest

from translation_store import Page, TranslationStore


class TestUntranslated:

    def test_set_difference(self, store_with_data):
        store, data = store_with_data
        missing = list(store.untranslated("en", "es"))
        assert {t.id for t in missing} == {data["en_bye"].id, data["en_req"].id}

    def test_partition_of_reference_keys(self, store_with_data):
        """Untranslated plus translated keys cover every reference key."""
        store, data = store_with_data
        reference_keys = {t.key for t in store.list_by_locale("en")}
        missing = {t.key for t in store.untranslated("en", "es")}
        translated = {t.key for t in store.list_by_locale("es")} & reference_keys
        assert missing.isdisjoint(translated)
        assert len(missing) + len(translated) == len(reference_keys)

    def test_text_filter_is_case_insensitive(self, store_with_data):
        store, data = store_with_data
        missing = list(store.untranslated("en", "es", text="GOOD"))
        assert [t.id for t in missing] == [data["en_bye"].id]

    def test_text_filter_escapes_wildcards(self, store):
        store.create(locale="en", group="g", item="a", text="100% sure")
        store.create(locale="en", group="g", item="b", text="100 sure")
        missing = list(store.untranslated("en", "es", text="0%"))
        assert [t.item for t in missing] == ["a"]

    def test_unknown_target_locale(self, store_with_data):
        store, data = store_with_data
        assert len(list(store.untranslated("en", "de"))) == 4

    def test_namespace_is_part_of_key(self, store):
        store.create(locale="en", namespace="pkg", group="messages", item="greeting")
        store.create(locale="es", group="messages", item="greeting")
        missing = list(store.untranslated("en", "es"))
        assert [t.namespace for t in missing] == ["pkg"]

    def test_paginated(self, store_with_data):
        store, data = store_with_data
        page = store.untranslated("en", "es", per_page=1)
        assert isinstance(page, Page)
        assert page.total == 2
        assert len(page) == 1
        assert page.has_more
        second = store.untranslated("en", "es", per_page=1, page=page.next_page)
        assert second.next_page is None
        assert {page.items[0].id, second.items[0].id} == {
            data["en_bye"].id, data["en_req"].id,
        }


class TestRandomUntranslated:

    def test_returns_qualifying_entry(self, store_with_data):
        store, data = store_with_data
        allowed = {data["en_bye"].id, data["en_req"].id}
        for _ in range(20):
            assert store.random_untranslated("en", "es").id in allowed

    def test_none_when_all_translated(self, store_with_greeting):
        store, en, es = store_with_greeting
        assert store.random_untranslated("en", "es") is None

    def test_reaches_every_candidate(self):
        with TranslationStore(default_locale="en", rng=random.Random(1)) as store:
            for i in range(5):
                store.create(locale="en", group="g", item=f"k{i}", text=str(i))
            counts = Counter(
                store.random_untranslated("en", "es").item for _ in range(500)
            )
        assert set(counts) == {f"k{i}" for i in range(5)}
        # Roughly uniform: no candidate far from 100 draws.
        assert min(counts.values()) > 50


class TestSearch:

    def test_segments_match_group_and_item(self, store_with_greeting):
        store, en, es = store_with_greeting
        assert [t.id for t in store.search("es", "mess.greet")] == [es.id]

    def test_segment_matches_text(self, store_with_data):
        store, data = store_with_data
        found = list(store.search("en", "goodbye"))
        assert [t.id for t in found] == [data["en_bye"].id]

    def test_all_segments_must_match(self, store_with_data):
        store, data = store_with_data
        assert list(store.search("en", "messages.nothing")) == []

    def test_leading_separator_only_namespaced(self, store_with_data):
        store, data = store_with_data
        found = list(store.search("en", "::"))
        assert [t.id for t in found] == [data["en_req"].id]

    def test_namespace_substring(self, store_with_data):
        store, data = store_with_data
        found = list(store.search("en", "valid::req"))
        assert [t.id for t in found] == [data["en_req"].id]
        assert list(store.search("en", "other::req")) == []

    def test_restricted_to_locale(self, store_with_data):
        store, data = store_with_data
        found = list(store.search("es", "success"))
        assert [t.id for t in found] == [data["es_ok"].id]

    def test_empty_search_lists_locale(self, store_with_data):
        store, data = store_with_data
        assert len(list(store.search("en", ""))) == 4

    def test_paginated(self, store_with_data):
        store, data = store_with_data
        page = store.search("en", "", per_page=3, page=2)
        assert page.total == 4
        assert len(page) == 1
        assert not page.has_more

    def test_invalid_pagination(self, store):
        with pytest.raises(ValueError):
            store.search("en", "", per_page=-1)
        with pytest.raises(ValueError):
            store.search("en", "", per_page=5, page=0)


class TestTranslateText:

    def test_known_translation(self, store_with_greeting):
        store, en, es = store_with_greeting
        assert store.translate_text("Hello", "en", "es") == {"Hola"}

    def test_distinct_results_across_keys(self, store_with_greeting):
        store, en, es = store_with_greeting
        store.create(locale="en", group="home", item="title", text="Hello")
        store.create(locale="es", group="home", item="title", text="¡Hola!")
        store.create(locale="en", group="mail", item="opening", text="Hello")
        store.create(locale="es", group="mail", item="opening", text="Hola")
        assert store.translate_text("Hello", "en", "es") == {"Hola", "¡Hola!"}

    def test_exact_match_only(self, store_with_greeting):
        store, en, es = store_with_greeting
        assert store.translate_text("hello", "en", "es") == set()

    def test_no_target_translation(self, store_with_greeting):
        store, en, es = store_with_greeting
        assert store.translate_text("Hello", "en", "fr") == set()


class TestListings:

    def test_list_by_locale_lazy(self, store_with_data):
        store, data = store_with_data
        listing = store.list_by_locale("en")
        assert not isinstance(listing, (list, Page))
        assert len(list(listing)) == 4

    def test_list_by_locale_page(self, store_with_data):
        store, data = store_with_data
        page = store.list_by_locale("en", per_page=2)
        assert page.total == 4
        assert page.next_page == 2

    def test_family(self, store_with_greeting):
        store, en, es = store_with_greeting
        assert store.family("*", "messages", "greeting") == [en, es]
