"""Tests for YAML store configuration."""

from pathlib import Path

import pytest

from translation_store import ConfigError, StoreConfig, load_config


class TestLoadConfig:

    def test_load_from_file(self, tmp_path):
        config_file = tmp_path / "store.yaml"
        config_file.write_text(
            "database: translations.db\ndefault_locale: en\ntimeout: 10\n"
        )
        config = load_config(config_file)
        assert config == StoreConfig(
            default_locale="en", database="translations.db", timeout=10.0
        )

    def test_load_from_string(self):
        config = load_config("default_locale: es\n")
        assert config.default_locale == "es"
        assert config.database == ":memory:"
        assert config.timeout == 5.0

    def test_load_from_dict(self):
        config = load_config({"default_locale": "fr", "timeout": 0.5})
        assert config.timeout == 0.5

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_config(Path("/nonexistent/store.yaml"))


class TestConfigErrors:

    def test_invalid_yaml(self):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config("default_locale: [en\n")

    def test_empty(self):
        with pytest.raises(ConfigError):
            load_config("# nothing here\n")

    def test_root_not_mapping(self):
        with pytest.raises(ConfigError):
            load_config("- en\n- es\n")

    def test_missing_default_locale(self):
        with pytest.raises(ConfigError, match="default_locale"):
            load_config({"database": "x.db"})

    def test_default_locale_not_string(self):
        with pytest.raises(ConfigError):
            load_config({"default_locale": 5})

    @pytest.mark.parametrize("timeout", ["soon", True, -1])
    def test_bad_timeout(self, timeout):
        with pytest.raises(ConfigError):
            load_config({"default_locale": "en", "timeout": timeout})
