"""Tests for persistent configuration."""

import json

import pytest

from mbr_tui.config import DEFAULT_PAGE_SIZE, DEFAULT_URL, MbrConfig, get_api_key
from mbr_tui.errors import ConfigurationError


class TestMbrConfig:
    """Tests for MbrConfig."""

    def test_defaults_when_missing(self, config_path) -> None:
        config = MbrConfig.load()
        assert config.url == DEFAULT_URL
        assert config.page_size == DEFAULT_PAGE_SIZE
        assert not config_path.exists()

    def test_save_and_load(self, config_path) -> None:
        config = MbrConfig(url="https://bi.example.com", page_size=25)
        config.save()
        loaded = MbrConfig.load()
        assert loaded.url == "https://bi.example.com"
        assert loaded.page_size == 25

    def test_unknown_keys_ignored(self, config_path) -> None:
        config_path.write_text(json.dumps({"page_size": 10, "legacy_option": True}))
        assert MbrConfig.load().page_size == 10

    def test_invalid_json_falls_back(self, config_path) -> None:
        config_path.write_text("{not json")
        assert MbrConfig.load() == MbrConfig()

    def test_reset(self, config_path) -> None:
        config = MbrConfig(page_size=5, theme="nord")
        config.reset()
        assert config == MbrConfig()


class TestResolution:
    """Tests for URL and API key lookup."""

    def test_url_precedence(self, config_path, monkeypatch) -> None:
        config = MbrConfig(url="http://from-file:3000/")
        assert config.resolve_url() == "http://from-file:3000"
        monkeypatch.setenv("MBR_URL", "http://from-env:3000")
        assert config.resolve_url() == "http://from-env:3000"
        assert config.resolve_url("http://override/") == "http://override"

    def test_empty_api_key_is_unset(self, config_path, monkeypatch) -> None:
        assert get_api_key() is None
        monkeypatch.setenv("MBR_API_KEY", "")
        assert get_api_key() is None
        monkeypatch.setenv("MBR_API_KEY", "mb_abc")
        assert get_api_key() == "mb_abc"


class TestSetValue:
    """Tests for setting values from strings."""

    def test_coerces_types(self) -> None:
        config = MbrConfig()
        config.set_value("page_size", "50")
        config.set_value("query_timeout", "120")
        config.set_value("log_file", "none")
        assert config.page_size == 50
        assert config.query_timeout == 120.0
        assert config.log_file is None

    def test_unknown_key(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown setting"):
            MbrConfig().set_value("colour", "blue")

    def test_not_a_number(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid value"):
            MbrConfig().set_value("page_size", "many")

    @pytest.mark.parametrize(
        "key,value",
        [
            ("url", "ftp://example.com"),
            ("page_size", "0"),
            ("tick_rate_ms", "1"),
            ("max_retries", "-1"),
            ("preview_limit", "0"),
            ("theme", "neon"),
        ],
    )
    def test_validation(self, key: str, value: str) -> None:
        with pytest.raises(ConfigurationError):
            MbrConfig().set_value(key, value)
