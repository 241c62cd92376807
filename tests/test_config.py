import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from htmlpress import config
from htmlpress.config import CacheKeyPolicy, MissingToolPolicy, PressOptions
from htmlpress.errors import ConfigurationError


def _clear_env(monkeypatch):
    for name in (
        "HTMLPRESS_CACHE_DIR",
        "HTMLPRESS_CACHE_KEY_POLICY",
        "HTMLPRESS_JS_MINIFIER",
        "HTMLPRESS_CSS_MINIFIER",
        "HTMLPRESS_CSS_BINARY",
        "HTMLPRESS_CSS_TARGETS",
        "HTMLPRESS_CSS_MISSING_POLICY",
        "HTMLPRESS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    options = PressOptions()
    assert options.cache_dir is None
    assert options.cache_key_policy is CacheKeyPolicy.CONTENT
    assert options.css_missing_policy is MissingToolPolicy.RAISE
    assert options.css_targets == ">= 0.25%"
    assert options.indent_unit == "  "


def test_legacy_option_name_is_migrated_with_warning():
    with pytest.warns(DeprecationWarning, match="dump_empty_values deprecated use drop_empty_values"):
        options = PressOptions.from_mapping({"dump_empty_values": True})
    assert options.drop_empty_values is True


def test_legacy_cache_key_maps_to_cache_dir(tmp_path):
    with pytest.warns(DeprecationWarning, match="cache deprecated use cache_dir"):
        options = PressOptions.from_mapping({"cache": str(tmp_path)})
    assert options.cache_dir == tmp_path


def test_falsy_logger_means_no_logger():
    assert PressOptions(logger=False).logger is False
    with pytest.raises(ConfigurationError):
        PressOptions(logger="not a logger")


def test_unknown_options_are_ignored():
    assert PressOptions.from_mapping({"remove_everything": True}) == PressOptions()


def test_overrides_win_over_mapping():
    options = PressOptions.from_mapping({"indent_unit": "\t"}, indent_unit="    ")
    assert options.indent_unit == "    "


def test_policies_are_coerced_and_validated(tmp_path):
    options = PressOptions(cache_dir=str(tmp_path), cache_key_policy="content+options")
    assert options.cache_dir == tmp_path
    assert options.cache_key_policy is CacheKeyPolicy.CONTENT_AND_OPTIONS

    with pytest.raises(ConfigurationError):
        PressOptions(css_missing_policy="ignore")


def test_cache_dir_expands_user():
    options = PressOptions(cache_dir="~/htmlpress-cache")
    assert options.cache_dir == Path("~/htmlpress-cache").expanduser()


def test_settings_from_environment(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HTMLPRESS_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("HTMLPRESS_CACHE_KEY_POLICY", "content+options")
    monkeypatch.setenv("HTMLPRESS_JS_MINIFIER", " Passthrough ")
    monkeypatch.setenv("HTMLPRESS_CSS_MISSING_POLICY", "passthrough")
    monkeypatch.setenv("HTMLPRESS_LOG_LEVEL", "debug")

    app_config = config.load_settings()

    assert app_config.cache_dir == tmp_path / "cache"
    assert app_config.options.cache_key_policy is CacheKeyPolicy.CONTENT_AND_OPTIONS
    assert app_config.options.js_minifier == "passthrough"
    assert app_config.options.css_missing_policy is MissingToolPolicy.PASSTHROUGH
    assert app_config.logging.level == logging.DEBUG


def test_settings_defaults_and_blank_paths(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HTMLPRESS_CACHE_DIR", "  ")

    app_config = config.load_settings()

    assert app_config.cache_dir is None
    assert app_config.options.js_minifier == "auto"
    assert app_config.logging.level == logging.INFO


def test_settings_reject_unknown_log_level(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HTMLPRESS_LOG_LEVEL", "chatty")

    with pytest.raises(ValidationError):
        config.Settings()
