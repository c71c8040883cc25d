import json
import logging

from headless_chrome.core.config_loader import ConfigLoader
from headless_chrome.data_models import BrowserSettings


def write_settings(tmp_path, data):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_dotted_lookup(tmp_path):
    loader = ConfigLoader(write_settings(tmp_path, {
        "browser_settings": {"headless": True, "proxy_pools": {"default": ["127.0.0.1:8070"]}},
        "logging": {"level": "DEBUG"},
    }))

    assert loader.get_setting("browser_settings.proxy_pools.default") == ["127.0.0.1:8070"]
    assert loader.get_browser_setting("headless") is True
    assert loader.get_logging_setting("level") == "DEBUG"
    assert loader.get_browser_setting("missing", "fallback") == "fallback"
    assert loader.get_setting("logging.level.deeper", 1) == 1


def test_missing_or_invalid_file_gives_empty_settings(tmp_path, caplog):
    with caplog.at_level(logging.WARNING):
        assert ConfigLoader(tmp_path / "nope.json").get_settings() == {}

    bad = tmp_path / "bad.json"
    bad.write_text("{oops", encoding="utf-8")
    assert ConfigLoader(bad).get_settings() == {}

    listed = write_settings(tmp_path, ["not", "a", "dict"])
    assert ConfigLoader(listed).get_settings() == {}
    assert "Using empty settings" in caplog.text


def test_browser_settings_are_validated(tmp_path):
    loader = ConfigLoader(write_settings(tmp_path, {
        "browser_settings": {"downloader": "huaweicloud", "revision": "884014", "window_size": "800,600"},
    }))
    settings = loader.get_browser_settings()

    assert isinstance(settings, BrowserSettings)
    assert settings.downloader == "huaweicloud"
    assert settings.revision == "884014"
    assert settings.no_sandbox is True


def test_invalid_browser_settings_fall_back_to_defaults(tmp_path, caplog):
    loader = ConfigLoader(write_settings(tmp_path, {"browser_settings": {"downloader": "ftp"}}))
    with caplog.at_level(logging.ERROR):
        settings = loader.get_browser_settings()
    assert settings == BrowserSettings()
    assert "Invalid 'browser_settings'" in caplog.text
