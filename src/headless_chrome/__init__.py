"""
headless_chrome: download chromium and chromedriver, then drive chrome with Selenium.

    loader = ChromiumLoader(downloader=ChromiumDownloader.with_proxy("127.0.0.1", 8070))
    options = loader.download_and_load()
    session = ChromiumSession(loader.new_driver(options))
    session.block_until_quit(lambda s: s.get("https://bilibili.com"))
"""

from .data_models import BrowserSettings, ChromiumInstallation, Platform, Positioner
from .errors import HeadlessChromeError
from .core import BrowserManager, ChromiumLoader, ChromiumSession, ChromiumWindow, ConfigLoader
from .core.downloader import ChromiumDownloader, EmptyDownloader, HuaweicloudChromiumDownloader

__version__ = "0.1.0"

__all__ = [
    "BrowserManager",
    "BrowserSettings",
    "ChromiumDownloader",
    "ChromiumInstallation",
    "ChromiumLoader",
    "ChromiumSession",
    "ChromiumWindow",
    "ConfigLoader",
    "EmptyDownloader",
    "HeadlessChromeError",
    "HuaweicloudChromiumDownloader",
    "Platform",
    "Positioner",
]
