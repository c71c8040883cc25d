"""
Browser manager package.

Public API:
- BrowserManager: Facade to configure, create, use, and close a chrome WebDriver.
- CookieManager, configure_driver_options, init_chrome_driver: the pieces it is built from.
"""

from .cookies import CookieManager, apply_cookies, load_cookies_from_file
from .options import configure_driver_options
from .drivers import init_chrome_driver
from .service import BrowserManager, build_downloader

__all__ = [
    "BrowserManager",
    "CookieManager",
    "apply_cookies",
    "build_downloader",
    "configure_driver_options",
    "init_chrome_driver",
    "load_cookies_from_file",
]
