# This file makes headless_chrome.core a Python package and exposes key classes.
# browser_manager is imported before window/session, which depend on its cookies module.

from .config_loader import ConfigLoader
from .loader import ChromiumLoader
from .browser_manager import BrowserManager
from .window import ChromiumWindow
from .session import ChromiumSession, Watcher

__all__ = [
    "BrowserManager",
    "ChromiumLoader",
    "ChromiumSession",
    "ChromiumWindow",
    "ConfigLoader",
    "Watcher",
]
