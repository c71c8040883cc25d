# This file makes headless_chrome.utils a Python package and exposes key utilities.

from .archive import unzip
from .logger import setup_logger
from .progress import Progress
from .proxy_manager import ProxyManager

__all__ = [
    "unzip",
    "setup_logger",
    "Progress",
    "ProxyManager",
]
