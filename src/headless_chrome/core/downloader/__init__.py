from .base import BaseChromiumDownloader, CHROME_DOWNLOAD_PATH
from .empty import EmptyDownloader
from .huaweicloud import HuaweicloudChromiumDownloader
from .snapshots import ChromiumDownloader

__all__ = [
    "BaseChromiumDownloader",
    "CHROME_DOWNLOAD_PATH",
    "ChromiumDownloader",
    "EmptyDownloader",
    "HuaweicloudChromiumDownloader",
]
