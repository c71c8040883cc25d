from pathlib import Path
from typing import Optional, Union

from ...data_models import Platform, Positioner
from .base import BaseChromiumDownloader, CHROME_DOWNLOAD_PATH


class EmptyDownloader(BaseChromiumDownloader):
    """Never downloads. Use it when chrome and chromedriver must already be on disk."""

    def __init__(self, path: Union[str, Path] = CHROME_DOWNLOAD_PATH, proxy: Optional[str] = None):
        super().__init__(Positioner(platform=Platform.current(), revision="null"), proxy, path)

    def download_chrome(self) -> None:
        raise FileNotFoundError("Not found chrome")

    def download_chromedriver(self) -> None:
        raise FileNotFoundError("Not found chrome driver")
