import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from ...data_models import Positioner
from ...utils.archive import unzip
from .http import download_file

logger = logging.getLogger(__name__)

CHROME_DOWNLOAD_PATH = "./chrome"


class BaseChromiumDownloader(ABC):
    """
    Downloads one chrome build and its chromedriver into
    `<path>/<revision>/app` and `<path>/<revision>/driver`.
    """

    def __init__(
        self,
        positioner: Positioner,
        proxy: Optional[str] = None,
        path: Union[str, Path] = CHROME_DOWNLOAD_PATH,
        root_dir: Optional[Union[str, Path]] = None,
        app_dir: Optional[Union[str, Path]] = None,
        driver_dir: Optional[Union[str, Path]] = None,
    ):
        self.positioner = positioner
        self.proxy = proxy
        self.path = str(path)
        self.root_dir = Path(root_dir) if root_dir else Path(self.path) / positioner.revision
        self.app_dir = Path(app_dir) if app_dir else self.root_dir / "app"
        self.driver_dir = Path(driver_dir) if driver_dir else self.root_dir / "driver"
        self.show_progress = True
        # Chrome and chromedriver may download concurrently, only the first one draws a bar
        self._active_downloads = 0
        self._downloads_lock = threading.Lock()

        for d in (self.root_dir, self.app_dir, self.driver_dir):
            d.mkdir(parents=True, exist_ok=True)

    @abstractmethod
    def download_chrome(self) -> None:
        ...

    @abstractmethod
    def download_chromedriver(self) -> None:
        ...

    def _fetch_archive(self, url: str, target_dir: Path, file_name: str) -> None:
        zip_path = target_dir / file_name
        with self._downloads_lock:
            self._active_downloads += 1
            show_progress = self.show_progress and self._active_downloads == 1
        try:
            download_file(url, zip_path, proxy=self.proxy, show_progress=show_progress)
        finally:
            with self._downloads_lock:
                self._active_downloads -= 1
        try:
            unzip(zip_path)
        finally:
            zip_path.unlink(missing_ok=True)
        logger.info(f"Extracted {file_name} into {target_dir}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.positioner}, path='{self.path}', proxy={self.proxy!r})"
