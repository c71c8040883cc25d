import logging
import re
from functools import cached_property
from pathlib import Path
from typing import Any, List, Optional, Union

from ...data_models import Platform, Positioner, SnapshotItem
from ...errors import DownloadError
from ...utils.proxy_manager import build_proxy_url
from .base import BaseChromiumDownloader, CHROME_DOWNLOAD_PATH
from . import http

logger = logging.getLogger(__name__)

BASE_URL = "https://www.googleapis.com/download/storage/v1/b/chromium-browser-snapshots/o/"
LIST_URL = "https://www.googleapis.com/storage/v1/b/chromium-browser-snapshots/o"
LAST_CHANGE = "LAST_CHANGE"
SPACE = "%2F"
ALT_MEDIA = "?alt=media"

CHROME_ARCHIVE = re.compile(r"^chrome-[a-z]+\.zip$")
CHROMEDRIVER_ARCHIVE = re.compile(r"^chromedriver_[a-zA-Z0-9]+\.zip$")


def create_url(platform: Platform, revision: str, file_name: str = "") -> str:
    """Media URL for a file of `revision` in the snapshot bucket."""
    suffix = f"{SPACE}{file_name}" if file_name else ""
    return f"{BASE_URL}{Platform(platform).value}{SPACE}{revision}{suffix}{ALT_MEDIA}"


def list_url(positioner: Positioner) -> str:
    return (
        f"{LIST_URL}?delimiter=/&prefix={positioner.platform.value}/{positioner.revision}/"
        "&fields=items(kind,mediaLink,metadata,name,size,updated),kind,prefixes,nextPageToken"
    )


def get_last_position(platform: Optional[Platform] = None, proxy: Optional[str] = None) -> Positioner:
    """Reads the bucket's LAST_CHANGE marker for `platform`."""
    platform = platform or Platform.current()
    revision = http.fetch_text(create_url(platform, LAST_CHANGE), proxy=proxy).strip()
    logger.info(f"Latest chromium snapshot for {platform.value}: {revision}")
    return Positioner(platform=platform, revision=revision)


def parse_items(payload: Any) -> List[SnapshotItem]:
    items: List[SnapshotItem] = []
    for entry in (payload or {}).get("items", []) or []:
        name = str(entry.get("name") or "").split("/")[-1]
        items.append(SnapshotItem(media_link=entry.get("mediaLink") or "", name=name))
    return items


class ChromiumDownloader(BaseChromiumDownloader):
    """
    Downloads a chromium snapshot and its chromedriver from the public
    chromium-browser-snapshots bucket, then unpacks them.

    Example:
        downloader = ChromiumDownloader.with_proxy("127.0.0.1", 8070)
        downloader.download_chrome()
        downloader.download_chromedriver()
    """
    BASE_URL = BASE_URL
    LAST_CHANGE = LAST_CHANGE
    SPACE = SPACE
    ALT_MEDIA = ALT_MEDIA

    create_url = staticmethod(create_url)
    get_last_position = staticmethod(get_last_position)

    def __init__(
        self,
        proxy: Optional[str] = None,
        positioner: Optional[Positioner] = None,
        path: Union[str, Path] = CHROME_DOWNLOAD_PATH,
        root_dir: Optional[Union[str, Path]] = None,
        app_dir: Optional[Union[str, Path]] = None,
        driver_dir: Optional[Union[str, Path]] = None,
    ):
        if positioner is None:
            positioner = get_last_position(Platform.current(), proxy)
        super().__init__(positioner, proxy, path, root_dir, app_dir, driver_dir)

    @classmethod
    def with_proxy(cls, host: str, port: int, **kwargs) -> "ChromiumDownloader":
        return cls(proxy=build_proxy_url(host, port), **kwargs)

    @cached_property
    def items(self) -> List[SnapshotItem]:
        """Files published for this platform and revision."""
        return parse_items(http.fetch_json(list_url(self.positioner), proxy=self.proxy))

    def download_chrome(self) -> None:
        try:
            self._download_matching(CHROME_ARCHIVE, self.app_dir)
        except Exception as e:
            raise DownloadError(
                f"Unable to download chrome revision: {self.positioner.revision} in platform: {self.positioner.platform.value}"
            ) from e

    def download_chromedriver(self) -> None:
        try:
            self._download_matching(CHROMEDRIVER_ARCHIVE, self.driver_dir)
        except Exception as e:
            raise DownloadError(
                f"Unable to download chrome driver revision: {self.positioner.revision} in platform: {self.positioner.platform.value}"
            ) from e

    def _download_matching(self, pattern: "re.Pattern[str]", target_dir: Path) -> None:
        item = next((i for i in self.items if pattern.match(i.name)), None)
        if item is None:
            raise LookupError("Unable to download file for revision because no matching files found")
        if not item.media_link:
            raise LookupError("Unable to download file for revision because the download link was not obtained.")
        self._fetch_archive(item.media_link, target_dir, item.name)
