import logging
from pathlib import Path
from typing import List, Optional, Union

from ...data_models import ChromeDriverFile, ChromeDriverRelease, Platform, Positioner
from ...errors import UnsupportedPlatformError
from .base import BaseChromiumDownloader, CHROME_DOWNLOAD_PATH
from . import http

logger = logging.getLogger(__name__)

BASE_URL_CHROME = "https://mirrors.huaweicloud.com/chromium-browser-snapshots/"
BASE_URL_DRIVER = "https://mirrors.huaweicloud.com/chromedriver"

# The mirror stopped syncing chromium snapshots at this revision; drivers are still updated.
LAST_REVISION = "884014"
DEFAULT_DRIVER_VERSION = "92.0.4515.43"

_CHROME_ARCHIVES = {
    Platform.Linux: "chrome-linux.zip",
    Platform.Linux_x64: "chrome-linux.zip",
    Platform.Mac: "chrome-mac.zip",
    Platform.Mac_Arm: "chrome-mac.zip",
    Platform.Win: "chrome-win.zip",
    Platform.Win_x64: "chrome-win.zip",
}

_DRIVER_ARCHIVES = {
    Platform.Linux: "chromedriver-linux64.zip",
    Platform.Linux_x64: "chromedriver-linux64.zip",
    Platform.Mac: "chromedriver-mac-x64.zip",
    Platform.Mac_Arm: "chromedriver-mac-arm64.zip",
    Platform.Win: "chromedriver-win32.zip",
    Platform.Win_x64: "chromedriver-win64.zip",
}


def create_url(platform: Optional[Platform] = None, revision: str = "", file_name: str = "",
               base: str = BASE_URL_CHROME) -> str:
    parts = [p for p in ((platform.value if platform else ""), revision, file_name) if p]
    return base.rstrip("/") + "/" + "/".join(parts)


def chrome_archive_name(platform: Platform) -> str:
    try:
        return _CHROME_ARCHIVES[platform]
    except KeyError:
        raise UnsupportedPlatformError(f"Unsupported platform: {platform.value}") from None


def chromedriver_archive_name(platform: Platform, driver_version: str) -> str:
    try:
        name = _DRIVER_ARCHIVES[platform]
    except KeyError:
        raise UnsupportedPlatformError(f"Unsupported platform: {platform.value}") from None
    major = driver_version.split(".")[0]
    if major.isdigit() and int(major) <= 95:
        # Legacy layout, e.g. chromedriver_mac64.zip
        name = name.replace("mac-x64", "mac64").replace("-", "_")
    return name


def _platform_from_path(path: str) -> Platform:
    if "mac-arm64" in path or "mac_arm64" in path:
        return Platform.Mac_Arm
    if "mac" in path:
        return Platform.Mac
    if "win" in path:
        return Platform.Win
    if "linux" in path:
        return Platform.Linux
    raise UnsupportedPlatformError(f"Unsupported platform: {path}")


def parse_chromedriver_index(payload: dict) -> List[ChromeDriverRelease]:
    releases: List[ChromeDriverRelease] = []
    for version, entry in (payload.get("chromedriver") or {}).items():
        files = [
            ChromeDriverFile(positioner=Positioner(platform=_platform_from_path(p), revision=version), path=p)
            for p in (entry or {}).get("files", [])
        ]
        releases.append(ChromeDriverRelease(version=version, items=files))
    return releases


def get_chromedriver_versions(proxy: Optional[str] = None) -> List[ChromeDriverRelease]:
    """All chromedriver releases listed by the mirror."""
    payload = http.fetch_json(create_url(file_name=".index.json", base=BASE_URL_DRIVER), proxy=proxy)
    return parse_chromedriver_index(payload)


def get_last_chromedriver_position(proxy: Optional[str] = None) -> Positioner:
    releases = get_chromedriver_versions(proxy)
    if not releases:
        raise LookupError("The chromedriver index is empty")
    latest = max(releases, key=lambda r: r.version_key)
    return Positioner(platform=Platform.current(), revision=latest.version)


class HuaweicloudChromiumDownloader(BaseChromiumDownloader):
    """
    Downloads chromium and chromedriver from the Huawei Cloud mirror.
    The mirror's newest chromium is revision 884014; pick a matching driver
    version with `download_chromedriver(driver_version)`.
    """
    BASE_URL_CHROME = BASE_URL_CHROME
    BASE_URL_DRIVER = BASE_URL_DRIVER

    create_url = staticmethod(create_url)
    get_chromedriver_versions = staticmethod(get_chromedriver_versions)
    get_last_chromedriver_position = staticmethod(get_last_chromedriver_position)

    def __init__(
        self,
        path: Union[str, Path] = CHROME_DOWNLOAD_PATH,
        positioner: Optional[Positioner] = None,
        proxy: Optional[str] = None,
        root_dir: Optional[Union[str, Path]] = None,
        app_dir: Optional[Union[str, Path]] = None,
        driver_dir: Optional[Union[str, Path]] = None,
        driver_version: str = DEFAULT_DRIVER_VERSION,
    ):
        super().__init__(positioner or self.get_last_position(), proxy, path, root_dir, app_dir, driver_dir)
        self.driver_version = driver_version

    @staticmethod
    def get_last_position(proxy: Optional[str] = None) -> Positioner:
        return Positioner(platform=Platform.current(), revision=LAST_REVISION)

    def download_chrome(self) -> None:
        file_name = chrome_archive_name(self.positioner.platform)
        url = create_url(self.positioner.platform, self.positioner.revision, file_name)
        self._fetch_archive(url, self.app_dir, file_name)

    def download_chromedriver(self, driver_version: Optional[str] = None) -> None:
        version = driver_version or self.driver_version
        file_name = chromedriver_archive_name(self.positioner.platform, version)
        url = create_url(None, version, file_name, base=BASE_URL_DRIVER)
        self._fetch_archive(url, self.driver_dir, file_name)
