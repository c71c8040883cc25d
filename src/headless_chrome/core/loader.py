import logging
import os
import re
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from functools import cached_property
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.remote.webdriver import WebDriver

from ..data_models import ChromiumInstallation, Platform
from ..errors import ChromeDriverNotFoundError, ChromeNotFoundError, CommandError, VersionParseError
from ..utils.archive import ensure_executable
from .downloader import BaseChromiumDownloader, CHROME_DOWNLOAD_PATH, ChromiumDownloader
from .downloader.snapshots import get_last_position

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

VERSION_PATTERN = re.compile(r"\d+(\.\d+){3}")
COMMAND_TIMEOUT_SECONDS = 10

LINUX_CHROME_NAMES = ("google-chrome", "chromium", "chrome")
LINUX_DEFAULT_CHROME = (
    "/usr/bin/google-chrome",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/local/bin/chromium",
)
MAC_DEFAULT_CHROME = "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"
WIN_DEFAULT_CHROME = r"C:\Program Files\Google\Chrome\Application\chrome.exe"


def _family(platform: Optional[Platform] = None) -> str:
    name = (platform or Platform.current()).value
    if name.startswith("Linux"):
        return "linux"
    if name.startswith("Mac"):
        return "mac"
    if name.startswith("Win"):
        return "win"
    return "other"


def _walk_files(path: PathLike) -> Iterator[Path]:
    """Files under `path` in a stable, top-down order. A missing directory yields nothing."""
    root = Path(path)
    if not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _first(candidates: Iterator[Path]) -> Optional[Path]:
    return next(candidates, None)


def find_chrome(path: PathLike = CHROME_DOWNLOAD_PATH, platform: Optional[Platform] = None) -> str:
    """Locates the chrome executable under `path`, falling back to the system install."""
    family = _family(platform)
    files = _walk_files(path)

    if family == "linux":
        found = _first(
            f for f in files
            if f.name in LINUX_CHROME_NAMES and "chromedriver" not in f.name.lower()
        )
        if found:
            ensure_executable(found)
        else:
            found = next((Path(p) for p in LINUX_DEFAULT_CHROME if Path(p).exists()), None)
        if not found:
            raise ChromeNotFoundError(f"Chrome executable not found in {path} or default locations")
        return str(found)

    if family == "mac":
        executables = [f for f in files if _is_executable(f) and "chromedriver" not in f.name.lower()]
        # Bundle binaries come before helpers like chrome_crashpad_handler
        found = next((f for f in executables if f.name in ("Google Chrome", "Chromium")), None)
        found = found or next((f for f in executables if "chrome" in f.name.lower()), None)
        if not found and Path(MAC_DEFAULT_CHROME).exists():
            found = Path(MAC_DEFAULT_CHROME)
        if not found:
            raise ChromeNotFoundError(f"Chrome executable not found in {path} or default location")
        return str(found)

    if family == "win":
        found = _first(
            f for f in files
            if f.suffix.lower() == ".exe" and "chrome" in f.name.lower() and "chromedriver" not in f.name.lower()
        )
        found = found or Path(WIN_DEFAULT_CHROME)
        if not found.exists():
            raise ChromeNotFoundError(f"Chrome executable not found in {path}")
        return str(found)

    found = _first(f for f in files if _is_executable(f) and "chrome" in f.name.lower())
    if not found:
        raise ChromeNotFoundError(f"Chrome executable not found in {path}")
    return str(found)


def find_chromedriver(path: PathLike = CHROME_DOWNLOAD_PATH, platform: Optional[Platform] = None) -> str:
    """Locates the chromedriver executable under `path`."""
    family = _family(platform)
    files = _walk_files(path)

    if family == "linux":
        found = _first(f for f in files if f.name == "chromedriver")
        if found:
            ensure_executable(found)
    elif family == "win":
        found = _first(f for f in files if f.suffix.lower() == ".exe" and "chromedriver" in f.name.lower())
    else:
        found = _first(f for f in files if f.name == "chromedriver" and _is_executable(f))

    if not found:
        raise ChromeDriverNotFoundError(f"chromedriver not found in {path}")
    return str(found)


def _execute_command(command: List[str]) -> str:
    logger.debug(f"Running: {' '.join(command)}")
    try:
        result = subprocess.run(command, capture_output=True, text=True, timeout=COMMAND_TIMEOUT_SECONDS)
    except subprocess.TimeoutExpired as e:
        raise CommandError(f"Command timed out: {' '.join(command)}", command=command) from e
    except OSError as e:
        raise CommandError(f"Error executing command: {' '.join(command)}", command=command) from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise CommandError(f"Command failed ({result.returncode}): {stderr}", command=command, stderr=stderr)
    return (result.stdout or "").strip()


def parse_version(output: str, what: str = "Chrome") -> str:
    for token in output.split():
        if VERSION_PATTERN.fullmatch(token):
            return token
    raise VersionParseError(f"Failed to parse {what} version from: {output}")


def get_chrome_version(chrome_path: PathLike = CHROME_DOWNLOAD_PATH) -> str:
    executable = str(chrome_path) if Path(chrome_path).is_file() else find_chrome()
    if _family() == "win":
        command = ["powershell", "-command", f"&{{(Get-Item '{executable}').VersionInfo.ProductVersion}}"]
    else:
        command = [executable, "--version"]
    return parse_version(_execute_command(command), "Chrome")


def get_chromedriver_version(chromedriver_path: PathLike = "./chromedriver") -> str:
    executable = str(chromedriver_path) if Path(chromedriver_path).is_file() else find_chromedriver()
    return parse_version(_execute_command([executable, "--version"]), "ChromeDriver")


def _is_within(found: str, path: PathLike) -> bool:
    target = Path(path).resolve()
    candidate = Path(found).resolve()
    return candidate == target or target in candidate.parents


def _resolve_or_download(
    finder: Callable[[PathLike], str],
    download: Callable[[], None],
    path: PathLike,
    path_matching: bool,
    what: str,
) -> str:
    try:
        found = finder(path)
        if path_matching and not _is_within(found, path):
            raise LookupError(f"{found} is not inside {path}")
        return found
    except (FileNotFoundError, LookupError) as e:
        logger.info(f"No usable {what} ({e}). Downloading it.")
    download()
    return finder(path)


def load(path: PathLike = CHROME_DOWNLOAD_PATH) -> ChromiumInstallation:
    """Finds chrome and chromedriver under `path`. Never downloads."""
    return ChromiumInstallation(chrome_path=find_chrome(path), chromedriver_path=find_chromedriver(path))


def download_and_load(
    proxy: Optional[str] = None,
    path: PathLike = CHROME_DOWNLOAD_PATH,
    platform: Optional[Platform] = None,
    downloader: Optional[BaseChromiumDownloader] = None,
    path_matching: bool = False,
) -> ChromiumInstallation:
    """
    Finds chrome and chromedriver under `path` and downloads whichever is missing.
    Both lookups run concurrently. With `path_matching`, binaries found outside
    `path` (e.g. a system chrome) are treated as missing.
    """
    lock = threading.Lock()
    resolved: List[BaseChromiumDownloader] = [downloader] if downloader else []

    def get_downloader() -> BaseChromiumDownloader:
        with lock:
            if not resolved:
                position = get_last_position(platform or Platform.current(), proxy)
                resolved.append(ChromiumDownloader(proxy, position, path))
            return resolved[0]

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="chromium-loader") as pool:
        chrome = pool.submit(
            _resolve_or_download, find_chrome, lambda: get_downloader().download_chrome(),
            path, path_matching, "chrome",
        )
        driver = pool.submit(
            _resolve_or_download, find_chromedriver, lambda: get_downloader().download_chromedriver(),
            path, path_matching, "chromedriver",
        )
        installation = ChromiumInstallation(chrome_path=chrome.result(), chromedriver_path=driver.result())

    logger.info(f"Using chrome at {installation.chrome_path} and chromedriver at {installation.chromedriver_path}")
    return installation


def load_options(installation: ChromiumInstallation, options: Optional[ChromeOptions] = None) -> ChromeOptions:
    options = options or ChromeOptions()
    options.binary_location = installation.chrome_path
    return options


class ChromiumLoader:
    """
    Finds (and optionally downloads) chrome and chromedriver, then hands out
    ChromeOptions pointing at that chrome.

    A supplied downloader overrides `scan_path` and the platform.
    """

    def __init__(
        self,
        scan_path: PathLike = CHROME_DOWNLOAD_PATH,
        downloader: Optional[BaseChromiumDownloader] = None,
        proxy: Optional[str] = None,
    ):
        self._downloader = downloader
        self.scan_path = str(downloader.path if downloader else scan_path)
        self.platform: Platform = downloader.positioner.platform if downloader else Platform.current()
        self.proxy = proxy if proxy is not None else (downloader.proxy if downloader else None)

    @cached_property
    def downloader(self) -> BaseChromiumDownloader:
        if self._downloader:
            return self._downloader
        return ChromiumDownloader(self.proxy, get_last_position(self.platform, self.proxy), self.scan_path)

    @cached_property
    def chrome_path(self) -> str:
        return find_chrome(self.scan_path)

    @cached_property
    def chromedriver_path(self) -> str:
        return find_chromedriver(self.scan_path)

    @cached_property
    def chrome_version(self) -> str:
        return get_chrome_version(self.chrome_path)

    @cached_property
    def chromedriver_version(self) -> str:
        return get_chromedriver_version(self.chromedriver_path)

    @cached_property
    def default_user_profile_dir(self) -> str:
        """Suggested --user-data-dir, next to the chrome binary."""
        return str((Path(self.chrome_path).parent / "chrome-user-data").resolve())

    def load(self) -> ChromeOptions:
        return self._options_for(load(self.scan_path))

    def download_and_load(self, path_matching: bool = True) -> ChromeOptions:
        installation = download_and_load(
            self.proxy, self.scan_path, self.platform, self.downloader, path_matching
        )
        return self._options_for(installation)

    def _options_for(self, installation: ChromiumInstallation) -> ChromeOptions:
        self.chrome_path = installation.chrome_path
        self.chromedriver_path = installation.chromedriver_path
        options = load_options(installation)
        options.add_argument(f"--user-data-dir={self.default_user_profile_dir}")
        return options

    def service(self, **kwargs) -> ChromeService:
        return ChromeService(executable_path=self.chromedriver_path, **kwargs)

    def new_driver(self, options: Optional[ChromeOptions] = None) -> WebDriver:
        return webdriver.Chrome(service=self.service(), options=options or self.load())

    def __repr__(self) -> str:
        return f"ChromiumLoader(scan_path='{self.scan_path}', platform={self.platform.value})"
