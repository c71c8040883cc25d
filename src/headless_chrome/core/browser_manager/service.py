import logging
from typing import List, Dict, Optional, Any

from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.common.exceptions import WebDriverException, TimeoutException

from ...data_models import BrowserSettings, Platform, Positioner
from ...errors import HeadlessChromeError
from ...utils.proxy_manager import ProxyManager
from ..config_loader import ConfigLoader, CONFIG_DIR as APP_CONFIG_DIR, PROJECT_ROOT
from ..downloader import (
    BaseChromiumDownloader,
    ChromiumDownloader,
    EmptyDownloader,
    HuaweicloudChromiumDownloader,
)
from ..downloader.huaweicloud import DEFAULT_DRIVER_VERSION
from ..loader import ChromiumLoader
from ..session import ChromiumSession
from .cookies import load_cookies_from_file, apply_cookies
from .options import configure_driver_options
from .drivers import init_chrome_driver

logger = logging.getLogger(__name__)


def build_downloader(settings: BrowserSettings, proxy: Optional[str]) -> BaseChromiumDownloader:
    """Creates the downloader named by `settings.downloader`."""
    if settings.downloader == 'empty':
        return EmptyDownloader(settings.download_path, proxy)
    positioner = Positioner(platform=Platform.current(), revision=settings.revision) if settings.revision else None
    if settings.downloader == "huaweicloud":
        return HuaweicloudChromiumDownloader(
            settings.download_path,
            positioner,
            proxy,
            driver_version=settings.chromedriver_version or DEFAULT_DRIVER_VERSION,
        )
    return ChromiumDownloader(proxy, positioner, settings.download_path)


class BrowserManager:
    """
    Config-driven facade: resolves the proxy, finds or downloads chromium,
    launches chrome and applies cookies. Settings come from `browser_settings`.
    """

    def __init__(self, config_loader: Optional[ConfigLoader] = None):
        self.config_loader = config_loader if config_loader else ConfigLoader()
        self.settings: BrowserSettings = self.config_loader.get_browser_settings()
        self.driver: Optional[WebDriver] = None
        self.cookies_data: Optional[List[Dict[str, Any]]] = None

        self.effective_proxy = ProxyManager(self.settings.proxy_pools).resolve(self.settings.proxy)
        if self.effective_proxy:
            logger.info(f"Using proxy {self.effective_proxy}")

        self._loader: Optional[ChromiumLoader] = None

        if self.settings.cookies_file:
            self.cookies_data = load_cookies_from_file(self.settings.cookies_file, APP_CONFIG_DIR, PROJECT_ROOT)

    @property
    def loader(self) -> ChromiumLoader:
        # Built lazily: the snapshot downloader asks the network for the latest revision
        if self._loader is None:
            downloader = build_downloader(self.settings, self.effective_proxy)
            self._loader = ChromiumLoader(downloader=downloader, proxy=self.effective_proxy)
        return self._loader

    def build_options(self) -> ChromeOptions:
        options = self.loader.download_and_load(self.settings.path_matching)
        return configure_driver_options(options, self.settings, proxy=self.effective_proxy)

    def get_driver(self) -> WebDriver:
        if self.driver and self.is_driver_active():
            return self.driver

        options = self.build_options()
        try:
            self.driver = init_chrome_driver(
                options,
                chromedriver_path=self.loader.chromedriver_path,
                service_args=self.settings.chrome_service_args,
            )
        except Exception as e:
            logger.error(f"Failed to initialize Chrome driver: {e}", exc_info=True)
            self.driver = None
            raise

        self.driver.set_page_load_timeout(self.settings.page_load_timeout_seconds)
        self.driver.set_script_timeout(self.settings.script_timeout_seconds)
        logger.info("Chrome WebDriver initialized successfully.")

        if self.cookies_data:
            cookie_domain_url = self.settings.cookie_domain_url
            if not cookie_domain_url:
                logger.warning("No 'cookie_domain_url' configured in browser_settings. Cookies may not be set correctly.")
            applied = apply_cookies(self.driver, self.cookies_data, cookie_domain_url)
            logger.info(f"Applied {applied} of {len(self.cookies_data)} cookies to the browser session.")

        return self.driver

    def open_session(self) -> ChromiumSession:
        return ChromiumSession(self.get_driver())

    def close_driver(self) -> None:
        if self.driver:
            try:
                self.driver.quit()
                logger.info("WebDriver session closed.")
            except Exception as e:
                logger.error(f"Error closing WebDriver: {e}", exc_info=True)
            finally:
                self.driver = None

    def navigate_to(self, url: str, ensure_driver: bool = True) -> bool:
        if ensure_driver and (not self.driver or not self.is_driver_active()):
            try:
                self.get_driver()
            except (WebDriverException, HeadlessChromeError, OSError) as e:
                logger.error(f"Failed to initialize driver for navigation: {e}")
                return False
        if not self.driver:
            logger.error("No active WebDriver instance to navigate.")
            return False
        try:
            logger.info(f"Navigating to {url}")
            self.driver.get(url)
            return True
        except TimeoutException:
            logger.error(f"Timeout while loading page: {url}")
            return False
        except WebDriverException as e:
            logger.error(f"Error navigating to {url}: {e}", exc_info=True)
            return False

    def is_driver_active(self) -> bool:
        if not self.driver:
            return False
        try:
            _ = self.driver.current_url
            return True
        except WebDriverException:
            logger.warning("WebDriver is not responsive.")
            return False

    def __enter__(self):
        if not self.driver or not self.is_driver_active():
            self.get_driver()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close_driver()
