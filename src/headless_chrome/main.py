import argparse
import logging
from typing import List, Optional

from selenium.common.exceptions import WebDriverException

from .core.config_loader import ConfigLoader
from .core.downloader import BaseChromiumDownloader, ChromiumDownloader, HuaweicloudChromiumDownloader
from .core.loader import ChromiumLoader
from .core.browser_manager import options as chrome_options
from .core.session import ChromiumSession
from .errors import HeadlessChromeError
from .utils.logger import setup_logger
from .utils.proxy_manager import build_proxy_url

logger = logging.getLogger(__name__)

DEFAULT_PROXY_HOST = "127.0.0.1"
DEFAULT_PROXY_PORT = 8070
DEFAULT_URL = "https://bilibili.com"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="headless-chrome",
        description="Download (or reuse) chromium and chromedriver, open a page and wait until the browser is closed.",
    )
    parser.add_argument("--host", default=DEFAULT_PROXY_HOST, help="HTTP proxy host used for downloads.")
    parser.add_argument("--port", type=int, default=DEFAULT_PROXY_PORT, help="HTTP proxy port used for downloads.")
    parser.add_argument("--no-proxy", action="store_true", help="Download without a proxy.")
    parser.add_argument("--huaweicloud", action="store_true", help="Download from the Huawei Cloud mirror.")
    parser.add_argument("--path", default=None, help="Download/scan directory (default: browser_settings.download_path).")
    parser.add_argument("--url", default=None, help="Page to open (default: browser_settings.start_url).")
    parser.add_argument("--headless", action="store_true", help="Run chrome headless.")
    parser.add_argument("--config", default=None, help="Path to settings.json.")
    return parser


def build_downloader(args: argparse.Namespace, download_path: str) -> BaseChromiumDownloader:
    proxy = None if args.no_proxy else build_proxy_url(args.host, args.port)
    if args.huaweicloud:
        return HuaweicloudChromiumDownloader(download_path, proxy=proxy)
    return ChromiumDownloader(proxy=proxy, path=download_path)


def run(args: argparse.Namespace, config_loader: ConfigLoader) -> None:
    download_path = args.path or config_loader.get_browser_setting('download_path', './chrome')
    loader = ChromiumLoader(downloader=build_downloader(args, download_path))
    options = loader.download_and_load(True)

    logger.info(f"Chrome version: {loader.chrome_version}")
    logger.info(f"ChromeDriver version: {loader.chromedriver_version}")
    logger.info(f"Chrome path: {loader.chrome_path}")
    logger.info(f"ChromeDriver path: {loader.chromedriver_path}")
    logger.info(f"Platform: {loader.platform}")

    # Running as root needs the sandbox disabled
    chrome_options.enable_no_sandbox(options)
    chrome_options.disable_dev_shm_usage(options)
    chrome_options.enable_disable_infobars(options)
    chrome_options.enable_ignore_ssl_errors(options)
    chrome_options.enable_logging_prefs(options)
    if args.headless:
        chrome_options.enable_headless_new(options)

    url = args.url or config_loader.get_browser_setting('start_url', DEFAULT_URL)
    session = ChromiumSession(loader.new_driver(options))
    session.block_until_quit(lambda s: s.get(url))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config_loader = ConfigLoader(args.config) if args.config else ConfigLoader()
    setup_logger(config_loader)

    try:
        run(args, config_loader)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
    except (HeadlessChromeError, WebDriverException, OSError) as e:
        logger.critical(f"headless-chrome failed: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
