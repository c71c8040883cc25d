import logging
import shutil
from typing import List, Optional

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.remote.webdriver import WebDriver
from webdriver_manager.chrome import ChromeDriverManager

logger = logging.getLogger(__name__)


def build_chrome_service(chromedriver_path: Optional[str] = None, service_args: Optional[List[str]] = None) -> ChromeService:
    local_driver = chromedriver_path or shutil.which('chromedriver')
    if local_driver:
        logger.info(f"Using local chromedriver at: {local_driver}")
        return ChromeService(executable_path=local_driver, service_args=service_args or None)
    logger.info("Local chromedriver not found. Falling back to webdriver_manager (requires internet).")
    return ChromeService(ChromeDriverManager().install(), service_args=service_args or None)


def init_chrome_driver(
    options: ChromeOptions,
    chromedriver_path: Optional[str] = None,
    service_args: Optional[List[str]] = None,
) -> WebDriver:
    service = build_chrome_service(chromedriver_path, service_args)
    return webdriver.Chrome(service=service, options=options)
