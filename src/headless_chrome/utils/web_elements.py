"""
Element-scoped lookups. The single-element finders return None instead of
raising NoSuchElementException.
"""

from typing import List, Optional

from selenium.common.exceptions import NoSuchElementException
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement


def _find_or_none(element: WebElement, by: str, value: str) -> Optional[WebElement]:
    try:
        return element.find_element(by, value)
    except NoSuchElementException:
        return None


def find_element_by_id(element: WebElement, element_id: str) -> Optional[WebElement]:
    return _find_or_none(element, By.ID, element_id)


def find_element_by_xpath(element: WebElement, xpath: str) -> Optional[WebElement]:
    return _find_or_none(element, By.XPATH, xpath)


def find_elements_by_xpath(element: WebElement, xpath: str) -> List[WebElement]:
    return element.find_elements(By.XPATH, xpath)


def find_elements_by_class_name(element: WebElement, class_name: str) -> List[WebElement]:
    return element.find_elements(By.CLASS_NAME, class_name)


def find_elements_by_tag_name(element: WebElement, tag_name: str) -> List[WebElement]:
    return element.find_elements(By.TAG_NAME, tag_name)


def find_elements_by_css_selector(element: WebElement, selector: str) -> List[WebElement]:
    return element.find_elements(By.CSS_SELECTOR, selector)


def children(element: WebElement) -> List[WebElement]:
    """Direct child elements."""
    return element.find_elements(By.XPATH, "./*")


def parent(element: WebElement) -> Optional[WebElement]:
    """The parent element, or None for the document root."""
    return _find_or_none(element, By.XPATH, "./..")


def outer_html(driver: WebDriver, element: WebElement) -> str:
    return driver.execute_script("return arguments[0].outerHTML;", element)


def inner_html(driver: WebDriver, element: WebElement) -> str:
    return driver.execute_script("return arguments[0].innerHTML;", element)
