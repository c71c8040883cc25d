import typing
from typing import Iterable, List, Tuple, Optional

from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import NoSuchElementException, TimeoutException


Locator = Tuple[str, str]
Context = typing.Union[WebDriver, WebElement]


def wait_for_visible(context: Context, locator: Locator, timeout: float = 5) -> WebElement:
    """
    Waits until the element at `locator` is visible.
    Raises NoSuchElementException (not TimeoutException) when it never shows up.
    """
    try:
        return WebDriverWait(context, timeout).until(EC.visibility_of_element_located(locator))
    except TimeoutException as e:
        raise NoSuchElementException(f"Not found element: {locator[0]}={locator[1]}") from e


def wait_for_all_visible(context: Context, locator: Locator, timeout: float = 5) -> List[WebElement]:
    try:
        return WebDriverWait(context, timeout).until(EC.visibility_of_all_elements_located(locator))
    except TimeoutException as e:
        raise NoSuchElementException(f"Not found elements: {locator[0]}={locator[1]}") from e


def wait_for_any_present(context: Context,
                         locators: Iterable[Locator],
                         timeout: float = 10) -> Optional[WebElement]:
    """
    Waits for the first present element among the provided locators within the given context.
    Returns the found WebElement or None if none are found within timeout.
    """
    for by, value in locators:
        try:
            return WebDriverWait(context, timeout).until(
                EC.presence_of_element_located((by, value))
            )
        except TimeoutException:
            continue
    return None
