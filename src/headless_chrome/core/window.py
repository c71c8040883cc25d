import base64
import functools
import logging
import tempfile
import threading
import weakref
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type, TypeVar, Union

from selenium.common.exceptions import NoSuchWindowException, WebDriverException
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.alert import Alert
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support.ui import WebDriverWait

from ..utils.web_elements import inner_html, outer_html
from ..utils.selenium_waits import Locator, wait_for_all_visible, wait_for_any_present, wait_for_visible
from .browser_manager.cookies import CookieManager

logger = logging.getLogger(__name__)

T = TypeVar("T")

BLANK_PAGE = "about:blank"

DELETE_WEBDRIVER_SIGN_JS = """
Object.defineProperty(navigator, 'webdriver', {
    get: () => undefined
});
"""

LOAD_CSS_JS = """
const style = document.createElement('style');
style.textContent = arguments[0];
document.head.appendChild(style);
"""

INJECT_SCRIPT_TAG_JS = """
var script = document.createElement('script');
script.src = arguments[0];
script.type = 'text/javascript';
document.head.appendChild(script);
"""

# java.util.logging levels, which chromedriver log entries use
LOG_LEVELS: Dict[str, int] = {
    "ALL": -(2 ** 31),
    "FINEST": 300,
    "FINER": 400,
    "FINE": 500,
    "DEBUG": 500,
    "CONFIG": 700,
    "INFO": 800,
    "WARNING": 900,
    "SEVERE": 1000,
    "OFF": 2 ** 31 - 1,
}

_driver_locks: "weakref.WeakKeyDictionary[WebDriver, threading.RLock]" = weakref.WeakKeyDictionary()
_driver_locks_guard = threading.Lock()


def driver_lock(driver: WebDriver) -> threading.RLock:
    """One re-entrant lock per driver, shared by every window of that driver."""
    with _driver_locks_guard:
        lock = _driver_locks.get(driver)
        if lock is None:
            lock = threading.RLock()
            _driver_locks[driver] = lock
        return lock


def log_level_value(level: Union[str, int, None]) -> int:
    if isinstance(level, int):
        return level
    return LOG_LEVELS.get(str(level or "ALL").upper(), LOG_LEVELS["INFO"])


def delete_webdriver_sign(driver: WebDriver) -> None:
    """Hides navigator.webdriver on the current page. Failures are ignored."""
    try:
        driver.execute_script(DELETE_WEBDRIVER_SIGN_JS)
    except WebDriverException as e:
        logger.debug(f"Could not hide navigator.webdriver: {e}")


def in_window(method: Callable[..., T]) -> Callable[..., T]:
    """Runs the decorated method with this window focused (see ChromiumWindow.around_window)."""
    @functools.wraps(method)
    def wrapper(self: "ChromiumWindow", *args, **kwargs):
        return self.around_window(method, self, *args, **kwargs)
    return wrapper


class ChromiumWindow:
    """
    One browser window or tab of a driver.

    Every operation runs "around" the window: when the driver currently focuses
    another window, it switches here, runs, and switches back afterwards (if the
    previous window still exists). With `synchronized=True` operations on all
    windows of the same driver are serialized.
    """

    def __init__(self, driver: WebDriver, window_handle: str, synchronized: bool = True):
        self.driver = driver
        self.window_handle = window_handle
        self.synchronized = synchronized
        self.cookies = CookieManager(driver, self.around_window)

    def around_window(self, fn: Callable[..., T], *args, **kwargs) -> T:
        if self.synchronized:
            with driver_lock(self.driver):
                return self._run_in_window(fn, *args, **kwargs)
        return self._run_in_window(fn, *args, **kwargs)

    def _run_in_window(self, fn: Callable[..., T], *args, **kwargs) -> T:
        try:
            previous: Optional[str] = self.driver.current_window_handle
        except NoSuchWindowException:
            previous = None

        switched = previous != self.window_handle
        if switched:
            self.driver.switch_to.window(self.window_handle)
        try:
            return fn(*args, **kwargs)
        finally:
            if switched and previous:
                self._switch_back(previous)

    def _switch_back(self, previous: str) -> None:
        try:
            if previous in self.driver.window_handles:
                self.driver.switch_to.window(previous)
        except WebDriverException as e:
            # The driver may have quit inside the call
            logger.debug(f"Could not switch back to window {previous}: {e}")

    # Navigation

    def get(self, url: Optional[str] = None, new_tab: bool = False) -> "ChromiumWindow":
        """Opens `url` (about:blank when empty). With `new_tab` the page opens in a new, focused tab."""
        url = url or BLANK_PAGE
        if new_tab:
            return self.new_tab(url, switch_to=True)
        self.around_window(self.driver.get, url)
        return self

    def get_file(self, path: Union[str, Path], new_tab: bool = False) -> "ChromiumWindow":
        return self.get(Path(path).resolve().as_uri(), new_tab)

    def load_html(self, html: str, new_tab: bool = False) -> "ChromiumWindow":
        window = self.get(BLANK_PAGE, new_tab)
        window.execute_script("document.body.innerHTML = arguments[0];", html)
        return window

    @in_window
    def back(self) -> "ChromiumWindow":
        self.driver.back()
        return self

    @in_window
    def forward(self) -> "ChromiumWindow":
        self.driver.forward()
        return self

    @in_window
    def refresh(self) -> "ChromiumWindow":
        self.driver.refresh()
        return self

    @property
    def url(self) -> str:
        return self.around_window(lambda: self.driver.current_url)

    @url.setter
    def url(self, value: Optional[str]) -> None:
        if value:
            self.get(value)

    # Content

    @property
    def title(self) -> str:
        return self.around_window(lambda: self.driver.title)

    def set_title(self, title: str) -> None:
        self.execute_script("document.title = arguments[0];", title)

    @property
    def page_source(self) -> str:
        return self.around_window(lambda: self.driver.page_source)

    def html_element(self) -> WebElement:
        return self.find_element(By.TAG_NAME, "html")

    def body_element(self) -> WebElement:
        return self.find_element(By.TAG_NAME, "body")

    def head_element(self) -> WebElement:
        return self.find_element(By.TAG_NAME, "head")

    @in_window
    def find_element(self, by: str = By.ID, value: Optional[str] = None) -> WebElement:
        return self.driver.find_element(by, value)

    @in_window
    def find_elements(self, by: str = By.ID, value: Optional[str] = None) -> List[WebElement]:
        return self.driver.find_elements(by, value)

    def by_id(self, element_id: str) -> WebElement:
        return self.find_element(By.ID, element_id)

    def by_xpath(self, xpath: str) -> WebElement:
        return self.find_element(By.XPATH, xpath)

    def all_by_xpath(self, xpath: str) -> List[WebElement]:
        return self.find_elements(By.XPATH, xpath)

    def by_class_name(self, class_name: str) -> List[WebElement]:
        return self.find_elements(By.CLASS_NAME, class_name)

    def by_tag_name(self, tag_name: str) -> List[WebElement]:
        return self.find_elements(By.TAG_NAME, tag_name)

    def by_css_selector(self, selector: str) -> List[WebElement]:
        return self.find_elements(By.CSS_SELECTOR, selector)

    @in_window
    def find_element_with_wait(self, by: str, value: str, timeout: float = 5) -> WebElement:
        """Waits up to `timeout` seconds for a visible match; raises NoSuchElementException otherwise."""
        return wait_for_visible(self.driver, (by, value), timeout)

    @in_window
    def find_elements_with_wait(self, by: str, value: str, timeout: float = 5) -> List[WebElement]:
        return wait_for_all_visible(self.driver, (by, value), timeout)

    @in_window
    def find_any_element(self, locators: Iterable[Locator], timeout: float = 10) -> Optional[WebElement]:
        return wait_for_any_present(self.driver, locators, timeout)

    def element_at_position(self, x: int, y: int) -> Optional[WebElement]:
        return self.execute_script("return document.elementFromPoint(arguments[0], arguments[1]);", x, y)

    def outer_html(self, element: WebElement) -> str:
        return self.around_window(outer_html, self.driver, element)

    def inner_html(self, element: WebElement) -> str:
        return self.around_window(inner_html, self.driver, element)

    def load_css(self, css: str) -> "ChromiumWindow":
        self.execute_script(LOAD_CSS_JS, css)
        return self

    def inject_script_tag(self, url: str) -> None:
        self.execute_script(INJECT_SCRIPT_TAG_JS, url)

    @property
    def user_agent(self) -> str:
        return self.execute_script("return navigator.userAgent;")

    @property
    def scroll_size(self) -> Tuple[int, int]:
        width = self.execute_script("return document.body.scrollWidth;")
        height = self.execute_script("return document.body.scrollHeight;")
        return int(width), int(height)

    def scroll_to(self, x: int, y: int) -> None:
        self.execute_script("window.scrollTo(arguments[0], arguments[1]);", x, y)

    # Scripts

    @in_window
    def execute_script(self, script: str, *args) -> Any:
        return self.driver.execute_script(script, *args)

    @in_window
    def execute_async_script(self, script: str, *args) -> Any:
        return self.driver.execute_async_script(script, *args)

    def delete_webdriver_sign(self) -> None:
        self.around_window(delete_webdriver_sign, self.driver)

    # Window management

    @property
    def size(self) -> Tuple[int, int]:
        size = self.around_window(self.driver.get_window_size)
        return size["width"], size["height"]

    @size.setter
    def size(self, value: Tuple[int, int]) -> None:
        self.resize(*value)

    @property
    def position(self) -> Tuple[int, int]:
        position = self.around_window(self.driver.get_window_position)
        return position["x"], position["y"]

    @position.setter
    def position(self, value: Tuple[int, int]) -> None:
        self.around_window(self.driver.set_window_position, *value)

    @in_window
    def fullscreen(self) -> None:
        self.driver.fullscreen_window()

    @in_window
    def maximize(self) -> None:
        self.driver.maximize_window()

    @in_window
    def minimize(self) -> None:
        self.driver.minimize_window()

    @in_window
    def resize(self, width: int, height: int) -> None:
        self.driver.set_window_size(width, height)

    def new_tab(self, url: Optional[str] = None, switch_to: bool = False) -> "ChromiumWindow":
        """Opens `url` in a new tab. None reopens this window's page, an empty string opens about:blank."""
        return self._open("tab", url, switch_to)

    def new_window(self, url: Optional[str] = None, switch_to: bool = False) -> "ChromiumWindow":
        return self._open("window", url, switch_to)

    def _open(self, type_hint: str, url: Optional[str], switch_to: bool) -> "ChromiumWindow":
        if url is None:
            url = self.url

        def open_and_load() -> str:
            self.driver.switch_to.new_window(type_hint)
            self.driver.get(url or BLANK_PAGE)
            opened = self.driver.current_window_handle
            self.driver.switch_to.window(self.window_handle)
            return opened

        handle = self.around_window(open_and_load)
        window = ChromiumWindow(self.driver, handle, self.synchronized)
        if switch_to:
            window.switch_to_this()
        return window

    def switch_to_this(self) -> "ChromiumWindow":
        self.driver.switch_to.window(self.window_handle)
        return self

    @in_window
    def switch_to_frame(self, frame: Union[str, int, WebElement]) -> None:
        self.driver.switch_to.frame(frame)

    @in_window
    def alert(self) -> Alert:
        return self.driver.switch_to.alert

    @in_window
    def create_alert(self, text: str) -> Alert:
        self.driver.execute_script("alert(arguments[0]);", text)
        return self.driver.switch_to.alert

    @in_window
    def close(self) -> None:
        self.driver.close()

    def is_closed(self) -> bool:
        return self.window_handle not in self.driver.window_handles

    # Misc

    def wait(self, timeout: float = 10, poll: float = 0.5) -> WebDriverWait:
        return WebDriverWait(self.driver, timeout, poll_frequency=poll)

    def fluent_wait(
        self,
        timeout: float,
        poll: float = 0.5,
        ignored_exceptions: Optional[Iterable[Type[BaseException]]] = None,
    ) -> WebDriverWait:
        """A wait that keeps polling through `ignored_exceptions` (NoSuchElementException is always ignored)."""
        return WebDriverWait(
            self.driver,
            timeout,
            poll_frequency=poll,
            ignored_exceptions=tuple(ignored_exceptions) if ignored_exceptions else None,
        )

    def actions(self) -> ActionChains:
        return ActionChains(self.driver)

    @in_window
    def logs(self, log_type: str = "browser", level: Union[str, int] = "ALL") -> List[Dict[str, Any]]:
        """Entries of `log_type` at or above `level`. Needs goog:loggingPrefs on the options."""
        threshold = log_level_value(level)
        return [e for e in self.driver.get_log(log_type) if log_level_value(e.get("level")) >= threshold]

    @in_window
    def screenshot_as_png(self) -> bytes:
        return self.driver.get_screenshot_as_png()

    @in_window
    def screenshot_as_base64(self) -> str:
        return self.driver.get_screenshot_as_base64()

    def screenshot_as_file(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Saves a viewport screenshot to `path`, or to a temporary .png file when omitted."""
        target = _screenshot_target(path)
        target.write_bytes(self.screenshot_as_png())
        return target

    def full_page_screenshot_as_file(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Captures the whole scrollable page through the DevTools protocol."""
        result = self.around_window(
            self.driver.execute_cdp_cmd,
            "Page.captureScreenshot",
            {"format": "png", "captureBeyondViewport": True},
        )
        target = _screenshot_target(path)
        target.write_bytes(base64.b64decode(result["data"]))
        return target

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChromiumWindow):
            return NotImplemented
        return self.driver is other.driver and self.window_handle == other.window_handle

    def __hash__(self) -> int:
        return hash((id(self.driver), self.window_handle))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.window_handle})"


def _screenshot_target(path: Optional[Union[str, Path]]) -> Path:
    if path is not None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        return target
    with tempfile.NamedTemporaryFile(prefix="screenshot", suffix=".png", delete=False) as tmp:
        return Path(tmp.name)
