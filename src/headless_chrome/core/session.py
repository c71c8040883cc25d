import atexit
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Set, Union

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.remote.webdriver import WebDriver

from .window import ChromiumWindow, log_level_value

logger = logging.getLogger(__name__)

WATCH_INTERVAL_SECONDS = 0.2
LOG_POLL_INTERVAL_SECONDS = 0.02


class Watcher:
    """A daemon thread polling the browser. `stop()` ends it at the next poll."""

    def __init__(self, name: str, target: Callable[[threading.Event], None]):
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(target,), name=name, daemon=True)
        self._thread.start()

    def _run(self, target: Callable[[threading.Event], None]) -> None:
        try:
            target(self._stop)
        except Exception as e:
            logger.error(f"Watcher {self._thread.name} stopped with an error: {e}", exc_info=True)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if timeout is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def is_alive(self) -> bool:
        return self._thread.is_alive()


class ChromiumSession(ChromiumWindow):
    """
    Wraps a chrome driver: the window it currently focuses plus the helpers
    that concern the whole browser (every window, quit detection, watchers).

    Example:
        with ChromiumSession(driver) as session:
            session.block_until_quit(lambda s: s.get("https://bilibili.com"))
    """

    def __init__(self, driver: WebDriver, synchronized: bool = True):
        super().__init__(driver, driver.current_window_handle, synchronized)
        self._windows: List[ChromiumWindow] = []
        self._exit_hook_registered = False
        self.delete_webdriver_sign()

    @property
    def windows(self) -> List[ChromiumWindow]:
        """Open windows, kept in sync with driver.window_handles."""
        handles = list(self.driver.window_handles)
        self._windows = [w for w in self._windows if w.window_handle in handles]
        known = {w.window_handle for w in self._windows}
        for handle in handles:
            if handle not in known:
                window = self if handle == self.window_handle else ChromiumWindow(self.driver, handle, self.synchronized)
                self._windows.append(window)
        return list(self._windows)

    @property
    def window(self) -> ChromiumWindow:
        """The window the driver currently focuses."""
        handle = self.driver.current_window_handle
        for window in self.windows:
            if window.window_handle == handle:
                return window
        return ChromiumWindow(self.driver, handle, self.synchronized)

    def is_quit(self) -> bool:
        try:
            return len(self.driver.window_handles) == 0
        except WebDriverException:
            return True

    def quit(self) -> None:
        try:
            self.driver.quit()
        except WebDriverException as e:
            logger.debug(f"Driver quit raised: {e}")

    def on_quit(self, callback: Callable[[], Any]) -> Watcher:
        def watch(stop: threading.Event) -> None:
            while not stop.wait(WATCH_INTERVAL_SECONDS):
                if self.is_quit():
                    callback()
                    return
        return Watcher("chromium-on-quit", watch)

    def on_close(self, callback: Callable[[], Any], window: Optional[ChromiumWindow] = None) -> Watcher:
        """Calls `callback` once `window` (this session's window by default) is closed."""
        target = window or self

        def closed() -> bool:
            try:
                return target.is_closed()
            except WebDriverException:
                return True

        def watch(stop: threading.Event) -> None:
            while not stop.wait(WATCH_INTERVAL_SECONDS):
                if closed():
                    callback()
                    return
        return Watcher("chromium-on-close", watch)

    def on_create_window(self, callback: Callable[[ChromiumWindow], Any]) -> Watcher:
        """Calls `callback` for every window opened after this call."""
        try:
            known: Set[str] = set(self.driver.window_handles)
        except WebDriverException:
            known = set()

        def watch(stop: threading.Event) -> None:
            seen = known
            while not stop.wait(WATCH_INTERVAL_SECONDS):
                try:
                    handles = list(self.driver.window_handles)
                except WebDriverException:
                    return
                for handle in handles:
                    if handle in seen:
                        continue
                    try:
                        callback(ChromiumWindow(self.driver, handle, self.synchronized))
                    except Exception as e:
                        logger.warning(f"on_create_window callback failed for {handle}: {e}")
                seen = set(handles)
        return Watcher("chromium-on-create-window", watch)

    def log_listener(
        self,
        callback: Callable[[Dict[str, Any]], Any],
        log_type: str = "browser",
        level: Union[str, int] = "ALL",
    ) -> Watcher:
        """Streams `log_type` entries at or above `level` to `callback` until the window closes."""
        threshold = log_level_value(level)

        def watch(stop: threading.Event) -> None:
            while not stop.is_set():
                try:
                    if self.is_closed():
                        return
                    entries = self.around_window(self.driver.get_log, log_type)
                except WebDriverException:
                    return
                for entry in entries:
                    if log_level_value(entry.get("level")) >= threshold:
                        callback(entry)
                stop.wait(LOG_POLL_INTERVAL_SECONDS)
        return Watcher("chromium-log-listener", watch)

    def block_until_quit(
        self,
        block: Optional[Callable[["ChromiumSession"], Any]] = None,
        poll_interval: float = WATCH_INTERVAL_SECONDS,
    ) -> None:
        """
        Runs `block(self)`, then waits until the user closes the browser.
        The driver is also quit when the interpreter exits.
        """
        self._register_exit_hook()
        if block:
            block(self)
        while not self.is_quit():
            time.sleep(poll_interval)
        logger.info("Browser has quit.")

    def _register_exit_hook(self) -> None:
        if not self._exit_hook_registered:
            atexit.register(self.quit)
            self._exit_hook_registered = True

    def __enter__(self) -> "ChromiumSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.quit()
