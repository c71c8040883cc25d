import base64
from typing import Any, Dict, List, Optional

import pytest
from selenium.common.exceptions import NoSuchElementException, NoSuchWindowException, WebDriverException


class FakeSwitchTo:
    def __init__(self, driver: "FakeDriver"):
        self._driver = driver

    def window(self, handle: str) -> None:
        if handle not in self._driver.handles:
            raise NoSuchWindowException(f"no such window: {handle}")
        self._driver.current = handle
        self._driver.switches.append(handle)

    def new_window(self, type_hint: str = "tab") -> None:
        self._driver.counter += 1
        handle = f"{type_hint}-{self._driver.counter}"
        self._driver.handles.append(handle)
        self._driver.urls[handle] = "about:blank"
        self._driver.current = handle
        self._driver.switches.append(handle)

    def frame(self, frame: Any) -> None:
        self._driver.frames.append(frame)

    @property
    def alert(self) -> str:
        return f"alert:{self._driver.current}"


class FakeDriver:
    """In-memory stand-in for selenium's Chrome driver."""

    def __init__(self, handles: Optional[List[str]] = None):
        self.handles: List[str] = list(handles or ["main"])
        self.current: Optional[str] = self.handles[0]
        self.urls: Dict[str, str] = {h: "about:blank" for h in self.handles}
        self.switches: List[str] = []
        self.frames: List[Any] = []
        self.scripts: List[tuple] = []
        self.script_results: Dict[str, Any] = {}
        self.cookies: Dict[str, Dict[str, Any]] = {}
        self.log_entries: List[Dict[str, Any]] = []
        self.window_size = {"width": 800, "height": 600}
        self.window_position = {"x": 0, "y": 0}
        self.counter = 0
        self.quit_called = False
        self.switch_to = FakeSwitchTo(self)

    def _alive(self) -> None:
        if self.quit_called:
            raise WebDriverException("driver has quit")

    @property
    def window_handles(self) -> List[str]:
        self._alive()
        return list(self.handles)

    @property
    def current_window_handle(self) -> str:
        self._alive()
        if self.current not in self.handles:
            raise NoSuchWindowException("current window is closed")
        return self.current

    @property
    def current_url(self) -> str:
        return self.urls[self.current]

    @property
    def title(self) -> str:
        return f"title of {self.current_url}"

    @property
    def page_source(self) -> str:
        return "<html></html>"

    def get(self, url: str) -> None:
        self._alive()
        self.urls[self.current] = url

    def back(self) -> None:
        self.scripts.append(("back", self.current))

    def forward(self) -> None:
        self.scripts.append(("forward", self.current))

    def refresh(self) -> None:
        self.scripts.append(("refresh", self.current))

    def execute_script(self, script: str, *args) -> Any:
        self._alive()
        self.scripts.append((script, self.current, args))
        for needle, result in self.script_results.items():
            if needle in script:
                return result
        return None

    def execute_async_script(self, script: str, *args) -> Any:
        return self.execute_script(script, *args)

    def execute_cdp_cmd(self, cmd: str, params: Dict[str, Any]) -> Dict[str, Any]:
        self.scripts.append((cmd, self.current, params))
        return {"data": base64.b64encode(b"full-page").decode("ascii")}

    def find_element(self, by: str, value: Optional[str] = None) -> Any:
        raise NoSuchElementException(f"{by}={value}")

    def find_elements(self, by: str, value: Optional[str] = None) -> List[Any]:
        return []

    def get_log(self, log_type: str) -> List[Dict[str, Any]]:
        return list(self.log_entries)

    def get_screenshot_as_png(self) -> bytes:
        return b"png-bytes"

    def get_screenshot_as_base64(self) -> str:
        return base64.b64encode(b"png-bytes").decode("ascii")

    def get_window_size(self) -> Dict[str, int]:
        return dict(self.window_size)

    def set_window_size(self, width: int, height: int) -> None:
        self.window_size = {"width": width, "height": height}

    def get_window_position(self) -> Dict[str, int]:
        return dict(self.window_position)

    def set_window_position(self, x: int, y: int) -> None:
        self.window_position = {"x": x, "y": y}

    def maximize_window(self) -> None:
        self.scripts.append(("maximize", self.current))

    def minimize_window(self) -> None:
        self.scripts.append(("minimize", self.current))

    def fullscreen_window(self) -> None:
        self.scripts.append(("fullscreen", self.current))

    def get_cookies(self) -> List[Dict[str, Any]]:
        return list(self.cookies.values())

    def get_cookie(self, name: str) -> Optional[Dict[str, Any]]:
        return self.cookies.get(name)

    def add_cookie(self, cookie: Dict[str, Any]) -> None:
        self.cookies[cookie["name"]] = cookie

    def delete_cookie(self, name: str) -> None:
        self.cookies.pop(name, None)

    def delete_all_cookies(self) -> None:
        self.cookies.clear()

    def set_page_load_timeout(self, seconds: int) -> None:
        self.page_load_timeout = seconds

    def set_script_timeout(self, seconds: int) -> None:
        self.script_timeout = seconds

    def close(self) -> None:
        self.handles.remove(self.current)

    def quit(self) -> None:
        self.quit_called = True
        self.handles.clear()


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver(["main", "second"])


class FakeElement:
    """A WebElement stand-in whose lookups come from a (by, value) table."""

    def __init__(self, name: str, lookups: Optional[Dict[tuple, Any]] = None):
        self.name = name
        self.lookups: Dict[tuple, Any] = dict(lookups or {})

    def find_element(self, by: str, value: Optional[str] = None) -> "FakeElement":
        found = self.lookups.get((by, value))
        if isinstance(found, list):
            found = found[0] if found else None
        if found is None:
            raise NoSuchElementException(f"{by}={value}")
        return found

    def find_elements(self, by: str, value: Optional[str] = None) -> List["FakeElement"]:
        found = self.lookups.get((by, value), [])
        return list(found) if isinstance(found, list) else [found]

    def __repr__(self) -> str:
        return f"FakeElement({self.name})"
