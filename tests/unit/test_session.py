import logging
import threading

import pytest
from selenium.common.exceptions import WebDriverException

from conftest import FakeDriver
from headless_chrome.core import session as session_module
from headless_chrome.core.session import ChromiumSession, Watcher
from headless_chrome.core.window import DELETE_WEBDRIVER_SIGN_JS, ChromiumWindow


@pytest.fixture(autouse=True)
def fast_watchers(monkeypatch):
    monkeypatch.setattr(session_module, "WATCH_INTERVAL_SECONDS", 0.01)
    monkeypatch.setattr(session_module, "LOG_POLL_INTERVAL_SECONDS", 0.01)


def test_session_binds_current_window_and_hides_webdriver(fake_driver):
    fake_driver.current = "second"
    session = ChromiumSession(fake_driver)

    assert session.window_handle == "second"
    assert (DELETE_WEBDRIVER_SIGN_JS, "second", ()) in fake_driver.scripts


def test_windows_follow_driver_handles(fake_driver):
    session = ChromiumSession(fake_driver)

    windows = session.windows
    assert [w.window_handle for w in windows] == ["main", "second"]
    assert windows[0] is session
    second = windows[1]

    fake_driver.handles.remove("second")
    fake_driver.handles.append("popup")
    windows = session.windows
    assert [w.window_handle for w in windows] == ["main", "popup"]

    fake_driver.handles.append("second")
    windows = session.windows
    assert windows[2] == second
    assert windows[2] is not second


def test_window_is_the_focused_one(fake_driver):
    session = ChromiumSession(fake_driver)
    assert session.window is session
    fake_driver.current = "second"
    assert session.window == ChromiumWindow(fake_driver, "second")


def test_is_quit_and_quit(fake_driver):
    session = ChromiumSession(fake_driver)
    assert not session.is_quit()
    session.quit()
    assert fake_driver.quit_called
    assert session.is_quit()


def test_is_quit_when_every_window_closed(fake_driver):
    session = ChromiumSession(fake_driver)
    fake_driver.handles.clear()
    assert session.is_quit()


def test_quit_ignores_driver_errors(monkeypatch, fake_driver):
    session = ChromiumSession(fake_driver)

    def broken_quit():
        raise WebDriverException("already gone")

    monkeypatch.setattr(fake_driver, "quit", broken_quit)
    session.quit()


def test_block_until_quit_runs_block_then_waits(monkeypatch, fake_driver):
    registered = []
    monkeypatch.setattr(session_module.atexit, "register", registered.append)
    session = ChromiumSession(fake_driver)
    visited = []

    def block(s):
        s.get("https://bilibili.com")
        visited.append(fake_driver.urls["main"])
        # The user closes the browser
        threading.Timer(0.05, fake_driver.quit).start()

    session.block_until_quit(block, poll_interval=0.01)

    assert visited == ["https://bilibili.com"]
    assert session.is_quit()
    assert registered == [session.quit]

    session.block_until_quit()
    assert len(registered) == 1


def test_on_quit_fires_once(fake_driver):
    session = ChromiumSession(fake_driver)
    fired = threading.Event()

    watcher = session.on_quit(fired.set)
    fake_driver.quit()

    assert fired.wait(2)
    watcher.stop(timeout=1)
    assert not watcher.is_alive()


def test_on_close_watches_given_window(fake_driver):
    session = ChromiumSession(fake_driver)
    closed = threading.Event()

    watcher = session.on_close(closed.set, window=ChromiumWindow(fake_driver, "second"))
    assert not closed.wait(0.05)
    fake_driver.handles.remove("second")

    assert closed.wait(2)
    watcher.stop(timeout=1)


def test_on_create_window_reports_new_handles(fake_driver):
    session = ChromiumSession(fake_driver)
    created = []
    seen = threading.Event()

    def on_window(window):
        created.append(window.window_handle)
        seen.set()

    watcher = session.on_create_window(on_window)
    fake_driver.handles.append("popup")

    assert seen.wait(2)
    watcher.stop(timeout=1)
    assert created == ["popup"]


def test_log_listener_filters_entries(fake_driver):
    fake_driver.log_entries = [
        {"level": "INFO", "message": "loaded"},
        {"level": "SEVERE", "message": "boom"},
    ]
    session = ChromiumSession(fake_driver)
    messages = []
    got = threading.Event()

    def on_entry(entry):
        messages.append(entry["message"])
        got.set()

    watcher = session.log_listener(on_entry, level="WARNING")
    assert got.wait(2)
    watcher.stop(timeout=1)

    assert set(messages) == {"boom"}


def test_watcher_stop_and_errors(caplog):
    watcher = Watcher("idle", lambda stop: stop.wait(5))
    assert watcher.is_alive()
    watcher.stop(timeout=1)
    assert watcher.stopped
    assert not watcher.is_alive()

    def explode(stop):
        raise RuntimeError("kaboom")

    with caplog.at_level(logging.ERROR):
        failing = Watcher("failing", explode)
        failing.stop(timeout=1)
    assert "Watcher failing stopped with an error: kaboom" in caplog.text


def test_context_manager_quits():
    driver = FakeDriver()
    with ChromiumSession(driver) as session:
        session.get("https://bilibili.com")
    assert driver.quit_called
