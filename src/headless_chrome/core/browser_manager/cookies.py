import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from selenium.webdriver.remote.webdriver import WebDriver
from selenium.common.exceptions import InvalidArgumentException, WebDriverException

logger = logging.getLogger(__name__)

_SAME_SITE = {
    'none': 'None',
    'no_restriction': 'None',
    'no-restriction': 'None',
    'lax': 'Lax',
    'strict': 'Strict',
}
_PASSTHROUGH_KEYS = ('name', 'value', 'path', 'domain', 'secure')


def load_cookies_from_file(candidate_path: str, config_dir: Path, project_root: Path) -> Optional[List[Dict[str, Any]]]:
    """Load cookies JSON from config dir, project root, or absolute path."""
    resolved: Optional[Path] = None
    for candidate in (config_dir / candidate_path, project_root / candidate_path):
        if candidate.is_file():
            resolved = candidate
            break
    if resolved is None:
        abs_path = Path(candidate_path)
        if abs_path.is_absolute() and abs_path.is_file():
            resolved = abs_path

    if not resolved:
        logger.error(f"Cookie file not found at '{candidate_path}' (checked config dir, project root, and absolute path).")
        return None
    logger.debug(f"Loading cookies from {resolved}")

    try:
        with resolved.open('r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON from cookie file {resolved}: {e}")
        return None
    except OSError as e:
        logger.error(f"Error loading cookies from file {resolved}: {e}")
        return None

    if not isinstance(data, list):
        logger.error(f"Cookie file {resolved} must hold a JSON list, got {type(data).__name__}")
        return None
    return data


def normalize_cookie(cookie: Dict[str, Any]) -> Dict[str, Any]:
    """
    Converts a browser-extension export into the dict Selenium's add_cookie accepts:
    expires/expirationDate -> integer expiry, sameSite mapped to Strict/Lax/None,
    unknown keys (hostOnly, storeId, ...) dropped.
    """
    selenium_cookie: Dict[str, Any] = {}
    for key, value in cookie.items():
        if key in ('expires', 'expiry', 'expirationDate'):
            try:
                selenium_cookie['expiry'] = int(value)
            except (TypeError, ValueError):
                # Session cookie
                pass
        elif key == 'httpOnly':
            selenium_cookie['httpOnly'] = bool(value)
        elif key == 'sameSite':
            mapped = _SAME_SITE.get(str(value).strip().lower())
            if mapped:
                selenium_cookie['sameSite'] = mapped
        elif key in _PASSTHROUGH_KEYS:
            selenium_cookie[key] = value
    return selenium_cookie


def apply_cookies(driver: WebDriver, cookies: List[Dict[str, Any]], cookie_domain_url: Optional[str]) -> int:
    """Adds `cookies` to the session and returns how many were accepted."""
    if cookie_domain_url:
        try:
            driver.get(cookie_domain_url)
        except WebDriverException as e:
            logger.warning(f"Failed navigating to cookie domain {cookie_domain_url} before adding cookies: {e}")

    applied = 0
    for cookie_dict in cookies:
        selenium_cookie = normalize_cookie(cookie_dict)
        if 'name' not in selenium_cookie or 'value' not in selenium_cookie:
            continue
        try:
            driver.add_cookie(selenium_cookie)
            applied += 1
        except InvalidArgumentException as iae:
            logger.warning(
                f"Could not add cookie {selenium_cookie.get('name')} (often domain/sameSite/expiry mismatch): {iae}"
            )
        except WebDriverException as e:
            logger.warning(f"Could not add cookie {selenium_cookie.get('name')}: {e}")

    if cookie_domain_url:
        try:
            driver.refresh()
        except WebDriverException as e:
            logger.debug(f"Refresh after applying cookies failed: {e}")
    return applied


class CookieManager:
    """
    Cookie access for the page loaded in `driver`. `runner` wraps each call,
    e.g. ChromiumWindow.around_window so cookies are read from that window.
    """

    def __init__(self, driver: WebDriver, runner: Optional[Callable[..., Any]] = None):
        self.driver = driver
        self._run = runner or (lambda fn, *args: fn(*args))

    def all(self) -> List[Dict[str, Any]]:
        return self._run(self.driver.get_cookies)

    def get(self, name: str) -> Optional[Dict[str, Any]]:
        return self._run(self.driver.get_cookie, name)

    def get_value(self, name: str) -> Optional[str]:
        cookie = self.get(name)
        return cookie.get('value') if cookie else None

    def add(self, name: str, value: str, **fields: Any) -> None:
        self._run(self.driver.add_cookie, normalize_cookie({"name": name, "value": value, **fields}))

    def delete(self, name: str) -> None:
        self._run(self.driver.delete_cookie, name)

    def delete_all(self) -> None:
        self._run(self.driver.delete_all_cookies)

    def __iter__(self):
        return iter(self.all())

    def __len__(self) -> int:
        return len(self.all())
