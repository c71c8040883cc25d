import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from selenium.webdriver.chrome.options import Options as ChromeOptions

from ...data_models import BrowserSettings
from .ua import get_user_agent

logger = logging.getLogger(__name__)

LOGGING_PREFS_CAPABILITY = "goog:loggingPrefs"
DEFAULT_LOGGING_PREFS = {"browser": "ALL", "driver": "WARNING", "performance": "INFO"}


# Every helper below mutates `options` and returns it so calls can be chained.

def enable_no_sandbox(options: ChromeOptions) -> ChromeOptions:
    """Required when chrome runs as root."""
    options.add_argument("--no-sandbox")
    return options


def enable_headless(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--headless")
    return options


def enable_headless_new(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--headless=new")
    return options


def enable_disable_infobars(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-infobars")
    return exclude_switches(options, "enable-automation")


def enable_incognito(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--incognito")
    return options


def enable_disable_gpu(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-gpu")
    return options


def enable_allow_running_insecure_content(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--allow-running-insecure-content")
    return options


def enable_disable_image(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--blink-settings=imagesEnabled=false")
    return add_preference(options, "profile.managed_default_content_settings.images", 2)


def enable_disable_css(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-css")
    return add_preference(options, "profile.managed_default_content_settings.stylesheets", 2)


def enable_disable_javascript(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-javascript")
    return add_preference(options, "profile.managed_default_content_settings.javascript", 2)


def enable_ignore_ssl_errors(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--ignore-ssl-errors=yes")
    options.add_argument("--ignore-certificate-errors")
    return options


def set_window_size(options: ChromeOptions, width: int, height: int) -> ChromeOptions:
    options.add_argument(f"--window-size={int(width)},{int(height)}")
    return options


def set_proxy_server(options: ChromeOptions, proxy: str) -> ChromeOptions:
    options.add_argument(f"--proxy-server={proxy}")
    return options


def disable_setuid_sandbox(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-setuid-sandbox")
    return options


def disable_dev_shm_usage(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-dev-shm-usage")
    return options


def set_user_profile_dir(options: ChromeOptions, path: str) -> ChromeOptions:
    options.add_argument(f"--user-data-dir={path}")
    return options


def set_user_agent(options: ChromeOptions, user_agent: str) -> ChromeOptions:
    options.add_argument(f"--user-agent={user_agent}")
    return options


def disable_default_browser_check(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--no-default-browser-check")
    return options


def disable_popup_blocking(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-popup-blocking")
    return options


def disable_extensions(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-extensions")
    return options


def disable_first_run(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--no-first-run")
    return options


def start_maximized(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--start-maximized")
    return options


def disable_notifications(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-notifications")
    return options


def enable_automation(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--enable-automation")
    return options


def disable_xss_auditor(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-xss-auditor")
    return options


def disable_web_security(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-web-security")
    return options


def disable_webgl(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-webgl")
    return options


def set_home_dir(options: ChromeOptions, path: str) -> ChromeOptions:
    options.add_argument(f"--homedir={path}")
    return options


def set_disk_cache_dir(options: ChromeOptions, path: str) -> ChromeOptions:
    options.add_argument(f"--disk-cache-dir={path}")
    return options


def disable_cache(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-cache")
    options.add_argument("--disk-cache-size=0")
    return options


def exclude_switches(options: ChromeOptions, *switches: str) -> ChromeOptions:
    """Merges into the existing excludeSwitches list instead of replacing it."""
    current: List[str] = list(options.experimental_options.get("excludeSwitches", []))
    for switch in switches:
        if switch not in current:
            current.append(switch)
    options.add_experimental_option("excludeSwitches", current)
    return options


def enable_logging_prefs(options: ChromeOptions, prefs: Optional[Dict[str, str]] = None) -> ChromeOptions:
    """Lets `driver.get_log(...)` return browser/driver/performance entries."""
    options.set_capability(LOGGING_PREFS_CAPABILITY, dict(prefs or DEFAULT_LOGGING_PREFS))
    return options


def load_extensions(options: ChromeOptions, *paths: str) -> ChromeOptions:
    """Packed .crx files are added as extensions, unpacked directories via --load-extension."""
    unpacked: List[str] = []
    for raw in paths:
        p = Path(raw)
        if p.is_file() and p.suffix.lower() == ".crx":
            options.add_extension(str(p))
        elif p.is_dir() and (p / "manifest.json").is_file():
            unpacked.append(str(p.resolve()))
        else:
            logger.warning(f"Ignoring extension path that is neither a .crx file nor an unpacked extension: {raw}")
    if unpacked:
        options.add_argument(f"--load-extension={','.join(unpacked)}")
    return options


def enable_disable_extensions_file_access_check(options: ChromeOptions) -> ChromeOptions:
    options.add_argument("--disable-extensions-file-access-check")
    return options


def add_preference(options: ChromeOptions, key: str, value: Any) -> ChromeOptions:
    prefs: Dict[str, Any] = dict(options.experimental_options.get("prefs", {}))
    prefs[key] = value
    options.add_experimental_option("prefs", prefs)
    return options


def get_pref_options(options: ChromeOptions) -> Dict[str, Any]:
    return dict(options.experimental_options.get("prefs", {}))


def get_arg_options(options: ChromeOptions) -> List[str]:
    return list(options.arguments)


def configure_driver_options(
    options: ChromeOptions,
    settings: BrowserSettings,
    proxy: Optional[str] = None,
) -> ChromeOptions:
    """Applies a `browser_settings` block. `proxy` overrides settings.proxy once resolved."""
    if settings.user_agent:
        custom = None if settings.user_agent == "random" else settings.user_agent
        set_user_agent(options, get_user_agent(custom))

    if settings.headless:
        enable_headless_new(options)
        enable_disable_gpu(options)

    if settings.window_size:
        options.add_argument(f"--window-size={settings.window_size}")

    effective_proxy = proxy or settings.proxy
    if effective_proxy:
        set_proxy_server(options, effective_proxy)

    if settings.no_sandbox:
        enable_no_sandbox(options)
    if settings.disable_dev_shm_usage:
        disable_dev_shm_usage(options)
    if settings.ignore_ssl_errors:
        enable_ignore_ssl_errors(options)
    if settings.disable_infobars:
        enable_disable_infobars(options)
    if settings.enable_logging_prefs:
        enable_logging_prefs(options)

    for opt in settings.driver_options:
        if isinstance(opt, str):
            options.add_argument(opt)
        else:
            logger.warning(f"Ignoring non-string driver option: {opt}")

    return options
