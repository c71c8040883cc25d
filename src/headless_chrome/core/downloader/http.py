import logging
import os
import random
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests

from ...errors import DownloadError
from ...utils.progress import Progress
from ...utils.proxy_manager import requests_proxies

logger = logging.getLogger(__name__)


DEFAULT_HEADERS = {
    "User-Agent": "headless-chrome/0.1",
    "Accept": "*/*",
}

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
CHUNK_SIZE = 1024 * 128


def _request_kwargs(proxy: Optional[str], timeout: int) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"headers": dict(DEFAULT_HEADERS), "timeout": timeout}
    proxies = requests_proxies(proxy)
    if proxies:
        kwargs["proxies"] = proxies
    return kwargs


def _should_retry(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS


def _sleep_backoff(backoff: float) -> float:
    time.sleep(backoff + random.uniform(0, 0.5))
    return min(backoff * 2, 8.0)


def fetch_text(url: str, proxy: Optional[str] = None, timeout: int = 30) -> str:
    logger.debug("GET %s (proxy=%s)", url, proxy)
    resp = requests.get(url, **_request_kwargs(proxy, timeout))
    resp.raise_for_status()
    return resp.text


def fetch_json(url: str, proxy: Optional[str] = None, timeout: int = 30) -> Any:
    logger.debug("GET %s (proxy=%s)", url, proxy)
    resp = requests.get(url, **_request_kwargs(proxy, timeout))
    resp.raise_for_status()
    return resp.json()


def download_file(
    url: str,
    dest: Union[str, Path],
    proxy: Optional[str] = None,
    timeout: int = 60,
    max_retries: int = 2,
    show_progress: bool = True,
) -> Path:
    """
    Streams `url` into `dest` through `<dest>.part` and renames it when complete.
    Connection errors and retryable HTTP statuses are retried with jittered backoff.
    """
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = dest.with_name(dest.name + ".part")
    backoff = 1.0
    last_error: Optional[Exception] = None

    for attempt in range(max_retries + 1):
        try:
            logger.info("Downloading %s (attempt %s)", url, attempt + 1)
            with requests.get(url, stream=True, allow_redirects=True, **_request_kwargs(proxy, timeout)) as resp:
                if not resp.ok and _should_retry(resp.status_code):
                    raise requests.HTTPError(f"HTTP {resp.status_code} for {url}", response=resp)
                resp.raise_for_status()

                cl = resp.headers.get("content-length")
                expected = int(cl) if cl and cl.isdigit() else None
                bytes_written = 0
                progress = Progress(expected or 0, description=dest.name) if show_progress else None
                with open(tmp_path, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            bytes_written += len(chunk)
                            if progress:
                                progress.update(len(chunk))
                if progress:
                    progress.finish()

            if expected is not None and bytes_written != expected:
                tmp_path.unlink(missing_ok=True)
                raise IOError(f"Content length mismatch for {url}: expected {expected}, got {bytes_written}")
            os.replace(tmp_path, dest)
            logger.info("Downloaded %s to %s (%s bytes)", url, dest, bytes_written)
            return dest
        except requests.HTTPError as e:
            last_error = e
            status = e.response.status_code if e.response is not None else None
            logger.warning("Download error for %s: %s", url, e)
            if status is not None and not _should_retry(status):
                break
        except (requests.exceptions.RequestException, IOError) as e:
            last_error = e
            logger.warning("Download error for %s: %s", url, e)
        if attempt < max_retries:
            backoff = _sleep_backoff(backoff)

    tmp_path.unlink(missing_ok=True)
    raise DownloadError(f"Failed to download {url} after {max_retries + 1} attempts: {last_error}", url=url) from last_error
