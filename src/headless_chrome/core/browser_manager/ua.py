import logging
from typing import Optional

from fake_headers import Headers

logger = logging.getLogger(__name__)

FALLBACK_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"


def get_user_agent(custom: Optional[str] = None) -> str:
    if custom and isinstance(custom, str):
        logger.debug(f"Using custom user agent: {custom}")
        return custom
    try:
        ua = Headers(browser="chrome", headers=True).generate().get('User-Agent')
    except Exception as e:
        logger.warning(f"fake-headers UA generation failed: {e}")
        ua = None
    if ua:
        logger.debug(f"Generated random user agent: {ua}")
        return ua
    return FALLBACK_USER_AGENT
