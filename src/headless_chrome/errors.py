"""
Error types raised by headless_chrome.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    CHROME_NOT_FOUND = "CHROME_NOT_FOUND"
    CHROMEDRIVER_NOT_FOUND = "CHROMEDRIVER_NOT_FOUND"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    UNSUPPORTED_PLATFORM = "UNSUPPORTED_PLATFORM"
    COMMAND_FAILED = "COMMAND_FAILED"
    VERSION_PARSE_FAILED = "VERSION_PARSE_FAILED"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"


class HeadlessChromeError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.code = code


class ChromeNotFoundError(HeadlessChromeError, FileNotFoundError):
    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.CHROME_NOT_FOUND)


class ChromeDriverNotFoundError(HeadlessChromeError, FileNotFoundError):
    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.CHROMEDRIVER_NOT_FOUND)


class DownloadError(HeadlessChromeError):
    """Raised when a chrome or chromedriver archive cannot be fetched."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, code=ErrorCode.DOWNLOAD_FAILED)
        self.url = url


class UnsupportedPlatformError(HeadlessChromeError, ValueError):
    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.UNSUPPORTED_PLATFORM)


class CommandError(HeadlessChromeError):
    """A helper subprocess timed out or exited non-zero."""

    def __init__(self, message: str, command: Optional[list] = None, stderr: str = ""):
        super().__init__(message, code=ErrorCode.COMMAND_FAILED)
        self.command = command or []
        self.stderr = stderr


class VersionParseError(HeadlessChromeError):
    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.VERSION_PARSE_FAILED)


class ArchiveError(HeadlessChromeError):
    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.EXTRACTION_FAILED)
