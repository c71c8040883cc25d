import platform as _platform
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Platform(str, Enum):
    """Folder names used by the chromium-browser-snapshots bucket."""
    Android = "Android"
    AndroidDesktop_arm64 = "AndroidDesktop_arm64"
    AndroidDesktop_x64 = "AndroidDesktop_x64"
    Android_Arm64 = "Android_Arm64"
    Arm = "Arm"
    Linux = "Linux"
    LinuxGit = "LinuxGit"
    LinuxGit_x64 = "LinuxGit_x64"
    Linux_ARM_Cross_Compile = "Linux_ARM_Cross-Compile"
    Linux_ChromiumOS = "Linux_ChromiumOS"
    Linux_ChromiumOS_Full = "Linux_ChromiumOS_Full"
    Linux_x64 = "Linux_x64"
    Mac = "Mac"
    MacGit = "MacGit"
    Mac_Arm = "Mac_Arm"
    Win = "Win"
    WinGit = "WinGit"
    Win_Arm64 = "Win_Arm64"
    Win_x64 = "Win_x64"
    Unknown = "Unknown"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def current(cls) -> "Platform":
        os_name = (_platform.system() or sys.platform).lower()
        if "win" in os_name and "darwin" not in os_name:
            return cls.Win
        if "mac" in os_name or "darwin" in os_name:
            return cls.Mac
        if "linux" in os_name:
            return cls.Linux_x64
        return cls.Unknown


class Positioner(BaseModel):
    """Identifies one downloadable build: platform folder plus revision."""
    model_config = ConfigDict(frozen=True)

    platform: Platform
    revision: str

    def __str__(self) -> str:
        return f"Positioner(platform={self.platform.value}, revision='{self.revision}')"


class SnapshotItem(BaseModel):
    media_link: str = ""
    name: str = ""


class ChromeDriverFile(BaseModel):
    positioner: Positioner
    path: str
    base_url: str = Field("https://mirrors.huaweicloud.com/chromedriver", exclude=True)

    @computed_field
    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.path.lstrip('/')}"

    @computed_field
    @property
    def file_name(self) -> str:
        return Path(self.path).name


class ChromeDriverRelease(BaseModel):
    version: str
    items: List[ChromeDriverFile] = Field(default_factory=list)

    @property
    def version_key(self) -> tuple:
        parts = []
        for piece in self.version.split('.'):
            parts.append(int(piece) if piece.isdigit() else 0)
        return tuple(parts)


class ChromiumInstallation(BaseModel):
    chrome_path: str
    chromedriver_path: str


class BrowserSettings(BaseModel):
    # Where binaries are downloaded to and scanned from
    download_path: str = Field("./chrome", description="Directory holding <revision>/app and <revision>/driver.")
    downloader: Literal["snapshots", "huaweicloud", "empty"] = Field("snapshots", description="Download source for chrome and chromedriver.")
    revision: Optional[str] = Field(None, description="Pinned snapshot revision. None resolves LAST_CHANGE.")
    chromedriver_version: Optional[str] = Field(None, description="Driver version for the Huawei Cloud mirror.")
    path_matching: bool = Field(True, description="Only accept binaries found inside download_path.")

    # Network routing for downloads and for the browser itself
    proxy: Optional[str] = Field(None, description="Proxy URL, host:port or pool:<name>.")
    proxy_pools: Dict[str, List[str]] = Field(default_factory=dict)

    # Launch options
    headless: bool = False
    window_size: Optional[str] = Field(None, description="e.g. '1920,1080'")
    no_sandbox: bool = Field(True, description="Required when running as root.")
    disable_dev_shm_usage: bool = True
    ignore_ssl_errors: bool = True
    disable_infobars: bool = True
    enable_logging_prefs: bool = False
    user_agent: Optional[str] = Field(None, description="'random' for a generated UA, any other string is used as-is.")
    driver_options: List[Any] = Field(default_factory=list, description="Extra chrome arguments; non-strings are skipped.")
    chrome_service_args: List[str] = Field(default_factory=list)

    page_load_timeout_seconds: int = 30
    script_timeout_seconds: int = 30

    cookie_domain_url: Optional[str] = None
    cookies_file: Optional[str] = None
    start_url: str = "https://bilibili.com"
