import pytest

from headless_chrome.core.downloader import HuaweicloudChromiumDownloader, huaweicloud
from headless_chrome.data_models import Platform, Positioner
from headless_chrome.errors import UnsupportedPlatformError

INDEX = {
    "chromedriver": {
        "92.0.4515.43": {"files": ["/92.0.4515.43/chromedriver_linux64.zip", "/92.0.4515.43/chromedriver_mac64.zip"]},
        "114.0.5735.90": {"files": ["/114.0.5735.90/chromedriver_win32.zip"]},
        "100.0.4896.20": {"files": ["/100.0.4896.20/chromedriver_mac_arm64.zip"]},
    }
}


@pytest.fixture
def downloader(tmp_path):
    return HuaweicloudChromiumDownloader(
        str(tmp_path), positioner=Positioner(platform=Platform.Mac, revision=huaweicloud.LAST_REVISION)
    )


def test_default_position_is_last_synced_revision(monkeypatch, tmp_path):
    monkeypatch.setattr(Platform, "current", classmethod(lambda cls: Platform.Linux_x64))
    d = HuaweicloudChromiumDownloader(str(tmp_path))
    assert d.positioner == Positioner(platform=Platform.Linux_x64, revision="884014")
    assert d.driver_version == "92.0.4515.43"


@pytest.mark.parametrize("platform, name", [
    (Platform.Linux, "chrome-linux.zip"),
    (Platform.Linux_x64, "chrome-linux.zip"),
    (Platform.Mac_Arm, "chrome-mac.zip"),
    (Platform.Win_x64, "chrome-win.zip"),
])
def test_chrome_archive_names(platform, name):
    assert huaweicloud.chrome_archive_name(platform) == name


def test_chrome_archive_rejects_other_platforms():
    with pytest.raises(UnsupportedPlatformError):
        huaweicloud.chrome_archive_name(Platform.Android)


@pytest.mark.parametrize("platform, version, name", [
    (Platform.Mac, "92.0.4515.43", "chromedriver_mac64.zip"),
    (Platform.Linux_x64, "95.0.4638.69", "chromedriver_linux64.zip"),
    (Platform.Mac_Arm, "95.0.4638.69", "chromedriver_mac_arm64.zip"),
    (Platform.Mac, "114.0.5735.90", "chromedriver-mac-x64.zip"),
    (Platform.Win_x64, "120.0.6099.109", "chromedriver-win64.zip"),
])
def test_chromedriver_archive_names_switch_layout_after_95(platform, version, name):
    assert huaweicloud.chromedriver_archive_name(platform, version) == name


def test_download_urls(monkeypatch, downloader):
    fetched = []
    monkeypatch.setattr(downloader, "_fetch_archive", lambda url, target, name: fetched.append((url, target, name)))

    downloader.download_chrome()
    downloader.download_chromedriver("114.0.5735.90")

    assert fetched == [
        ("https://mirrors.huaweicloud.com/chromium-browser-snapshots/Mac/884014/chrome-mac.zip",
         downloader.app_dir, "chrome-mac.zip"),
        ("https://mirrors.huaweicloud.com/chromedriver/114.0.5735.90/chromedriver-mac-x64.zip",
         downloader.driver_dir, "chromedriver-mac-x64.zip"),
    ]


def test_get_chromedriver_versions_parses_index(monkeypatch):
    urls = []

    def fake_fetch_json(url, proxy=None):
        urls.append(url)
        return INDEX

    monkeypatch.setattr(huaweicloud.http, "fetch_json", fake_fetch_json)
    releases = huaweicloud.get_chromedriver_versions()

    assert urls == ["https://mirrors.huaweicloud.com/chromedriver/.index.json"]
    by_version = {r.version: r for r in releases}
    assert [i.positioner.platform for i in by_version["92.0.4515.43"].items] == [Platform.Linux, Platform.Mac]
    assert by_version["100.0.4896.20"].items[0].positioner.platform is Platform.Mac_Arm
    assert by_version["114.0.5735.90"].items[0].file_name == "chromedriver_win32.zip"


def test_unknown_file_platform_is_rejected():
    with pytest.raises(UnsupportedPlatformError):
        huaweicloud.parse_chromedriver_index({"chromedriver": {"1.0.0.0": {"files": ["/1.0.0.0/notes.txt"]}}})


def test_last_chromedriver_position_is_highest_version(monkeypatch):
    monkeypatch.setattr(huaweicloud.http, "fetch_json", lambda url, proxy=None: INDEX)
    assert huaweicloud.get_last_chromedriver_position().revision == "114.0.5735.90"
