import os
import stat
import zipfile

import pytest

from headless_chrome.errors import ArchiveError
from headless_chrome.utils.archive import ensure_executable, unzip


def write_zip(path, entries):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data, mode in entries:
            info = zipfile.ZipInfo(name)
            info.external_attr = (mode & 0xFFFF) << 16
            zf.writestr(info, data)
    return path


def test_unzip_extracts_next_to_archive(tmp_path):
    archive = write_zip(tmp_path / "chrome-linux.zip", [
        ("chrome-linux/chrome", b"#!/bin/sh\n", 0o755),
        ("chrome-linux/resources.pak", b"data", 0o644),
    ])

    extracted = unzip(archive)

    assert sorted(p.name for p in extracted) == ["chrome", "resources.pak"]
    assert (tmp_path / "chrome-linux" / "resources.pak").read_bytes() == b"data"


@pytest.mark.skipif(os.name != "posix", reason="posix permission bits")
def test_unzip_restores_executable_bit(tmp_path):
    archive = write_zip(tmp_path / "driver.zip", [("chromedriver", b"bin", 0o755)])
    unzip(archive)
    assert os.access(tmp_path / "chromedriver", os.X_OK)


def test_unzip_rejects_missing_and_non_zip_files(tmp_path):
    with pytest.raises(ValueError, match="does not exist"):
        unzip(tmp_path / "missing.zip")
    other = tmp_path / "chrome.tar"
    other.write_bytes(b"x")
    with pytest.raises(ValueError, match="not a valid ZIP"):
        unzip(other)


def test_unzip_refuses_entries_outside_target(tmp_path):
    archive = write_zip(tmp_path / "evil.zip", [("../escape.txt", b"x", 0o644)])
    with pytest.raises(ArchiveError):
        unzip(archive)
    assert not (tmp_path.parent / "escape.txt").exists()


def test_corrupt_archive_raises_archive_error(tmp_path):
    broken = tmp_path / "broken.zip"
    broken.write_bytes(b"not a zip at all")
    with pytest.raises(ArchiveError, match="An error occurred during extraction."):
        unzip(broken)


@pytest.mark.skipif(os.name != "posix", reason="posix permission bits")
def test_ensure_executable_adds_mode(tmp_path):
    target = tmp_path / "chrome"
    target.write_bytes(b"bin")
    target.chmod(0o644)
    assert ensure_executable(target)
    assert target.stat().st_mode & stat.S_IXUSR


@pytest.mark.skipif(os.name != "posix", reason="posix symlinks")
def test_unzip_recreates_framework_symlinks(tmp_path):
    archive = write_zip(tmp_path / "chrome-mac.zip", [
        ("Chromium.app/Versions/120.0.0.0/Resources/info.plist", b"plist", 0o644),
        ("Chromium.app/Versions/Current", b"120.0.0.0", stat.S_IFLNK | 0o777),
        ("Chromium.app/Resources", b"Versions/Current/Resources", stat.S_IFLNK | 0o777),
    ])

    unzip(archive)

    current = tmp_path / "Chromium.app" / "Versions" / "Current"
    assert current.is_symlink()
    assert os.readlink(current) == "120.0.0.0"
    assert (tmp_path / "Chromium.app" / "Resources" / "info.plist").read_bytes() == b"plist"

    # Extracting again replaces the existing links
    unzip(archive)
    assert current.is_symlink()


@pytest.mark.skipif(os.name != "posix", reason="posix symlinks")
def test_unzip_refuses_symlinks_pointing_outside_target(tmp_path):
    archive = write_zip(tmp_path / "evil.zip", [("link", b"../../etc", stat.S_IFLNK | 0o777)])
    with pytest.raises(ArchiveError, match="outside of"):
        unzip(archive)
    assert not (tmp_path / "link").is_symlink()
