import logging
import os
import stat
import zipfile
from pathlib import Path
from typing import List, Union

from ..errors import ArchiveError

logger = logging.getLogger(__name__)


def _ensure_inside(output_dir: Path, target: Path, member_name: str) -> Path:
    if target != output_dir and output_dir not in target.parents:
        raise ArchiveError(f"Refusing to extract '{member_name}' outside of {output_dir}")
    return target


def _safe_target(output_dir: Path, member_name: str) -> Path:
    return _ensure_inside(output_dir, (output_dir / member_name).resolve(), member_name)


def _is_symlink(info: zipfile.ZipInfo) -> bool:
    return stat.S_ISLNK(info.external_attr >> 16)


def _extract_symlink(archive: zipfile.ZipFile, info: zipfile.ZipInfo, output_dir: Path) -> Path:
    """Recreates a symlink entry. The entry's content is the link target."""
    member = Path(info.filename)
    # The link itself must not be resolved, a previous extraction may have created it
    link_path = _safe_target(output_dir, str(member.parent)) / member.name
    link_target = archive.read(info).decode('utf-8')
    _ensure_inside(output_dir, (link_path.parent / link_target).resolve(), info.filename)

    link_path.parent.mkdir(parents=True, exist_ok=True)
    if link_path.is_symlink() or link_path.is_file():
        link_path.unlink()
    os.symlink(link_target, link_path)
    return link_path


def unzip(zip_file: Union[str, Path]) -> List[Path]:
    """
    Extracts `zip_file` next to itself and returns the extracted file paths.
    Unix permission bits and symlinks recorded in the archive are restored
    (zipfile drops both). Chromium's Mac bundles need the framework symlinks.
    """
    zip_path = Path(zip_file)
    if not zip_path.exists():
        raise ValueError("The specified file does not exist.")
    if not zip_path.name.lower().endswith('.zip'):
        raise ValueError("The specified file is not a valid ZIP file.")

    output_dir = zip_path.parent.resolve()
    extracted: List[Path] = []
    try:
        with zipfile.ZipFile(zip_path) as archive:
            for info in archive.infolist():
                if _is_symlink(info) and os.name == 'posix':
                    extracted.append(_extract_symlink(archive, info, output_dir))
                    continue
                target = _safe_target(output_dir, info.filename)
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as src, open(target, 'wb') as dst:
                    while True:
                        chunk = src.read(1024 * 256)
                        if not chunk:
                            break
                        dst.write(chunk)
                mode = (info.external_attr >> 16) & 0o777
                if mode and os.name == 'posix':
                    os.chmod(target, mode)
                extracted.append(target)
    except (OSError, zipfile.BadZipFile) as e:
        raise ArchiveError("An error occurred during extraction.") from e

    logger.debug(f"Extracted {len(extracted)} files from {zip_path} into {output_dir}")
    return extracted


def ensure_executable(path: Union[str, Path]) -> bool:
    """Adds rwxr-xr-x if the file is not executable yet. Returns False when chmod fails."""
    p = Path(path)
    if os.access(p, os.X_OK):
        return True
    try:
        p.chmod(stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH)
    except OSError as e:
        logger.warning(f"Could not make {p} executable: {e}")
        return False
    return True
