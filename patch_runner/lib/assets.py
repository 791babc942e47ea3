from __future__ import annotations

import logging
import os
import shutil
import stat
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import List

from ..errors import DownloadFailed, PermissionDenied

logger = logging.getLogger(__name__)


def _member_path(dest: Path, name: str) -> Path:
    rel = PurePosixPath(name.replace("\\", "/"))
    if rel.is_absolute() or ".." in rel.parts:
        raise DownloadFailed(f"Archive member escapes the install directory: {name}")
    return dest.joinpath(*rel.parts)


def _apply_mode(info: zipfile.ZipInfo, out: Path) -> None:
    if os.name == "nt":
        return
    mode = (info.external_attr >> 16) & 0o777
    if "Contents/MacOS" in info.filename:
        mode |= 0o755
    if mode:
        out.chmod(mode | stat.S_IRUSR | stat.S_IWUSR)


def extract_zip(archive: str | Path, dest: str | Path) -> List[Path]:
    """Extract every member in archive order and return the created paths in that order."""

    a = Path(archive)
    d = Path(dest)
    extracted: List[Path] = []

    try:
        zf = zipfile.ZipFile(a)
    except zipfile.BadZipFile as e:
        raise DownloadFailed(f"Downloaded package is not a valid ZIP archive: {e}") from e

    with zf:
        try:
            d.mkdir(parents=True, exist_ok=True)
            for info in zf.infolist():
                out = _member_path(d, info.filename)
                if info.is_dir():
                    out.mkdir(parents=True, exist_ok=True)
                else:
                    out.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(info) as src, open(out, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    _apply_mode(info, out)
                logger.debug("Extracted: %s", out)
                extracted.append(out)
        except PermissionError as e:
            raise PermissionDenied(f"Cannot write {e.filename or d}: {e.strerror or e}") from e
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise DownloadFailed(f"Downloaded package is corrupt: {e}") from e
        except OSError as e:
            raise DownloadFailed(f"Cannot extract package into {d}: {e.strerror or e}") from e

    logger.info("Extracted %d entries from %s into %s", len(extracted), a, d)
    return extracted
