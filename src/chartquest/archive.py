"""Safe extraction of gzip-compressed chart archives."""

from __future__ import annotations

import gzip
import logging
import os
import re
import shutil
import tarfile
import zlib
from pathlib import Path

from chartquest.errors import ExtractionError

logger = logging.getLogger(__name__)

DIR_MODE = 0o755
FILE_MODE = 0o644
EXEC_MODE = 0o755

_WINDOWS_DRIVE = re.compile(r"^[A-Za-z]:")


def resolve_member_path(dest_root: Path, name: str) -> Path | None:
    """Resolve an archive entry name under ``dest_root``.

    Returns None when the entry would land outside ``dest_root``: absolute
    names, drive letters and any ``..`` escape, with backslashes treated as
    separators.
    """
    normalized: str = name.replace("\\", "/")
    if normalized.startswith("/") or _WINDOWS_DRIVE.match(normalized):
        return None

    target: Path = (dest_root / normalized).resolve()
    if target != dest_root and not target.is_relative_to(dest_root):
        return None
    return target


def extract_archive(archive_path: Path, dest_dir: Path) -> None:
    """Extract a .tgz archive into ``dest_dir``, one entry at a time.

    Only directories and regular files are written. Links, devices and any
    entry resolving outside ``dest_dir`` are skipped.

    Raises:
        ExtractionError: if the archive cannot be opened, is not a valid
            gzip/tar stream, or an I/O error occurs while writing.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest_root: Path = dest_dir.resolve()

    try:
        fileobj = archive_path.open("rb")
    except OSError as e:
        raise ExtractionError("Chart archive could not be opened") from e

    extracted = 0
    try:
        with fileobj, tarfile.open(fileobj=fileobj, mode="r|gz") as tar:
            for member in tar:
                if _extract_member(tar, member, dest_root):
                    extracted += 1
    except (tarfile.TarError, gzip.BadGzipFile, EOFError, zlib.error) as e:
        raise ExtractionError(
            "Chart archive is not a valid gzip-compressed tar"
        ) from e
    except OSError as e:
        raise ExtractionError("I/O error while extracting chart archive") from e

    logger.debug("Extracted %d entries from chart archive", extracted)


def _extract_member(tar: tarfile.TarFile, member: tarfile.TarInfo, dest_root: Path) -> bool:
    target: Path | None = resolve_member_path(dest_root, member.name)
    if target is None:
        logger.warning("Skipping archive entry outside destination: %r", member.name)
        return False

    if member.isdir():
        target.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        return True

    if not member.isfile():
        logger.debug("Skipping non-regular archive entry: %r", member.name)
        return False

    if target == dest_root:
        return False

    target.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    source = tar.extractfile(member)
    if source is None:
        return False

    with source, target.open("wb") as out:
        shutil.copyfileobj(source, out)
    os.chmod(target, EXEC_MODE if member.mode & 0o111 else FILE_MODE)
    return True
