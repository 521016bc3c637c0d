"""Helpers to store an uploaded program archive and unpack it.

`store_upload` writes the multipart upload to a working directory,
`extract_zip_file` unpacks it next to it and `remove_files` removes
both once the submission finished, whatever its outcome.
"""

from __future__ import annotations

import json
import logging
import shutil
import stat
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import Dict, Optional

from ..errors import ArchiveFormatFailure, IOFailure

_LOGGER = logging.getLogger("softwarestore.files")
_CHUNK = 1 << 20


def store_upload(upload, target_dir: Path) -> Path:
    """Copy `upload` (a FastAPI `UploadFile`) to `target_dir/<filename>`.

    The directory is created when missing. Only the final name component
    of the client filename is used.
    """
    target_dir = Path(target_dir)
    target = target_dir / Path(upload.filename or "upload.zip").name
    _LOGGER.debug("Transferring program file to: %s", target)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        upload.file.seek(0)
        with target.open("wb") as fh:
            shutil.copyfileobj(upload.file, fh, _CHUNK)
    except OSError as exc:
        raise IOFailure(f"unable to store upload {target}: {exc}") from exc
    return target


def _member_path(member_name: str) -> PurePosixPath:
    """Validate archive member names so entries stay inside the destination."""
    relative = PurePosixPath(member_name.replace("\\", "/"))
    if relative.is_absolute() or not relative.parts:
        raise ArchiveFormatFailure(f"unsafe path in archive: {member_name}")
    if any(part in {"", ".", ".."} for part in relative.parts):
        raise ArchiveFormatFailure(f"unsafe path in archive: {member_name}")
    return relative


def extract_zip_file(archive: Path, dest_dir: Path) -> Dict[str, Path]:
    """Extract every entry of `archive` under `dest_dir`.

    Returns a mapping of relative entry name (no trailing slash) to the
    created file or directory, directories included, so the caller can
    account for every path it must later remove. Files written before a
    failure are left in place for the caller's cleanup.
    """
    dest_dir = Path(dest_dir)
    extracted: Dict[str, Path] = {}
    try:
        zf = zipfile.ZipFile(archive)
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        raise ArchiveFormatFailure(f"not a readable zip archive: {archive}") from exc
    except OSError as exc:
        raise IOFailure(f"unable to open archive {archive}: {exc}") from exc
    with zf:
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            for member in zf.infolist():
                relative = _member_path(member.filename)
                mode = (member.external_attr >> 16) & 0xFFFF
                if stat.S_IFMT(mode) == stat.S_IFLNK:
                    raise ArchiveFormatFailure(f"unsafe link in archive: {member.filename}")
                target = dest_dir.joinpath(*relative.parts)
                extracted[relative.as_posix()] = target
                if member.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(member, "r") as source, target.open("wb") as out:
                    shutil.copyfileobj(source, out, _CHUNK)
        except (zipfile.BadZipFile, zlib.error, EOFError, RuntimeError, NotImplementedError) as exc:
            # corrupt or truncated members, encrypted entries and unsupported compression
            raise ArchiveFormatFailure(f"unable to read archive {archive}: {exc}") from exc
        except OSError as exc:
            raise IOFailure(f"unable to extract archive {archive}: {exc}") from exc
    _LOGGER.info(
        "archive_extracted %s",
        json.dumps({"archive": str(archive), "entries": len(extracted)}, ensure_ascii=True),
    )
    return extracted


def remove_files(*paths: Optional[Path]) -> None:
    """Best-effort removal of files and directory trees.

    Missing paths and `None` are skipped. A failure on one path is logged
    and does not stop the removal of the others.
    """
    for path in paths:
        if path is None:
            continue
        path = Path(path)
        if not path.exists() and not path.is_symlink():
            continue
        _LOGGER.debug("Removing file or dir: %s", path)
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as exc:
            _LOGGER.error("Unable to remove file or dir: %s, error: %s", path, exc)
