"""Durable storage for the files of accepted programs.

The submission pipeline only depends on the `FileTransfer` protocol;
`LocalFileTransfer` copies files into a directory tree on this host,
one directory per program.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Mapping, Protocol

from ..errors import IOFailure

_LOGGER = logging.getLogger("softwarestore.files")
_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._ -]+')


def sanitize_dir_name(name: str) -> str:
    """Turn a program name into a single safe directory name."""
    cleaned = _UNSAFE_CHARS.sub('_', name).strip(' .')
    return cleaned[:100] or 'program'


class FileTransfer(Protocol):
    def upload_files(self, files: Mapping[str, Path], target_dir_name: str) -> None:
        ...


class LocalFileTransfer:
    """Copy extracted program files below `root/<program name>/`."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def target_dir(self, target_dir_name: str) -> Path:
        return self.root / sanitize_dir_name(target_dir_name)

    def upload_files(self, files: Mapping[str, Path], target_dir_name: str) -> None:
        target_root = self.target_dir(target_dir_name)
        copied = 0
        try:
            target_root.mkdir(parents=True, exist_ok=True)
            for relative, source in sorted(files.items()):
                destination = target_root.joinpath(*Path(relative).parts)
                if source.is_dir():
                    destination.mkdir(parents=True, exist_ok=True)
                    continue
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(source, destination)
                copied += 1
        except OSError as exc:
            raise IOFailure(f"unable to transfer files to {target_root}: {exc}") from exc
        _LOGGER.info(
            "files_transferred %s",
            json.dumps({"target": str(target_root), "files": copied}, ensure_ascii=True),
        )
