"""Read a checked-out repository into raw entries for the pipeline."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List

from .constants import BINARY_SNIFF_BYTES
from .logging import get_logger
from .models import DeclaredEncoding, RawEntry


def _declared_encoding(data: bytes) -> DeclaredEncoding:
    if b"\x00" in data[:BINARY_SNIFF_BYTES]:
        return DeclaredEncoding.BINARY
    return DeclaredEncoding.UNKNOWN


def _iter_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        dirnames[:] = sorted(name for name in dirnames if not (current_dir / name).is_symlink())
        for filename in sorted(filenames):
            path = current_dir / filename
            if path.is_symlink() or not path.is_file():
                continue
            yield path


class RepoReader:
    """Walks a working tree and returns one :class:`RawEntry` per file.

    Nothing is filtered here; exclusion is the pipeline's job so that every
    dropped path shows up in the skip report.
    """

    def __init__(self) -> None:
        self.logger = get_logger("repo_scanner")

    def read(self, root: str) -> List[RawEntry]:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        entries: List[RawEntry] = []
        for path in _iter_files(root_path):
            rel_path = path.relative_to(root_path).as_posix()
            data = path.read_bytes()
            entries.append(
                RawEntry(path=rel_path, data=data, declared_encoding=_declared_encoding(data))
            )
        self.logger.debug("Read %d files from %s", len(entries), root_path)
        return entries


__all__ = ["RepoReader"]
