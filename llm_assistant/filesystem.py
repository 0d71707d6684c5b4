"""Filesystem capability used by context building and the artifact pipeline."""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """
    Minimal filesystem surface the core depends on.

    ``read`` raises OSError on permission problems; callers decide whether
    that is fatal.
    """

    def enumerate(self, root: Path) -> Iterator[Path]:
        ...

    def read(self, path: Path) -> bytes:
        ...

    def size(self, path: Path) -> int:
        ...

    def write(self, path: Path, content: str) -> None:
        ...

    def exists(self, path: Path) -> bool:
        ...

    def copy(self, path: Path, backup_path: Path) -> None:
        ...

    def delete(self, path: Path) -> None:
        ...


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def enumerate(self, root: Path) -> Iterator[Path]:
        """Yield every regular file under ``root`` in sorted order."""
        for path in sorted(Path(root).rglob("*")):
            if path.is_file():
                yield path

    def read(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def size(self, path: Path) -> int:
        return Path(path).stat().st_size

    def write(self, path: Path, content: str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def copy(self, path: Path, backup_path: Path) -> None:
        shutil.copy2(path, backup_path)

    def delete(self, path: Path) -> None:
        Path(path).unlink(missing_ok=True)


__all__ = ["FileSystem", "LocalFileSystem"]
