"""Local filesystem reader used to migrate files into object storage."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class FileReader(Protocol):
    def exists(self, path: str) -> bool: ...

    def read(self, path: str) -> bytes: ...


class LocalFileReader:
    """Pathlib-based reader, optionally anchored to a base directory."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = root

    def _path(self, path: str) -> Path:
        p = Path(path)
        if self.root is not None and not p.is_absolute():
            return self.root / p
        return p

    def exists(self, path: str) -> bool:
        """Return True if ``path`` is an existing regular file."""
        if not path:
            return False
        return self._path(path).is_file()

    def read(self, path: str) -> bytes:
        return self._path(path).read_bytes()


__all__ = ["FileReader", "LocalFileReader"]
