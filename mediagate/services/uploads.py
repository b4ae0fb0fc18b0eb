"""Input types for gateway write operations."""

from __future__ import annotations

import hashlib
import mimetypes
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from mediagate.infra.storage.client import VISIBILITIES, Visibility


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """An uploaded file held in memory."""

    filename: str
    content: bytes
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: str | Path, *, content_type: str | None = None) -> "UploadedFile":
        p = Path(path)
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(
            filename=p.name,
            content=p.read_bytes(),
            content_type=content_type or guessed,
        )

    @property
    def extension(self) -> str:
        return PurePosixPath(self.filename.replace("\\", "/")).suffix.lower()

    def hash_name(self) -> str:
        """Content-addressed name: SHA-1 hex digest of the bytes plus the extension."""
        digest = hashlib.sha1(self.content).hexdigest()
        return f"{digest}{self.extension}"

    def read(self) -> bytes:
        return self.content


@dataclass(frozen=True, slots=True)
class WriteOptions:
    """Destination options for :meth:`StorageGateway.store_file`."""

    path: str | None = None
    file_name: str | None = None
    visibility: Visibility = "public"

    def __post_init__(self) -> None:
        if self.visibility not in VISIBILITIES:
            raise ValueError(f"visibility must be one of {VISIBILITIES}")
