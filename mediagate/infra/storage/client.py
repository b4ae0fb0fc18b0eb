"""Storage client protocol and data types.

This module defines the abstract interface the gateway expects from a remote
blob store: write, read, existence probe, delete, copy, size and public URL.
"""

from __future__ import annotations

from typing import Literal, Protocol, Sequence

Visibility = Literal["public", "private"]

VISIBILITIES: tuple[str, ...] = ("public", "private")


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Paths are object keys relative to the bucket root. Implementations raise
    StorageError for transport or service failures; boolean return values
    report the store's own acknowledgement.
    """

    def put(self, path: str, data: bytes, visibility: Visibility = "public") -> bool:
        """Write an object at exactly ``path``, overwriting any previous one.

        Args:
            path: Object key.
            data: Object content.
            visibility: ACL applied to the object.

        Returns:
            True when the store acknowledged the write.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def put_named(
        self,
        path: str,
        data: bytes,
        name: str,
        visibility: Visibility = "public",
    ) -> bool:
        """Write an object at ``path`` carrying ``name`` as its download name.

        Args:
            path: Object key.
            data: Object content.
            name: File name exposed through Content-Disposition.
            visibility: ACL applied to the object.

        Returns:
            True when the store acknowledged the write.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def get(self, path: str) -> bytes:
        """Read the full content of an object.

        Raises:
            StorageError: If the object doesn't exist or the operation fails.
        """
        ...

    def exists(self, path: str) -> bool:
        """Return True if an object is stored at ``path``.

        Raises:
            StorageError: If the store could not answer.
        """
        ...

    def delete(self, path: str | Sequence[str]) -> bool:
        """Delete one object or a collection of objects.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def delete_directory(self, prefix: str) -> bool:
        """Delete every object stored under ``prefix``.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def copy(self, source: str, destination: str) -> bool:
        """Server-side copy of ``source`` to ``destination``.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def size(self, path: str) -> int:
        """Return the object size in bytes.

        Raises:
            StorageError: If the object doesn't exist or the operation fails.
        """
        ...

    def url(self, path: str) -> str:
        """Return the public URL of ``path``. Existence is not checked."""
        ...
