"""Storage gateway for environment-aware media persistence.

This module provides the application service that mediates every read and
write between application code and the remote object store. Mutating
operations resolve their destination through :class:`PathResolver`, issue a
single store write and then re-query the store for existence; only a
confirmed object counts as success.
"""

from __future__ import annotations

import base64
import logging
import re
import time
from functools import lru_cache
from typing import Callable, Sequence

import requests

from mediagate.common.config import Settings, get_settings
from mediagate.infra.filesystem import FileReader, LocalFileReader
from mediagate.infra.http import HttpFetcher, RequestsFetcher
from mediagate.infra.imaging import ImageCodec, ImageCodecError, PillowImageCodec
from mediagate.infra.observability.metrics import LATENCY, OPERATIONS
from mediagate.infra.storage.client import StorageClient, StorageError, Visibility
from mediagate.infra.storage.s3_client import S3StorageClient
from mediagate.infra.tokens import random_token

from .base import StorageBackendNotConfiguredError
from .path_resolver import PathResolver
from .results import StorageErrorKind, StorageResult
from .uploads import UploadedFile, WriteOptions

logger = logging.getLogger("storage")

DEFAULT_THUMBNAIL_WIDTH = 230
DEFAULT_THUMBNAIL_HEIGHT = 335
THUMBNAIL_PREFIX = "thumbnail_"
THUMBNAIL_FORMAT = "jpg"
THUMBNAIL_QUALITY = 100
GENERATED_NAME_LENGTH = 40
GENERATED_EXTENSION = ".jpg"

_BASE64_INVALID_CHARS = re.compile(r"[^A-Za-z0-9+/]")


def _decode_base64_payload(payload: str) -> bytes:
    """Decode leniently: foreign characters are dropped and padding is repaired."""
    cleaned = _BASE64_INVALID_CHARS.sub("", payload)
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    cleaned += "=" * (-len(cleaned) % 4)
    return base64.b64decode(cleaned)


class StorageGateway:
    """Application service for object storage with write-then-verify semantics.

    All collaborators are injected; :func:`build_storage_gateway` wires the
    production ones from settings.
    """

    def __init__(
        self,
        storage: StorageClient,
        *,
        resolver: PathResolver,
        file_reader: FileReader | None = None,
        image_codec: ImageCodec | None = None,
        http_fetcher: HttpFetcher | None = None,
        token_factory: Callable[[int], str] = random_token,
        thumbnail_size: tuple[int, int] = (DEFAULT_THUMBNAIL_WIDTH, DEFAULT_THUMBNAIL_HEIGHT),
        enable_metrics: bool = True,
    ) -> None:
        self._storage = storage
        self._resolver = resolver
        self._files = file_reader or LocalFileReader()
        self._codec = image_codec or PillowImageCodec()
        self._http = http_fetcher or RequestsFetcher()
        self._token = token_factory
        self._thumbnail_size = thumbnail_size
        self._enable_metrics = enable_metrics

    @property
    def resolver(self) -> PathResolver:
        return self._resolver

    def close(self) -> None:
        """Release the HTTP fetcher's connection pool, when it has one."""
        close = getattr(self._http, "close", None)
        if callable(close):
            close()

    def get_active_path(self, path: str | None) -> str:
        """Return the environment-rooted key for a logical path."""
        return self._resolver.resolve(path)

    def retrieve_file(self, path: str) -> bytes:
        """Return the content stored at ``path``.

        Raises:
            StorageError: If the object doesn't exist or the read fails.
        """
        logger.debug("storage_retrieve path=%s", path)
        return self._storage.get(path)

    def file_exists(self, path: str) -> bool:
        try:
            return bool(self._storage.exists(path))
        except StorageError as exc:
            logger.warning("storage_exists_failed path=%s error=%s", path, exc)
            return False

    def delete_file(self, path: str | Sequence[str] | None) -> StorageResult:
        """Delete one object or a collection of objects.

        Empty input is rejected before the store is contacted.
        """
        started = time.perf_counter()
        if not path:
            return self._finish(
                "delete_file",
                started,
                StorageResult.failure(StorageErrorKind.INVALID_INPUT, "path is required"),
            )
        target: str | list[str] = path if isinstance(path, str) else list(path)
        try:
            deleted = self._storage.delete(target)
        except StorageError as exc:
            return self._finish(
                "delete_file",
                started,
                StorageResult.failure(StorageErrorKind.REMOTE_WRITE_FAILURE, str(exc)),
            )
        if not deleted:
            return self._finish(
                "delete_file",
                started,
                StorageResult.failure(
                    StorageErrorKind.REMOTE_WRITE_FAILURE, "store did not confirm the delete"
                ),
            )
        return self._finish("delete_file", started, StorageResult.success())

    def delete_directory(self, directory: str) -> StorageResult:
        started = time.perf_counter()
        if not directory or not directory.strip("/"):
            return self._finish(
                "delete_directory",
                started,
                StorageResult.failure(
                    StorageErrorKind.INVALID_INPUT, "directory prefix is required"
                ),
            )
        try:
            deleted = self._storage.delete_directory(directory)
        except StorageError as exc:
            return self._finish(
                "delete_directory",
                started,
                StorageResult.failure(StorageErrorKind.REMOTE_WRITE_FAILURE, str(exc)),
            )
        if not deleted:
            return self._finish(
                "delete_directory",
                started,
                StorageResult.failure(
                    StorageErrorKind.REMOTE_WRITE_FAILURE, "store did not confirm the delete"
                ),
            )
        return self._finish("delete_directory", started, StorageResult.success(directory))

    def get_public_url(self, path: str) -> str:
        return self._storage.url(path)

    def get_file_size(self, path: str) -> int:
        """Return the object size in bytes, or 0 when nothing is stored at ``path``."""
        if not self.file_exists(path):
            return 0
        return int(self._storage.size(path))

    def store_file(
        self, file: UploadedFile | None, options: WriteOptions | None = None
    ) -> StorageResult:
        """Store an uploaded file under ``options.path``.

        With ``options.file_name`` the object keeps that name, otherwise a
        content-addressed name is derived from the file bytes.
        """
        started = time.perf_counter()
        if file is None:
            return self._finish(
                "store_file",
                started,
                StorageResult.failure(StorageErrorKind.INVALID_INPUT, "file is required"),
            )
        options = options or WriteOptions()
        data = file.read()

        if options.file_name:
            name = options.file_name
            key = self._resolver.join(options.path, name)
            result = self._write_then_verify(
                key, lambda: self._storage.put_named(key, data, name, options.visibility)
            )
        else:
            key = self._resolver.join(options.path, file.hash_name())
            result = self._write_then_verify(
                key, lambda: self._storage.put(key, data, options.visibility)
            )
        return self._finish("store_file", started, result)

    def move_file_to_s3(
        self,
        local_file_path: str,
        s3_path: str,
        visibility: Visibility = "public",
    ) -> StorageResult:
        """Copy a local file into the store at the resolved ``s3_path``."""
        started = time.perf_counter()
        if not self._files.exists(local_file_path):
            return self._finish(
                "move_file_to_s3",
                started,
                StorageResult.failure(
                    StorageErrorKind.LOCAL_RESOURCE_MISSING,
                    f"local file not found: {local_file_path}",
                ),
            )
        try:
            content = self._files.read(local_file_path)
        except OSError as exc:
            return self._finish(
                "move_file_to_s3",
                started,
                StorageResult.failure(StorageErrorKind.LOCAL_RESOURCE_MISSING, str(exc)),
            )

        key = self._resolver.resolve(s3_path)
        result = self._write_then_verify(
            key, lambda: self._storage.put(key, content, visibility)
        )
        return self._finish("move_file_to_s3", started, result)

    def resize_and_store_uploaded_image(
        self,
        image: UploadedFile | None,
        path: str | None,
        width: int | None = None,
        height: int | None = None,
    ) -> StorageResult:
        """Store a resized JPEG thumbnail of ``image`` inside ``path``.

        The image is never enlarged; a dimension smaller than its target is
        kept as is.
        """
        started = time.perf_counter()
        if not path or image is None:
            return self._finish(
                "resize_and_store_uploaded_image",
                started,
                StorageResult.failure(
                    StorageErrorKind.INVALID_INPUT, "path and image are required"
                ),
            )
        target_width = width or self._thumbnail_size[0]
        target_height = height or self._thumbnail_size[1]
        file_name = THUMBNAIL_PREFIX + image.hash_name()

        try:
            decoded = self._codec.decode(image.read())
            resized = self._codec.resize(
                decoded, target_width, target_height, allow_upsize=False
            )
            encoded = self._codec.encode(resized, THUMBNAIL_FORMAT, THUMBNAIL_QUALITY).read()
        except ImageCodecError as exc:
            return self._finish(
                "resize_and_store_uploaded_image",
                started,
                StorageResult.failure(StorageErrorKind.INVALID_INPUT, str(exc)),
            )

        key = self._resolver.join(path, file_name)
        result = self._write_then_verify(
            key, lambda: self._storage.put(key, encoded, "public")
        )
        return self._finish("resize_and_store_uploaded_image", started, result)

    def duplicate_file(self, source_path: str, destination_path: str) -> StorageResult:
        """Copy an already stored object to the resolved ``destination_path``."""
        started = time.perf_counter()
        destination = self._resolver.resolve(destination_path)
        if not source_path or not self.file_exists(source_path):
            return self._finish(
                "duplicate_file",
                started,
                StorageResult.failure(
                    StorageErrorKind.SOURCE_MISSING, f"source not found: {source_path}"
                ),
            )
        result = self._write_then_verify(
            destination, lambda: self._storage.copy(source_path, destination)
        )
        return self._finish("duplicate_file", started, result)

    def store_base64_to_s3(
        self,
        data: str | None,
        path: str | None,
        prefix: str = "",
        visibility: Visibility = "public",
    ) -> StorageResult:
        """Decode a ``data:<mime>;base64,<payload>`` string and store it as a JPEG name."""
        started = time.perf_counter()
        if not data:
            return self._finish(
                "store_base64_to_s3",
                started,
                StorageResult.failure(StorageErrorKind.INVALID_INPUT, "data is required"),
            )
        parts = data.split(",")
        if len(parts) < 2:
            return self._finish(
                "store_base64_to_s3",
                started,
                StorageResult.failure(
                    StorageErrorKind.INVALID_INPUT, "data is not a header,payload data URI"
                ),
            )

        content = _decode_base64_payload(parts[1])
        key = self._resolver.join(path, self._generated_name(prefix))
        result = self._write_then_verify(
            key, lambda: self._storage.put(key, content, visibility)
        )
        return self._finish("store_base64_to_s3", started, result)

    def store_remote_image(
        self,
        url: str | None,
        path: str | None,
        prefix: str = "",
        visibility: Visibility = "public",
    ) -> StorageResult:
        """Download ``url`` and store the body under a generated JPEG name."""
        started = time.perf_counter()
        if not url:
            return self._finish(
                "store_remote_image",
                started,
                StorageResult.failure(StorageErrorKind.INVALID_INPUT, "url is required"),
            )
        try:
            content = self._http.get(url)
        except (requests.RequestException, OSError) as exc:
            return self._finish(
                "store_remote_image",
                started,
                StorageResult.failure(StorageErrorKind.REMOTE_READ_FAILURE, str(exc)),
            )

        key = self._resolver.join(path, self._generated_name(prefix))
        result = self._write_then_verify(
            key, lambda: self._storage.put(key, content, visibility)
        )
        return self._finish("store_remote_image", started, result)

    def _generated_name(self, prefix: str) -> str:
        return f"{prefix or ''}{self._token(GENERATED_NAME_LENGTH)}{GENERATED_EXTENSION}"

    def _write_then_verify(self, key: str, write: Callable[[], bool]) -> StorageResult:
        """Run ``write`` once, then confirm that ``key`` exists in the store.

        A failed write skips the existence probe. A failed probe is reported
        without rolling back the write.
        """
        try:
            acknowledged = write()
        except StorageError as exc:
            return StorageResult.failure(StorageErrorKind.REMOTE_WRITE_FAILURE, str(exc))
        if not acknowledged:
            return StorageResult.failure(
                StorageErrorKind.REMOTE_WRITE_FAILURE, "store did not acknowledge the write"
            )

        try:
            exists = self._storage.exists(key)
        except StorageError as exc:
            return StorageResult.failure(
                StorageErrorKind.REMOTE_VERIFICATION_FAILURE, str(exc)
            )
        if not exists:
            return StorageResult.failure(
                StorageErrorKind.REMOTE_VERIFICATION_FAILURE,
                f"object not visible after write: {key}",
            )
        return StorageResult.success(key)

    def _finish(self, operation: str, started: float, result: StorageResult) -> StorageResult:
        elapsed = time.perf_counter() - started
        if self._enable_metrics:
            OPERATIONS.labels(operation=operation, outcome=result.outcome).inc()
            LATENCY.labels(operation=operation).observe(elapsed)

        payload = {
            "operation": operation,
            "outcome": result.outcome,
            "path": result.path,
            "duration_ms": round(elapsed * 1000, 2),
        }
        if result.ok:
            logger.info(
                "storage_operation_succeeded operation=%s path=%s",
                operation,
                result.path,
                extra={"extra": payload},
            )
        else:
            payload["detail"] = result.detail
            logger.warning(
                "storage_operation_failed operation=%s outcome=%s detail=%s",
                operation,
                result.outcome,
                result.detail,
                extra={"extra": payload},
            )
        return result


def _build_storage_client(settings: Settings) -> StorageClient:
    """Build the S3 storage client, validating the required configuration."""
    if not settings.S3_BUCKET:
        raise StorageBackendNotConfiguredError("S3_BUCKET is required")
    if bool(settings.S3_ACCESS_KEY_ID) != bool(settings.S3_SECRET_ACCESS_KEY):
        raise StorageBackendNotConfiguredError(
            "S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY must be set together"
        )
    return S3StorageClient(settings=settings)


def build_storage_gateway(
    settings: Settings | None = None,
    *,
    storage_client: StorageClient | None = None,
) -> StorageGateway:
    """Wire a gateway with the production collaborators described by ``settings``."""
    settings = settings or get_settings()
    return StorageGateway(
        storage_client or _build_storage_client(settings),
        resolver=PathResolver.from_settings(settings),
        file_reader=LocalFileReader(),
        image_codec=PillowImageCodec(),
        http_fetcher=RequestsFetcher(timeout=settings.REMOTE_FETCH_TIMEOUT),
        thumbnail_size=(settings.THUMBNAIL_WIDTH, settings.THUMBNAIL_HEIGHT),
        enable_metrics=settings.ENABLE_METRICS,
    )


@lru_cache(maxsize=1)
def get_storage_gateway() -> StorageGateway:
    return build_storage_gateway()
