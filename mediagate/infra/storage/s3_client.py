"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence
from urllib.parse import quote

from mediagate.infra.storage.client import StorageError, Visibility

if TYPE_CHECKING:
    from mediagate.common.config import Settings

# S3 DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000

_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}

_ACL_BY_VISIBILITY = {
    "public": "public-read",
    "private": "private",
}


def _error_code(exc: Exception) -> str | None:
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    code = response.get("Error", {}).get("Code")
    return str(code) if code is not None else None


def _acl_for(visibility: Visibility) -> str:
    try:
        return _ACL_BY_VISIBILITY[visibility]
    except KeyError as exc:
        raise StorageError(f"Unsupported visibility: {visibility}") from exc


def _content_disposition(name: str) -> str:
    safe_name = name.replace('"', '\\"')
    return f'inline; filename="{safe_name}"'


def _chunks(keys: Sequence[str], size: int) -> list[list[str]]:
    return [list(keys[i : i + size]) for i in range(0, len(keys), size)]


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations against a single bucket.
    """

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Application settings containing S3 configuration.

        Raises:
            StorageError: If boto3 is not installed or no bucket is configured.
        """
        if not settings.S3_BUCKET:
            raise StorageError("S3_BUCKET is required")
        self._settings = settings
        self._bucket = settings.S3_BUCKET
        self._client = self._build_client(settings)

    @property
    def bucket(self) -> str:
        return self._bucket

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        addressing_style = (settings.S3_ADDRESSING_STYLE or "auto").strip().lower()
        config = Config(s3={"addressing_style": addressing_style})

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def put(self, path: str, data: bytes, visibility: Visibility = "public") -> bool:
        """Write an object at exactly ``path``."""
        return self._put_object(
            {"Bucket": self._bucket, "Key": path, "Body": data, "ACL": _acl_for(visibility)}
        )

    def put_named(
        self,
        path: str,
        data: bytes,
        name: str,
        visibility: Visibility = "public",
    ) -> bool:
        """Write an object at ``path`` with ``name`` as its download name."""
        return self._put_object(
            {
                "Bucket": self._bucket,
                "Key": path,
                "Body": data,
                "ACL": _acl_for(visibility),
                "ContentDisposition": _content_disposition(name),
            }
        )

    def _put_object(self, params: dict[str, Any]) -> bool:
        try:
            response = self._client.put_object(**params)
        except Exception as exc:
            raise StorageError(f"Failed to put object: {exc}") from exc
        return bool(response.get("ETag")) if isinstance(response, dict) else False

    def get(self, path: str) -> bytes:
        """Read the full content of an object."""
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=path)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except Exception as exc:
            raise StorageError(f"Failed to get object: {exc}") from exc

    def exists(self, path: str) -> bool:
        """Return True if an object is stored at ``path``."""
        try:
            self._client.head_object(Bucket=self._bucket, Key=path)
        except Exception as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES:
                return False
            raise StorageError(f"Failed to get object metadata: {exc}") from exc
        return True

    def delete(self, path: str | Sequence[str]) -> bool:
        """Delete one object or a collection of objects."""
        if isinstance(path, str):
            try:
                self._client.delete_object(Bucket=self._bucket, Key=path)
            except Exception as exc:
                raise StorageError(f"Failed to delete object: {exc}") from exc
            return True
        return self._delete_keys(list(path))

    def _delete_keys(self, keys: list[str]) -> bool:
        ok = True
        for batch in _chunks(keys, DELETE_BATCH_SIZE):
            try:
                response = self._client.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
                )
            except Exception as exc:
                raise StorageError(f"Failed to delete objects: {exc}") from exc
            if response.get("Errors"):
                ok = False
        return ok

    def delete_directory(self, prefix: str) -> bool:
        """Delete every object stored under ``prefix``."""
        normalized = prefix.strip("/")
        if normalized:
            normalized += "/"
        keys: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=normalized):
                keys.extend(item["Key"] for item in page.get("Contents", []))
        except Exception as exc:
            raise StorageError(f"Failed to list objects: {exc}") from exc
        if not keys:
            return True
        return self._delete_keys(keys)

    def copy(self, source: str, destination: str) -> bool:
        """Server-side copy of ``source`` to ``destination``."""
        try:
            self._client.copy_object(
                Bucket=self._bucket,
                Key=destination,
                CopySource={"Bucket": self._bucket, "Key": source},
            )
        except Exception as exc:
            raise StorageError(f"Failed to copy object: {exc}") from exc
        return True

    def size(self, path: str) -> int:
        """Return the object size in bytes."""
        try:
            response = self._client.head_object(Bucket=self._bucket, Key=path)
        except Exception as exc:
            raise StorageError(f"Failed to get object metadata: {exc}") from exc

        size = response.get("ContentLength")
        return int(size) if size is not None else 0

    def url(self, path: str) -> str:
        """Return the public URL of ``path``."""
        key = quote(path.lstrip("/"))
        if self._settings.S3_PUBLIC_URL:
            return f"{self._settings.S3_PUBLIC_URL.rstrip('/')}/{key}"
        if self._settings.S3_ENDPOINT_URL:
            return f"{self._settings.S3_ENDPOINT_URL.rstrip('/')}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._settings.S3_REGION}.amazonaws.com/{key}"
