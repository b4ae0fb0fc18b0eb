from .base import ServiceError, StorageBackendNotConfiguredError
from .path_resolver import PathResolver
from .results import StorageErrorKind, StorageResult
from .storage_gateway import StorageGateway, build_storage_gateway, get_storage_gateway
from .uploads import UploadedFile, WriteOptions

__all__ = [
    "PathResolver",
    "ServiceError",
    "StorageBackendNotConfiguredError",
    "StorageErrorKind",
    "StorageGateway",
    "StorageResult",
    "UploadedFile",
    "WriteOptions",
    "build_storage_gateway",
    "get_storage_gateway",
]
