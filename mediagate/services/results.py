from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StorageErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    LOCAL_RESOURCE_MISSING = "local_resource_missing"
    SOURCE_MISSING = "source_missing"
    REMOTE_WRITE_FAILURE = "remote_write_failure"
    REMOTE_VERIFICATION_FAILURE = "remote_verification_failure"
    REMOTE_READ_FAILURE = "remote_read_failure"


@dataclass(frozen=True, slots=True)
class StorageResult:
    """Outcome of a gateway operation.

    Truthy on success, so callers that only care whether an operation worked
    can keep writing ``if gateway.store_file(...):``.
    """

    path: str | None = None
    error: StorageErrorKind | None = None
    detail: str | None = None

    @classmethod
    def success(cls, path: str | None = None) -> "StorageResult":
        return cls(path=path)

    @classmethod
    def failure(cls, error: StorageErrorKind, detail: str | None = None) -> "StorageResult":
        return cls(error=error, detail=detail)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def outcome(self) -> str:
        return "success" if self.error is None else self.error.value
