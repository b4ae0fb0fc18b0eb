from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_LIVE_PREFIX = "live/"
DEFAULT_STAGING_PREFIX = "staging/"


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass
class Settings:
    STORAGE_STAGING: bool = False
    STORAGE_LIVE_PREFIX: str = DEFAULT_LIVE_PREFIX
    STORAGE_STAGING_PREFIX: str = DEFAULT_STAGING_PREFIX
    S3_BUCKET: str | None = None
    S3_REGION: str = "us-east-1"
    S3_ENDPOINT_URL: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str = "auto"
    S3_PUBLIC_URL: str | None = None
    THUMBNAIL_WIDTH: int = 230
    THUMBNAIL_HEIGHT: int = 335
    REMOTE_FETCH_TIMEOUT: float | None = None
    ENABLE_METRICS: bool = True

    def __post_init__(self) -> None:
        live = self.STORAGE_LIVE_PREFIX.strip("/")
        staging = self.STORAGE_STAGING_PREFIX.strip("/")
        if not live or not staging:
            raise ValueError(
                "STORAGE_LIVE_PREFIX and STORAGE_STAGING_PREFIX must not be empty."
            )
        if live == staging:
            raise ValueError(
                "STORAGE_LIVE_PREFIX and STORAGE_STAGING_PREFIX must differ."
            )
        if self.THUMBNAIL_WIDTH <= 0 or self.THUMBNAIL_HEIGHT <= 0:
            raise ValueError("THUMBNAIL_WIDTH and THUMBNAIL_HEIGHT must be positive.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            STORAGE_STAGING=_as_bool(
                os.environ.get("STORAGE_STAGING"), cls.STORAGE_STAGING
            ),
            STORAGE_LIVE_PREFIX=os.environ.get(
                "STORAGE_LIVE_PREFIX", cls.STORAGE_LIVE_PREFIX
            ),
            STORAGE_STAGING_PREFIX=os.environ.get(
                "STORAGE_STAGING_PREFIX", cls.STORAGE_STAGING_PREFIX
            ),
            S3_BUCKET=os.environ.get("S3_BUCKET") or None,
            S3_REGION=os.environ.get("S3_REGION", cls.S3_REGION),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL") or None,
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY"),
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            S3_PUBLIC_URL=os.environ.get("S3_PUBLIC_URL") or None,
            THUMBNAIL_WIDTH=int(
                os.environ.get("THUMBNAIL_WIDTH", cls.THUMBNAIL_WIDTH)
            ),
            THUMBNAIL_HEIGHT=int(
                os.environ.get("THUMBNAIL_HEIGHT", cls.THUMBNAIL_HEIGHT)
            ),
            REMOTE_FETCH_TIMEOUT=_as_optional_float(
                os.environ.get("REMOTE_FETCH_TIMEOUT")
            ),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
