from __future__ import annotations

import os

import pytest

from mediagate.common.config import get_settings
from mediagate.services.uploads import UploadedFile
from tests.helpers import FakeFetcher, make_gateway, png_bytes
from tests.services.mock_storage import MockStorageClient

_SETTINGS_ENV = (
    "STORAGE_STAGING",
    "STORAGE_LIVE_PREFIX",
    "STORAGE_STAGING_PREFIX",
    "S3_BUCKET",
    "S3_REGION",
    "S3_ENDPOINT_URL",
    "S3_ACCESS_KEY_ID",
    "S3_SECRET_ACCESS_KEY",
    "S3_USE_SSL",
    "S3_ADDRESSING_STYLE",
    "S3_PUBLIC_URL",
    "THUMBNAIL_WIDTH",
    "THUMBNAIL_HEIGHT",
    "REMOTE_FETCH_TIMEOUT",
    "ENABLE_METRICS",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests independent of the developer's environment and .env file."""
    for key in _SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("mediagate.common.config.ENV_FILE", tmp_path / ".env")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    yield
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def mock_storage():
    return MockStorageClient()


@pytest.fixture()
def fetcher():
    return FakeFetcher()


@pytest.fixture()
def gateway(mock_storage, fetcher):
    return make_gateway(mock_storage, http_fetcher=fetcher)


@pytest.fixture()
def staging_gateway(mock_storage, fetcher):
    return make_gateway(mock_storage, staging=True, http_fetcher=fetcher)


@pytest.fixture()
def uploaded_image():
    return UploadedFile(
        filename="photo.png",
        content=png_bytes(600, 800),
        content_type="image/png",
    )


@pytest.fixture()
def local_file(tmp_path):
    path = tmp_path / "report.pdf"
    path.write_bytes(b"%PDF-1.4 local")
    return os.fspath(path)
