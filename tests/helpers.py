"""Shared builders for gateway tests."""

from __future__ import annotations

import io

from PIL import Image

from mediagate.services.path_resolver import PathResolver
from mediagate.services.storage_gateway import StorageGateway


class FakeFetcher:
    def __init__(self, content: bytes = b"remote-bytes", error: Exception | None = None):
        self.content = content
        self.error = error
        self.urls: list[str] = []

    def get(self, url: str) -> bytes:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.content


def make_gateway(storage, *, staging: bool = False, **kwargs) -> StorageGateway:
    kwargs.setdefault("token_factory", lambda length: "t" * length)
    kwargs.setdefault("enable_metrics", False)
    return StorageGateway(storage, resolver=PathResolver(staging), **kwargs)


def png_bytes(width: int, height: int, mode: str = "RGB") -> bytes:
    color = (200, 30, 30, 255) if mode == "RGBA" else (200, 30, 30)
    stream = io.BytesIO()
    Image.new(mode, (width, height), color).save(stream, format="PNG")
    return stream.getvalue()
