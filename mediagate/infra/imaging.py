"""Image codec used for thumbnail generation.

Dependencies:
    - Pillow
"""

from __future__ import annotations

import io
from typing import BinaryIO, Protocol

from PIL import Image, UnidentifiedImageError


class ImageCodecError(ValueError):
    """Raised when image bytes cannot be decoded, resized or encoded."""


class ImageCodec(Protocol):
    def decode(self, data: bytes) -> Image.Image: ...

    def resize(
        self,
        image: Image.Image,
        width: int,
        height: int,
        allow_upsize: bool = False,
    ) -> Image.Image: ...

    def encode(self, image: Image.Image, fmt: str = "jpg", quality: int = 100) -> BinaryIO: ...


_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "gif": "GIF",
}


class PillowImageCodec:
    """Pillow-backed implementation of :class:`ImageCodec`."""

    def decode(self, data: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ImageCodecError(f"Cannot decode image: {exc}") from exc
        return image

    def resize(
        self,
        image: Image.Image,
        width: int,
        height: int,
        allow_upsize: bool = False,
    ) -> Image.Image:
        """Resize to ``width`` x ``height`` without preserving the aspect ratio.

        When ``allow_upsize`` is False a dimension already smaller than its
        target is kept as is.
        """
        if width <= 0 or height <= 0:
            raise ImageCodecError("width and height must be positive")
        target_width, target_height = width, height
        if not allow_upsize:
            target_width = min(width, image.width)
            target_height = min(height, image.height)
        if (target_width, target_height) == image.size:
            return image.copy()
        return image.resize((target_width, target_height), Image.LANCZOS)

    def encode(self, image: Image.Image, fmt: str = "jpg", quality: int = 100) -> BinaryIO:
        pil_format = _FORMATS.get(fmt.lower())
        if pil_format is None:
            raise ImageCodecError(f"Unsupported image format: {fmt}")
        if pil_format == "JPEG" and image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        stream = io.BytesIO()
        try:
            image.save(stream, format=pil_format, quality=quality)
        except (OSError, ValueError) as exc:
            raise ImageCodecError(f"Cannot encode image: {exc}") from exc
        stream.seek(0)
        return stream


__all__ = ["ImageCodec", "ImageCodecError", "PillowImageCodec"]
