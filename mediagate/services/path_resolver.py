"""Environment-aware object key resolution.

Logical paths used by application code are mapped onto the bucket namespace
by stripping the legacy ``/media/`` segment and prefixing the environment
root (``live/`` or ``staging/``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mediagate.common.config import DEFAULT_LIVE_PREFIX, DEFAULT_STAGING_PREFIX

if TYPE_CHECKING:
    from mediagate.common.config import Settings

LEGACY_MEDIA_SEGMENT = "/media/"


def _root_segment(prefix: str) -> str:
    return prefix.strip("/") + "/"


class PathResolver:
    """Map logical paths to environment-rooted object keys.

    The environment is fixed at construction, so resolution is a pure
    function of the logical path.
    """

    def __init__(
        self,
        staging: bool,
        *,
        live_prefix: str = DEFAULT_LIVE_PREFIX,
        staging_prefix: str = DEFAULT_STAGING_PREFIX,
    ) -> None:
        self._staging = bool(staging)
        self._live_root = _root_segment(live_prefix)
        self._staging_root = _root_segment(staging_prefix)
        if self._live_root == self._staging_root:
            raise ValueError("live and staging prefixes must differ")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PathResolver":
        return cls(
            settings.STORAGE_STAGING,
            live_prefix=settings.STORAGE_LIVE_PREFIX,
            staging_prefix=settings.STORAGE_STAGING_PREFIX,
        )

    @property
    def staging(self) -> bool:
        return self._staging

    @property
    def root(self) -> str:
        return self._staging_root if self._staging else self._live_root

    def normalize(self, path: str | None) -> str:
        """Strip ``/media/`` segments, surrounding slashes and any environment root.

        The steps repeat until nothing changes, so a leading ``media/`` or one
        exposed by an earlier strip is removed too.
        """
        normalized = path or ""
        previous = None
        while normalized != previous:
            previous = normalized
            padded = f"/{normalized}/"
            while LEGACY_MEDIA_SEGMENT in padded:
                padded = padded.replace(LEGACY_MEDIA_SEGMENT, "")
            normalized = padded.strip("/")
            normalized = self._strip_root(normalized)
        return normalized

    def _strip_root(self, path: str) -> str:
        for root in (self._live_root, self._staging_root):
            if path == root.rstrip("/"):
                return ""
            if path.startswith(root):
                return path[len(root) :].strip("/")
        return path

    def resolve(self, path: str | None) -> str:
        return self.root + self.normalize(path)

    def join(self, directory: str | None, name: str) -> str:
        """Resolve ``name`` inside ``directory``."""
        base = (directory or "").rstrip("/")
        return self.resolve(f"{base}/{name}" if base else name)


__all__ = ["LEGACY_MEDIA_SEGMENT", "PathResolver"]
