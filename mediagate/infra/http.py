"""HTTP fetcher for remote media ingestion.

Dependencies:
    - requests
"""

from __future__ import annotations

from typing import Protocol

import requests


class HttpFetcher(Protocol):
    def get(self, url: str) -> bytes:
        """Download ``url`` and return the response body.

        Raises:
            requests.RequestException: On transport failures or error statuses.
        """
        ...


class RequestsFetcher:
    """Fetch remote content with a shared requests session."""

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout

    def get(self, url: str) -> bytes:
        response = self._session.get(url, timeout=self._timeout)
        response.raise_for_status()
        return response.content

    def close(self) -> None:
        self._session.close()


__all__ = ["HttpFetcher", "RequestsFetcher"]
