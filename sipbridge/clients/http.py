"""Shared aiohttp session handling for the remote API clients."""

from typing import Dict, Optional

import aiohttp


class JsonHttpClient:
    """Owns one lazily created aiohttp.ClientSession."""

    def __init__(self, base_url: str, timeout_seconds: float, headers: Optional[Dict[str, str]] = None):
        self.base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._headers = headers or {}
        self._session: Optional[aiohttp.ClientSession] = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout, headers=self._headers)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
