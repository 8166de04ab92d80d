from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import httpx

from regseries.errors import UpstreamFailure


@dataclass(frozen=True)
class HttpResponse:
    status: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(ABC):
    """Abstract transport issuing one GET per call."""

    @abstractmethod
    async def get(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """Return status + body, or raise UpstreamFailure for network errors and timeouts."""

    async def aclose(self) -> None:
        return None


class HttpxTransport(Transport):
    def __init__(self, client: Optional[httpx.AsyncClient] = None, *, headers: Optional[Dict[str, str]] = None):
        self.headers = dict(headers or {})
        self._client = client
        self._owns_client = client is None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers=self.headers, follow_redirects=True)
        return self._client

    async def get(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        client = self._ensure_client()
        try:
            resp = await client.get(
                url,
                params=dict(params or {}),
                headers=dict(headers or {}),
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise UpstreamFailure(f"request to {_redact(url)} timed out: {e}", reason="timeout") from e
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"failed to fetch {_redact(url)}: {e}", reason="network") from e
        return HttpResponse(status=resp.status_code, text=resp.text)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


def _redact(url: str) -> str:
    # Credentials travel as query params; never echo them into logs or errors.
    return url.split("?", 1)[0]
