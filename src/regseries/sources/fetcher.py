from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, FrozenSet, Mapping, Optional

from regseries.errors import FetchExhausted, RateLimited, UpstreamFailure
from regseries.sources.decoders import RecordsDecoder
from regseries.sources.transports import HttpResponse, Transport


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay_ms: float = 1000.0
    timeout_s: float = 15.0
    rate_limit_statuses: FrozenSet[int] = frozenset({409, 429})
    rate_limit_marker: Optional[str] = "Rate Exceeded"

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) rate-limited attempt."""
        return self.base_delay_ms * (2 ** (attempt - 1)) / 1000.0

    def is_rate_limited(self, response: HttpResponse) -> bool:
        if response.status in self.rate_limit_statuses:
            return True
        return bool(self.rate_limit_marker) and self.rate_limit_marker in (response.text or "")


class RetryingFetcher:
    """Fetch one country's raw records with bounded exponential backoff.

    Only rate-limit signals (configured statuses or the marker string in the
    body) are retried. Everything else propagates on the first occurrence.
    """

    def __init__(
        self,
        transport: Transport,
        endpoints: Mapping[str, str],
        *,
        credentials: Optional[str] = None,
        policy: RetryPolicy = RetryPolicy(),
        decoder: Optional[RecordsDecoder] = None,
        headers: Optional[Mapping[str, str]] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if policy.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.transport = transport
        self.endpoints = dict(endpoints)
        self.credentials = credentials
        self.policy = policy
        self.decoder = decoder or RecordsDecoder()
        self.headers = {"Accept": "application/json", **dict(headers or {})}
        self._sleep = sleep

    def url_for(self, country: str) -> str:
        try:
            return self.endpoints[country]
        except KeyError:
            available = ", ".join(sorted(self.endpoints)) or "(none)"
            raise ValueError(f"unknown country {country!r}. Available: {available}") from None

    async def _attempt(self, url: str, country: str) -> HttpResponse:
        params = {"c": self.credentials} if self.credentials else {}
        try:
            return await asyncio.wait_for(
                self.transport.get(
                    url,
                    params=params,
                    headers=self.headers,
                    timeout=self.policy.timeout_s,
                ),
                timeout=self.policy.timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamFailure(
                f"request for {country} timed out after {self.policy.timeout_s}s",
                reason="timeout",
                country=country,
            ) from e
        except UpstreamFailure as e:
            if e.country is None:
                e.country = country
            raise

    def _decode(self, response: HttpResponse, country: str) -> list[Any]:
        try:
            return self.decoder.decode(response.text)
        except ValueError as e:
            raise UpstreamFailure(
                f"malformed response body for {country}: {e}",
                reason="decode",
                country=country,
                status=response.status,
            ) from e

    async def fetch(self, country: str) -> list[Any]:
        url = self.url_for(country)
        attempts = self.policy.max_attempts
        last: Optional[RateLimited] = None
        for attempt in range(1, attempts + 1):
            response = await self._attempt(url, country)
            if self.policy.is_rate_limited(response):
                last = RateLimited(
                    f"rate limited while fetching {country} (status {response.status})",
                    country=country,
                    status=response.status,
                )
                if attempt < attempts:
                    delay = self.policy.delay_for(attempt)
                    logger.warning(
                        "Rate limit hit for %s, retrying in %dms (attempt %d/%d)",
                        country,
                        int(delay * 1000),
                        attempt,
                        attempts,
                    )
                    await self._sleep(delay)
                continue
            if not response.ok:
                raise UpstreamFailure(
                    f"upstream returned status {response.status} for {country}",
                    reason="status",
                    country=country,
                    status=response.status,
                )
            return self._decode(response, country)

        raise FetchExhausted(country, attempts, status=last.status if last else None) from last
