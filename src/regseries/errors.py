"""Failure kinds raised by the acquisition pipeline.

Records dropped by the sanitizer are not errors; they surface as
``validation_dropped`` observer events (see ``regseries.pipeline.observability``).
"""

from __future__ import annotations

from typing import Literal, Optional


FailureReason = Literal["timeout", "network", "status", "decode"]


class FetchError(RuntimeError):
    """Base class for every failure propagated to coordinator callers."""

    def __init__(
        self,
        message: str,
        *,
        country: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.country = country
        self.status = status


class RateLimited(FetchError):
    """Upstream asked us to back off. Retried inside the fetcher."""


class UpstreamFailure(FetchError):
    """Non-retryable transport or payload failure."""

    def __init__(
        self,
        message: str,
        *,
        reason: FailureReason,
        country: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message, country=country, status=status)
        self.reason = reason


class FetchExhausted(FetchError):
    """Every attempt was rate-limited."""

    def __init__(
        self,
        country: str,
        attempts: int,
        *,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(
            f"failed to fetch data for {country} after {attempts} attempts",
            country=country,
            status=status,
        )
        self.attempts = attempts
