from __future__ import annotations

from typing import Any, Optional

from regseries.config.settings import AppConfig
from regseries.sources.decoders import RecordsDecoder
from regseries.sources.fetcher import RetryingFetcher, RetryPolicy
from regseries.sources.transports import HttpxTransport, Transport


def build_policy(config: AppConfig) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=config.retry.max_attempts,
        base_delay_ms=config.retry.base_delay_ms,
        timeout_s=config.upstream.timeout_s,
        rate_limit_statuses=frozenset(config.retry.rate_limit_statuses),
        rate_limit_marker=config.retry.rate_limit_marker,
    )


def build_fetcher(
    config: AppConfig,
    *,
    transport: Optional[Transport] = None,
    **kwargs: Any,
) -> RetryingFetcher:
    """Compose a transport, decoder and retry policy for every configured country.

    Extra keyword arguments (e.g. ``sleep``) are passed to RetryingFetcher.
    """
    return RetryingFetcher(
        transport or HttpxTransport(),
        config.endpoint_urls(),
        credentials=config.upstream.api_key,
        policy=build_policy(config),
        decoder=RecordsDecoder(),
        headers={"User-Agent": config.upstream.user_agent},
        **kwargs,
    )
