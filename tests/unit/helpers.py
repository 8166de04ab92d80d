from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from regseries.config.settings import AppConfig
from regseries.domain.record import DataPoint
from regseries.sources.transports import HttpResponse, Transport


def make_series(*pairs: tuple[str, float]) -> list[DataPoint]:
    return [DataPoint(date=date.fromisoformat(d), value=float(v)) for d, v in pairs]


def raw(*pairs: tuple[str, Any]) -> list[dict[str, Any]]:
    return [{"DateTime": f"{d}T00:00:00", "Value": v} for d, v in pairs]


def ok_json(body: str) -> HttpResponse:
    return HttpResponse(status=200, text=body)


def make_config(**overrides: Any) -> AppConfig:
    doc: dict[str, Any] = {
        "environment": "test",
        "upstream": {
            "base_url": "https://api.example.test",
            "api_key": "guest:guest",
        },
        "countries": {
            "mexico": {
                "endpoint": "/historical/country/mexico/indicator/car registrations",
                "label": "Mexico",
                "seasonal_pattern": "december-peaks",
            },
            "thailand": {
                "endpoint": "/historical/country/thailand/indicator/car registrations",
                "label": "Thailand",
                "seasonal_pattern": "january-peaks",
            },
        },
    }
    doc.update(overrides)
    return AppConfig.model_validate(doc)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class StubTransport(Transport):
    """Replays scripted responses; the last one repeats once the script runs out.

    ``responses`` may map a URL substring to its own script.
    """

    def __init__(
        self,
        responses: Sequence[Any] | Mapping[str, Sequence[Any]],
        *,
        delay: float = 0.0,
    ) -> None:
        self._scripts = dict(responses) if isinstance(responses, Mapping) else {"": list(responses)}
        self._cursor: dict[str, int] = {}
        self.delay = delay
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def _script_for(self, url: str) -> tuple[str, Sequence[Any]]:
        for needle, script in self._scripts.items():
            if needle in url:
                return needle, script
        raise AssertionError(f"unexpected url {url}")

    async def get(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        self.calls.append({"url": url, "params": dict(params or {}), "headers": dict(headers or {}), "timeout": timeout})
        needle, script = self._script_for(url)
        idx = self._cursor.get(needle, 0)
        self._cursor[needle] = idx + 1
        if self.delay:
            await asyncio.sleep(self.delay)
        item = script[min(idx, len(script) - 1)]
        if isinstance(item, BaseException):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True


class StubFetcher:
    """Raw-record fetcher that blocks on a gate so callers can pile up."""

    def __init__(self, records: Any = None, *, error: Optional[BaseException] = None) -> None:
        self.records = records if records is not None else []
        self.error = error
        self.calls: list[str] = []
        self.gate = asyncio.Event()
        self.gate.set()

    def hold(self) -> None:
        self.gate = asyncio.Event()

    async def fetch(self, country: str) -> list[Any]:
        self.calls.append(country)
        await self.gate.wait()
        if self.error is not None:
            raise self.error
        records = self.records
        if isinstance(records, Mapping):
            records = records[country]
        return list(records)
