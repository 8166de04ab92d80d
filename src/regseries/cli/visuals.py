from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Sequence, TypeVar

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from regseries.analysis.stats import SeasonalDelta, SeriesStats
from regseries.transforms.aggregate import round_half_up


logger = logging.getLogger(__name__)

T = TypeVar("T")
# Work receives an ``advance`` callback to report one finished unit.
Work = Callable[[Callable[[], None]], T]


def _is_tty() -> bool:
    try:
        return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
    except (AttributeError, ValueError):
        return False


def _rich_available() -> bool:
    try:
        import rich  # noqa: F401
        return True
    except ImportError:
        return False


def format_number(value: Optional[float], *, digits: int = 0) -> str:
    if value is None:
        return "-"
    if digits == 0:
        return f"{round_half_up(value, 0):,.0f}"
    return f"{value:,.{digits}f}"


def stats_rows(stats: SeriesStats, seasonal: Optional[SeasonalDelta] = None) -> list[tuple[str, str]]:
    if not stats.available:
        rows = [("Total", "No data"), ("Data points", "0")]
    else:
        growth = "N/A" if stats.growth_pct is None else f"{stats.growth_pct:.1f}%"
        rows = [
            ("Total", format_number(stats.total)),
            ("Yearly average", format_number(stats.yearly_average)),
            ("Max", f"{format_number(stats.max_value, digits=2)} ({stats.max_date})"),
            ("Min", f"{format_number(stats.min_value, digits=2)} ({stats.min_date})"),
            ("Growth", growth),
            ("Data points", str(stats.count)),
        ]
    if seasonal is not None:
        rows.append(("Seasonal occurrences", str(seasonal.occurrence_count)))
        avg = "N/A" if seasonal.average_delta is None else format_number(seasonal.average_delta)
        rows.append(("Seasonal avg change", avg))
    return rows


class VisualsBackend:
    """Progress + summary rendering for CLI commands."""

    def run(self, label: str, total: int, work: Work[T]) -> T:
        return work(lambda: None)

    def print_stats(self, title: str, rows: Sequence[tuple[str, str]]) -> None:
        width = max((len(k) for k, _ in rows), default=0)
        print(title)
        for key, value in rows:
            print(f"  {key.ljust(width)}  {value}")


class _OffBackend(VisualsBackend):
    pass


class _TqdmBackend(VisualsBackend):
    def run(self, label: str, total: int, work: Work[T]) -> T:
        with logging_redirect_tqdm():
            bar = tqdm(
                total=total,
                desc=label,
                unit="series",
                dynamic_ncols=True,
                leave=False,
                file=sys.stderr,
            )
            try:
                return work(lambda: bar.update(1))
            finally:
                bar.close()


class _RichBackend(VisualsBackend):
    def __init__(self) -> None:
        from rich.console import Console

        self._err = Console(stderr=True, markup=False, highlight=False, soft_wrap=True)
        self._out = Console(markup=False, highlight=False)

    @contextmanager
    def _rich_logging(self) -> Iterator[None]:
        from rich.logging import RichHandler

        root_logger = logging.getLogger()
        old_handlers = list(root_logger.handlers)
        root_logger.handlers = [
            RichHandler(
                console=self._err,
                show_time=False,
                show_path=False,
                markup=False,
                rich_tracebacks=False,
            )
        ]
        try:
            yield
        finally:
            root_logger.handlers = old_handlers

    def run(self, label: str, total: int, work: Work[T]) -> T:
        done = 0
        with self._rich_logging(), self._err.status(f"{label} (0/{total})") as status:
            def advance() -> None:
                nonlocal done
                done += 1
                status.update(f"{label} ({done}/{total})")

            return work(advance)

    def print_stats(self, title: str, rows: Sequence[tuple[str, str]]) -> None:
        from rich.table import Table

        table = Table(title=title, show_header=False)
        table.add_column("stat")
        table.add_column("value", justify="right")
        for key, value in rows:
            table.add_row(key, value)
        self._out.print(table)


def get_visuals_backend(provider: Optional[str]) -> VisualsBackend:
    mode = (provider or "auto").lower()
    if mode == "off":
        return _OffBackend()
    if mode == "tqdm":
        return _TqdmBackend()
    if mode == "rich":
        return _RichBackend() if _rich_available() else _TqdmBackend()
    # auto
    if _rich_available() and _is_tty():
        return _RichBackend()
    return _TqdmBackend() if _is_tty() else _OffBackend()
