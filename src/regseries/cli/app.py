import argparse
import logging
import os
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from regseries.cli.commands.compare import handle as handle_compare
from regseries.cli.commands.series import handle_fetch, handle_stats
from regseries.config.resolution import resolve_log_level, resolve_visuals
from regseries.config.settings import load_config
from regseries.domain.period import AggregationPeriod
from regseries.io.formatters import FORMATS
from regseries.transforms.filter import PRESETS

DEFAULT_CONFIG_PATH = "regseries.yaml"

logger = logging.getLogger("regseries.cli")


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from None


def _resolve_config_path(value: Optional[str]) -> Optional[Path]:
    if value:
        return Path(value)
    env_path = os.environ.get("REGSERIES_CONFIG")
    if env_path:
        return Path(env_path)
    candidate = Path.cwd() / DEFAULT_CONFIG_PATH
    return candidate if candidate.exists() else None


def _add_window_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--start", type=_iso_date, help="first date to include (YYYY-MM-DD)")
    p.add_argument("--end", type=_iso_date, help="last date to include, whole day (YYYY-MM-DD)")
    p.add_argument(
        "--preset",
        choices=PRESETS,
        help="quick range measured back from the latest observation (overrides --start/--end)",
    )


def build_parser() -> argparse.ArgumentParser:
    # Common options shared by top-level and subcommands
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="set logging level (default: config log_level or WARNING)",
    )
    common.add_argument(
        "--config",
        "-c",
        help=f"path to settings YAML (default: $REGSERIES_CONFIG or ./{DEFAULT_CONFIG_PATH})",
    )
    common.add_argument(
        "--visuals",
        choices=["auto", "tqdm", "rich", "off"],
        default=None,
        help="visuals renderer: auto (default), tqdm, rich, or off",
    )

    parser = argparse.ArgumentParser(
        prog="regseries",
        description="Fetch, cache and compare national vehicle registration series.",
        parents=[common],
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_fetch = sub.add_parser(
        "fetch",
        help="print one country's series, optionally windowed and aggregated",
        parents=[common],
    )
    p_fetch.add_argument("country", help="configured country key")
    p_fetch.add_argument(
        "--period",
        "-P",
        help=f"aggregate by period ({', '.join(p.value for p in AggregationPeriod)})",
    )
    p_fetch.add_argument(
        "--format",
        "-f",
        dest="fmt",
        choices=FORMATS,
        default="print",
        help="output format (default: print)",
    )
    _add_window_args(p_fetch)

    p_stats = sub.add_parser(
        "stats",
        help="summary statistics for one country",
        parents=[common],
    )
    p_stats.add_argument("country", help="configured country key")
    _add_window_args(p_stats)

    p_compare = sub.add_parser(
        "compare",
        help="side-by-side stats and seasonal insight for the configured countries",
        parents=[common],
    )
    p_compare.add_argument("--period", "-P", help="aggregation period for the compared points")
    _add_window_args(p_compare)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(_resolve_config_path(args.config))
    except (FileNotFoundError, ValueError, TypeError) as exc:
        # pydantic's ValidationError is a ValueError
        logging.basicConfig(level=logging.ERROR, format="%(message)s")
        if isinstance(exc, ValidationError):
            logger.error("Settings validation failed:")
            for err in exc.errors():
                loc = ".".join(str(p) for p in err.get("loc", ()))
                logger.error("  - %s: %s", loc or "(root)", err.get("msg"))
        else:
            logger.error("%s", exc)
        return 2

    level = resolve_log_level(getattr(args, "log_level", None), config.log_level)
    logging.basicConfig(level=level.value, format="%(message)s")
    logger.debug("Log level %s (from %s)", level.name, level.source)
    visuals = resolve_visuals(args.visuals)

    if args.cmd == "fetch":
        handle_fetch(
            config,
            args.country.lower(),
            period=args.period,
            start=args.start,
            end=args.end,
            preset=args.preset,
            fmt=args.fmt,
            visuals=visuals,
        )
        return 0

    if args.cmd == "stats":
        handle_stats(
            config,
            args.country.lower(),
            start=args.start,
            end=args.end,
            preset=args.preset,
            visuals=visuals,
        )
        return 0

    if args.cmd == "compare":
        return handle_compare(
            config,
            start=args.start,
            end=args.end,
            preset=args.preset,
            period=args.period,
            visuals=visuals,
        )

    parser.error(f"unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
