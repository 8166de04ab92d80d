from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional


VISUALS_MODES = ("auto", "tqdm", "rich", "off")

logger = logging.getLogger(__name__)


def _level_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, int):
        name = logging.getLevelName(value)
        return name if isinstance(name, str) and not name.startswith("Level ") else None
    text = str(value).strip().upper()
    return text if text in logging._nameToLevel else None


@dataclass(frozen=True)
class LogLevelDecision:
    name: str
    value: int
    source: str  # cli | config | default


def resolve_log_level(
    cli_level: Any,
    config_level: Any = None,
    *,
    fallback: str = "WARNING",
) -> LogLevelDecision:
    """Pick the effective log level: command line, then settings, then ``fallback``."""
    for source, candidate in (("cli", cli_level), ("config", config_level)):
        name = _level_name(candidate)
        if name:
            return LogLevelDecision(name=name, value=logging._nameToLevel[name], source=source)
    name = _level_name(fallback) or "WARNING"
    return LogLevelDecision(name=name, value=logging._nameToLevel[name], source="default")


def resolve_visuals(
    cli_provider: Optional[str],
    environ: Optional[Mapping[str, str]] = None,
    *,
    default: str = "auto",
) -> str:
    """``--visuals`` wins over $REGSERIES_VISUALS; unknown values fall back to ``default``."""
    env = os.environ if environ is None else environ
    for candidate in (cli_provider, env.get("REGSERIES_VISUALS")):
        mode = (candidate or "").strip().lower()
        if not mode:
            continue
        if mode in VISUALS_MODES:
            return mode
        logger.warning("Unknown visuals mode %r; using %s", candidate, default)
        break
    return default
