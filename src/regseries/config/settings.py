from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from regseries.domain.period import SeasonalPattern
from regseries.utils.load import read_yaml_mapping

VALID_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
ENV_PREFIX = "REGSERIES_"

Environment = Literal["development", "production", "test"]


class UpstreamConfig(BaseModel):
    base_url: str = Field(..., description="Base URL of the statistics API (https only).")
    api_key: str = Field(..., description="API credential, sent as the 'c' query parameter.")
    timeout_s: float = Field(default=15.0, gt=0, description="Per-attempt request timeout in seconds.")
    user_agent: str = Field(default="regseries/0.1")

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        text = str(value).strip()
        if not text:
            raise ValueError("base_url is required")
        if not text.startswith("https://"):
            raise ValueError("base_url should use HTTPS")
        return text.rstrip("/")

    @field_validator("api_key")
    @classmethod
    def _validate_api_key(cls, value: str) -> str:
        text = str(value).strip()
        if not text:
            raise ValueError("api_key is required")
        if ":" not in text:
            raise ValueError("api_key should contain ':' separator")
        return text


class RetryConfig(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    base_delay_ms: float = Field(default=1000.0, ge=0)
    rate_limit_statuses: List[int] = Field(default_factory=lambda: [409, 429])
    rate_limit_marker: Optional[str] = Field(
        default="Rate Exceeded",
        description="Body substring that marks a rate-limited response. Null disables body matching.",
    )


class CacheConfig(BaseModel):
    ttl_seconds: float = Field(default=6 * 60 * 60, gt=0)
    dedup_window_seconds: float = Field(default=30.0, gt=0)


class CountryConfig(BaseModel):
    endpoint: str = Field(..., description="Path appended to upstream.base_url, starting with '/'.")
    label: Optional[str] = None
    seasonal_pattern: SeasonalPattern = SeasonalPattern.DECEMBER_PEAKS

    @field_validator("endpoint")
    @classmethod
    def _validate_endpoint(cls, value: str) -> str:
        text = str(value).strip()
        if not text.startswith("/"):
            raise ValueError("endpoint should start with '/'")
        return text


class AppConfig(BaseModel):
    """Validated application settings; the core assumes these are sane."""

    version: int = Field(default=1)
    environment: Environment = "development"
    title: str = "Vehicle Registration Comparison"
    log_level: Optional[str] = Field(
        default=None,
        description="Default logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Null defers to the CLI.",
    )
    upstream: UpstreamConfig
    retry: RetryConfig = Field(default_factory=RetryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    countries: Dict[str, CountryConfig]

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str | None) -> str | None:
        if value is None:
            return None
        name = str(value).upper()
        if name not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got {value!r}"
            )
        return name

    @field_validator("countries", mode="before")
    @classmethod
    def _normalize_country_keys(cls, value):
        if isinstance(value, Mapping):
            return {str(k).strip().lower(): v for k, v in value.items()}
        return value

    @model_validator(mode="after")
    def _validate(self):
        if not self.countries:
            raise ValueError("at least one country must be configured")
        return self

    def endpoint_urls(self) -> Dict[str, str]:
        return {
            name: f"{self.upstream.base_url}{country.endpoint}"
            for name, country in self.countries.items()
        }

    def label_for(self, country: str) -> str:
        cfg = self.countries.get(country)
        if cfg is not None and cfg.label:
            return cfg.label
        return country.capitalize()


def _apply_env(doc: dict, environ: Mapping[str, str]) -> dict:
    upstream = dict(doc.get("upstream") or {})
    if environ.get(f"{ENV_PREFIX}API_KEY"):
        upstream["api_key"] = environ[f"{ENV_PREFIX}API_KEY"]
    if environ.get(f"{ENV_PREFIX}BASE_URL"):
        upstream["base_url"] = environ[f"{ENV_PREFIX}BASE_URL"]
    if upstream:
        doc["upstream"] = upstream
    if environ.get(f"{ENV_PREFIX}ENV"):
        doc["environment"] = environ[f"{ENV_PREFIX}ENV"].strip().lower()
    if environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
        doc["log_level"] = environ[f"{ENV_PREFIX}LOG_LEVEL"]

    countries = {str(k).lower(): dict(v or {}) for k, v in (doc.get("countries") or {}).items()}
    suffix = "_ENDPOINT"
    for name, value in environ.items():
        if not (name.startswith(ENV_PREFIX) and name.endswith(suffix)) or not value:
            continue
        country = name[len(ENV_PREFIX):-len(suffix)].lower()
        if not country:
            continue
        countries.setdefault(country, {})["endpoint"] = value
    if countries:
        doc["countries"] = countries
    return doc


def load_config(
    path: str | Path | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Load settings from an optional YAML file, then apply REGSERIES_* overrides."""

    env = os.environ if environ is None else environ
    doc: dict = {}
    if path is not None:
        doc = dict(read_yaml_mapping(path))
    return AppConfig.model_validate(_apply_env(doc, env))
