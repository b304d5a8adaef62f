"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from sirekap.common.errors import ConfigError
from sirekap.common.http import RetryConfig, TimeoutConfig
from sirekap.common.schema import validate_crawl_config

DEFAULT_CONFIG_PATH = Path("config/crawl.yml")


@dataclass(frozen=True)
class CrawlSettings:
    base_url: str
    listing_segment: str
    result_segment: str
    root_code: str
    terminal_level: int
    concurrency_limit: int
    channel_capacity: int
    timeout: TimeoutConfig
    retry: RetryConfig
    rate_per_sec: float
    store_uri: str
    database: str
    collection: str

    @property
    def root_url(self) -> str:
        return f"{self.base_url}{self.root_code}.json"


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def read_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> Any:
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config {overlay_path} must be a mapping")
    return _deep_merge(base, overlay)


def load_settings(
    config_path: Path = DEFAULT_CONFIG_PATH,
    *,
    overlay_path: Path | None = None,
    env_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
    allow_unknown: bool = False,
) -> CrawlSettings:
    """Load the YAML config, apply an overlay and resolve the store URI.

    When ``environ`` is omitted the process environment is used, after
    loading ``env_file`` (or a ``.env`` found from the working directory)
    without overriding variables that are already set.
    """
    cfg = validate_crawl_config(
        _load_yaml_with_overlay(config_path, overlay_path),
        allow_unknown=allow_unknown,
    )

    if environ is None:
        load_dotenv(env_file, override=False)
        environ = os.environ

    uri_env = cfg["store"]["uri_env"]
    store_uri = environ.get(uri_env, "").strip()
    if not store_uri:
        raise ConfigError(f"Environment variable {uri_env} is not set")

    source = cfg["source"]
    http = cfg["http"]
    return CrawlSettings(
        base_url=source["base_url"],
        listing_segment=source["listing_segment"],
        result_segment=source["result_segment"],
        root_code=str(source["root_code"]),
        terminal_level=int(source["terminal_level"]),
        concurrency_limit=int(cfg["crawl"]["concurrency_limit"]),
        channel_capacity=int(cfg["crawl"]["channel_capacity"]),
        timeout=TimeoutConfig(
            connect=float(http["connect_timeout_seconds"]),
            read=float(http["read_timeout_seconds"]),
        ),
        retry=RetryConfig(max_attempts=int(http["max_attempts"])),
        rate_per_sec=float(http["rate_per_sec"]),
        store_uri=store_uri,
        database=cfg["store"]["database"],
        collection=cfg["store"]["collection"],
    )


def apply_overrides(settings: CrawlSettings, **overrides: Any) -> CrawlSettings:
    values = {key: value for key, value in overrides.items() if value is not None}
    for key in ("concurrency_limit", "channel_capacity", "terminal_level"):
        if key in values and values[key] < 1:
            raise ConfigError(f"{key} must be >= 1")
    if "base_url" in values and not values["base_url"].endswith("/"):
        raise ConfigError("base_url must end with '/'")
    return replace(settings, **values)
