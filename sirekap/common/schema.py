"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from sirekap.common.errors import ConfigError

SECTION_KEYS = {
    "source": {"base_url", "listing_segment", "result_segment", "root_code", "terminal_level"},
    "crawl": {"concurrency_limit", "channel_capacity"},
    "http": {"connect_timeout_seconds", "read_timeout_seconds", "max_attempts", "rate_per_sec"},
    "store": {"uri_env", "database", "collection"},
}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_mapping(obj: object, ctx: str) -> dict:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return obj


def _assert_positive_int(value: object, ctx: str, *, minimum: int = 1) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"{ctx} must be an integer >= {minimum}")


def _assert_non_negative_number(value: object, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"{ctx} must be a non-negative number")


def validate_crawl_config(cfg: object, *, allow_unknown: bool = False) -> dict:
    cfg = _assert_mapping(cfg, "crawl config")
    _assert_required_keys(cfg, set(SECTION_KEYS), "crawl config")
    _assert_no_unknown_keys(cfg, set(SECTION_KEYS), "crawl config", allow_unknown)

    for section, keys in SECTION_KEYS.items():
        body = _assert_mapping(cfg[section], section)
        _assert_required_keys(body, keys, section)
        _assert_no_unknown_keys(body, keys, section, allow_unknown)

    source = cfg["source"]
    if not str(source["base_url"]).endswith("/"):
        raise ConfigError("source.base_url must end with '/'")
    if source["listing_segment"] not in source["base_url"]:
        raise ConfigError("source.listing_segment must appear in source.base_url")
    _assert_positive_int(source["terminal_level"], "source.terminal_level")

    _assert_positive_int(cfg["crawl"]["concurrency_limit"], "crawl.concurrency_limit")
    _assert_positive_int(cfg["crawl"]["channel_capacity"], "crawl.channel_capacity")

    http = cfg["http"]
    _assert_positive_int(http["max_attempts"], "http.max_attempts")
    _assert_non_negative_number(http["rate_per_sec"], "http.rate_per_sec")
    _assert_non_negative_number(http["connect_timeout_seconds"], "http.connect_timeout_seconds")
    _assert_non_negative_number(http["read_timeout_seconds"], "http.read_timeout_seconds")

    return cfg
