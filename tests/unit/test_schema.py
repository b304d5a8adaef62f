from __future__ import annotations

import copy

import pytest

from sirekap.common.errors import ConfigError
from sirekap.common.schema import validate_crawl_config

VALID = {
    "source": {
        "base_url": "https://sirekap-obj-data.kpu.go.id/wilayah/pemilu/ppwp/",
        "listing_segment": "wilayah/pemilu/ppwp",
        "result_segment": "pemilu/hhcw/ppwp",
        "root_code": "0",
        "terminal_level": 5,
    },
    "crawl": {"concurrency_limit": 1, "channel_capacity": 20},
    "http": {"connect_timeout_seconds": 20, "read_timeout_seconds": 60, "max_attempts": 1, "rate_per_sec": 0},
    "store": {"uri_env": "MONGO_DB_URL", "database": "sipantau", "collection": "data_tps"},
}


def test_valid_config_passes():
    assert validate_crawl_config(copy.deepcopy(VALID)) == VALID


def test_missing_section_rejected():
    cfg = copy.deepcopy(VALID)
    del cfg["store"]

    with pytest.raises(ConfigError, match="Missing keys"):
        validate_crawl_config(cfg)


def test_unknown_key_rejected_unless_allowed():
    cfg = copy.deepcopy(VALID)
    cfg["crawl"]["workers"] = 8

    with pytest.raises(ConfigError, match="Unknown keys"):
        validate_crawl_config(cfg)
    assert validate_crawl_config(cfg, allow_unknown=True)["crawl"]["workers"] == 8


@pytest.mark.parametrize(
    ("section", "key", "value"),
    [
        ("crawl", "concurrency_limit", 0),
        ("crawl", "channel_capacity", "20"),
        ("source", "terminal_level", True),
        ("http", "max_attempts", 0),
        ("http", "rate_per_sec", -1),
        ("source", "base_url", "https://sirekap-obj-data.kpu.go.id/wilayah/pemilu/ppwp"),
        ("source", "listing_segment", "wilayah/pilkada"),
    ],
)
def test_invalid_values_rejected(section, key, value):
    cfg = copy.deepcopy(VALID)
    cfg[section][key] = value

    with pytest.raises(ConfigError):
        validate_crawl_config(cfg)


def test_non_mapping_config_rejected():
    with pytest.raises(ConfigError):
        validate_crawl_config(["source"])
