from __future__ import annotations

from pathlib import Path

import pytest

from sirekap.common.config_loader import apply_overrides, load_settings
from sirekap.common.errors import ConfigError

ENV = {"MONGO_DB_URL": "mongodb://localhost:27017"}


def test_load_settings_from_repo_config():
    settings = load_settings(Path("config/crawl.yml"), environ=ENV)

    assert settings.root_url == "https://sirekap-obj-data.kpu.go.id/wilayah/pemilu/ppwp/0.json"
    assert settings.terminal_level == 5
    assert settings.concurrency_limit == 1
    assert settings.channel_capacity == 20
    assert settings.retry.max_attempts == 1
    assert settings.store_uri == "mongodb://localhost:27017"
    assert (settings.database, settings.collection) == ("sipantau", "data_tps")


def test_missing_store_uri_is_a_config_error():
    with pytest.raises(ConfigError):
        load_settings(Path("config/crawl.yml"), environ={})


def test_env_file_supplies_store_uri(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("MONGO_DB_URL", "")
    monkeypatch.delenv("MONGO_DB_URL")
    env_file = tmp_path / ".env"
    env_file.write_text("MONGO_DB_URL=mongodb://from-dotenv:27017\n", encoding="utf-8")

    settings = load_settings(Path("config/crawl.yml"), env_file=env_file)

    assert settings.store_uri == "mongodb://from-dotenv:27017"


def test_overlay_values_are_deep_merged(tmp_path: Path):
    overlay = tmp_path / "overlay.yml"
    overlay.write_text(
        """crawl:
  concurrency_limit: 4
http:
  max_attempts: 3
""",
        encoding="utf-8",
    )

    settings = load_settings(Path("config/crawl.yml"), overlay_path=overlay, environ=ENV)

    assert settings.concurrency_limit == 4
    assert settings.channel_capacity == 20
    assert settings.retry.max_attempts == 3


def test_empty_overlay_is_ignored(tmp_path: Path):
    overlay = tmp_path / "overlay.yml"
    overlay.write_text("", encoding="utf-8")

    settings = load_settings(Path("config/crawl.yml"), overlay_path=overlay, environ=ENV)
    assert settings.concurrency_limit == 1


def test_non_mapping_overlay_is_rejected(tmp_path: Path):
    overlay = tmp_path / "overlay.yml"
    overlay.write_text("- not\n- a\n- mapping\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(Path("config/crawl.yml"), overlay_path=overlay, environ=ENV)


def test_missing_config_file_is_a_config_error(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "absent.yml", environ=ENV)


def test_apply_overrides_ignores_unset_and_validates():
    settings = load_settings(Path("config/crawl.yml"), environ=ENV)

    updated = apply_overrides(settings, concurrency_limit=3, channel_capacity=None)
    assert updated.concurrency_limit == 3
    assert updated.channel_capacity == 20

    with pytest.raises(ConfigError):
        apply_overrides(settings, concurrency_limit=0)
    with pytest.raises(ConfigError):
        apply_overrides(settings, base_url="https://example.test/no-slash")
