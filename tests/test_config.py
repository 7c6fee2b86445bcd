"""Tests for configuration loading."""

from __future__ import annotations

import json

import pytest

from fewsats_l402.config import DEFAULT_DOMAIN, load_config

_ENV_VARS = ("FEWSATS_DOMAIN", "FEWSATS_API_KEY", "FEWSATS_DB_PATH", "FEWSATS_LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


class TestLoadConfig:
    def test_defaults(self, tmp_path):
        config = load_config(tmp_path)

        assert config.domain == DEFAULT_DOMAIN
        assert config.api_key == ""
        assert config.log_level == "info"
        assert config.config_dir == tmp_path
        assert config.db_path == tmp_path / "fewsats.db"

    def test_reads_config_file(self, tmp_path):
        (tmp_path / "config.json").write_text(
            json.dumps({"domain": "https://staging.fewsats.com/", "apiKey": "key-1"})
        )

        config = load_config(tmp_path)

        assert config.domain == "https://staging.fewsats.com"
        assert config.api_key == "key-1"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        (tmp_path / "config.json").write_text(json.dumps({"apiKey": "from-file"}))
        monkeypatch.setenv("FEWSATS_API_KEY", "from-env")

        assert load_config(tmp_path).api_key == "from-env"

    def test_placeholder_env_ignored(self, tmp_path, monkeypatch):
        (tmp_path / "config.json").write_text(json.dumps({"apiKey": "from-file"}))
        monkeypatch.setenv("FEWSATS_API_KEY", "${FEWSATS_API_KEY}")

        assert load_config(tmp_path).api_key == "from-file"

    def test_invalid_json_ignored(self, tmp_path):
        (tmp_path / "config.json").write_text("{not json")

        assert load_config(tmp_path).domain == DEFAULT_DOMAIN

    def test_db_path_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FEWSATS_DB_PATH", str(tmp_path / "other.db"))

        assert load_config(tmp_path).db_path == tmp_path / "other.db"

    def test_open_store_creates_database(self, tmp_path):
        config = load_config(tmp_path / "home")

        with config.open_store() as store:
            assert store.schema_version == 1
        assert config.db_path.exists()
