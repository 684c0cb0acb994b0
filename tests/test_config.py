"""Tests for configuration loading and service wiring."""

import json
from pathlib import Path

import pytest

from dns_change_svc import _bootstrap as bs
from dns_change_svc.config import Config
from dns_change_svc.dns.client import DryRunDnsClient, HttpDnsClient

ROOT = Path(__file__).resolve().parents[1]


class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.server.port == 8060
        assert config.dns.provider == "dry_run"
        assert config.approval.allow_self_approval is True
        assert config.store.seed_file is None

    def test_from_dict_partial(self):
        config = Config.from_dict({
            "dns": {"provider": "http", "base_url": "https://dns.test"},
            "approval": {"allow_self_approval": False},
        })
        assert config.dns.provider == "http"
        assert config.dns.base_url == "https://dns.test"
        assert config.approval.allow_self_approval is False
        assert config.server.port == 8060

    def test_unknown_key_rejected(self):
        with pytest.raises(TypeError):
            Config.from_dict({"server": {"colour": "blue"}})

    def test_sample_yaml(self):
        config = Config.from_yaml(str(ROOT / "config.sample.yaml"))
        assert config.store.seed_file == "sample_seed.yaml"
        assert (ROOT / config.store.seed_file).exists()
        assert config.approval.claim_timeout_seconds == 300
        assert config.dns.provider == "dry_run"

    def test_from_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"store": {"db_path": "x.db"}}))
        assert Config.from_json(str(path)).store.db_path == "x.db"


class TestLoadConfig:

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("server:\n  port: 9000\n")

        config, loaded_from = bs.load_config(str(path))
        assert config.server.port == 9000
        assert loaded_from == path

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("logging:\n  level: DEBUG\n")
        monkeypatch.setenv(bs.CONFIG_ENV_VAR, str(path))

        config, _ = bs.load_config()
        assert config.logging.level == "DEBUG"

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            bs.load_config(str(tmp_path / "missing.yaml"))

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(bs.CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)

        config, loaded_from = bs.load_config()
        assert loaded_from is None
        assert config.server.port == 8060


class TestWiring:

    def test_dry_run_client(self):
        assert isinstance(bs.build_dns_client(Config()), DryRunDnsClient)

    def test_http_client(self):
        config = Config.from_dict({"dns": {"provider": "http", "base_url": "https://dns.test/"}})
        client = bs.build_dns_client(config)
        assert isinstance(client, HttpDnsClient)
        assert client.base_url == "https://dns.test"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown DNS provider"):
            bs.build_dns_client(Config.from_dict({"dns": {"provider": "carrier-pigeon"}}))

    def test_new_database_is_seeded_once(self, tmp_path):
        config = Config.from_dict({"store": {
            "db_path": str(tmp_path / "changes.db"),
            "seed_file": str(ROOT / "sample_seed.yaml"),
        }})

        store = bs.build_store(config)
        bob = store.get_user_by_username("bob")
        assert len(store.list_requested_by(bob.id)) == 3

        store = bs.build_store(config)
        assert len(store.list_requested_by(bob.id)) == 3

    def test_service_honours_self_approval_setting(self, tmp_path):
        config = Config.from_dict({
            "store": {"db_path": str(tmp_path / "changes.db")},
            "approval": {"allow_self_approval": False},
        })
        service = bs.build_change_service(config)
        assert service._authorizer.allow_self_approval is False
        assert service.claim_timeout == 300.0
