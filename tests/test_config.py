"""Tests for configuration loading and validation."""

import pytest
import yaml

from bosh_target_discovery.config import load_config
from bosh_target_discovery.exceptions import ConfigError

MINIMAL = {"bosh": {"url": "https://10.0.0.6:25555"}}


def _write_config(tmp_path, data: dict) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(data))
    return str(path)


def _with(**sections) -> dict:
    return {**MINIMAL, **sections}


class TestLoadConfig:
    def test_minimal_valid_config(self, tmp_path):
        config = load_config(_write_config(tmp_path, MINIMAL))
        assert config.bosh.url == "https://10.0.0.6:25555"
        assert config.filters.cidrs == ["0.0.0.0/0"]
        assert config.filters.queued_tasks_limit == 0
        assert config.service_discovery.filename == "/tmp/bosh_target_groups.json"
        assert config.service_discovery.uses_config_map is False
        assert config.metrics.namespace == "bosh"
        assert config.polling.interval_seconds == 30

    def test_missing_file_raises(self):
        with pytest.raises(ConfigError, match="not found"):
            load_config("/nonexistent/file.yaml")

    def test_missing_bosh_url_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="bosh.url"):
            load_config(_write_config(tmp_path, {"bosh": {"username": "admin"}}))

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("just a string")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(str(path))

    def test_env_var_interpolation(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_BOSH_PASSWORD", "s3cret")
        data = _with(bosh={"url": "https://d:25555", "password": "${TEST_BOSH_PASSWORD}"})
        config = load_config(_write_config(tmp_path, data))
        assert config.bosh.password == "s3cret"

    def test_env_var_missing_raises(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SURELY_MISSING_VAR", raising=False)
        data = _with(bosh={"url": "https://d:25555", "password": "${SURELY_MISSING_VAR}"})
        with pytest.raises(ConfigError, match="SURELY_MISSING_VAR"):
            load_config(_write_config(tmp_path, data))

    def test_full_config(self, tmp_path):
        data = {
            "bosh": {"url": "https://d:25555", "username": "admin", "password": "p", "verify_ssl": False},
            "metrics": {"namespace": "bosh_exporter", "environment": "prod"},
            "filters": {
                "deployments": ["cf", " redis "],
                "azs": ["z1", "z2"],
                "cidrs": ["10.0.0.0/8"],
                "processes": ["^gorouter$"],
                "queued_tasks_limit": 10,
            },
            "service_discovery": {
                "filename": "/var/sd/bosh_target_groups.json",
                "kubernetes": {"namespace": "monitoring", "config_map": "bosh-sd"},
            },
            "polling": {"interval_seconds": 60, "jitter_seconds": 10},
            "logging": {"level": "DEBUG", "format": "text"},
        }
        config = load_config(_write_config(tmp_path, data))
        assert config.bosh.verify_ssl is False
        assert config.metrics.environment == "prod"
        assert config.filters.deployments == ["cf", " redis "]
        assert config.filters.azs == ["z1", "z2"]
        assert config.filters.queued_tasks_limit == 10
        assert config.service_discovery.uses_config_map is True
        assert config.service_discovery.kubernetes.namespace == "monitoring"
        assert config.service_discovery.config_map_key == "bosh_target_groups.json"
        assert config.logging.format == "text"


class TestValidation:
    def test_invalid_cidr(self, tmp_path):
        data = _with(filters={"cidrs": ["10.0.0.0/33"]})
        with pytest.raises(ConfigError, match="10.0.0.0/33"):
            load_config(_write_config(tmp_path, data))

    def test_empty_cidrs(self, tmp_path):
        data = _with(filters={"cidrs": []})
        with pytest.raises(ConfigError, match="cidrs"):
            load_config(_write_config(tmp_path, data))

    def test_invalid_process_pattern(self, tmp_path):
        data = _with(filters={"processes": ["(unclosed"]})
        with pytest.raises(ConfigError, match="unclosed"):
            load_config(_write_config(tmp_path, data))

    def test_negative_queued_tasks_limit(self, tmp_path):
        data = _with(filters={"queued_tasks_limit": -1})
        with pytest.raises(ConfigError, match="queued_tasks_limit"):
            load_config(_write_config(tmp_path, data))

    def test_filters_must_be_lists(self, tmp_path):
        data = _with(filters={"azs": "z1"})
        with pytest.raises(ConfigError, match="filters.azs"):
            load_config(_write_config(tmp_path, data))

    def test_config_map_requires_namespace(self, tmp_path):
        data = _with(service_discovery={"kubernetes": {"config_map": "bosh-sd"}})
        with pytest.raises(ConfigError, match="namespace"):
            load_config(_write_config(tmp_path, data))

    def test_empty_filename(self, tmp_path):
        data = _with(service_discovery={"filename": ""})
        with pytest.raises(ConfigError, match="filename"):
            load_config(_write_config(tmp_path, data))

    def test_polling_interval_too_low(self, tmp_path):
        data = _with(polling={"interval_seconds": 2})
        with pytest.raises(ConfigError, match="interval_seconds"):
            load_config(_write_config(tmp_path, data))

    def test_invalid_logging_format(self, tmp_path):
        data = _with(logging={"format": "xml"})
        with pytest.raises(ConfigError, match="logging.format"):
            load_config(_write_config(tmp_path, data))


class TestEmptySections:
    def test_bare_filters_section_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("bosh:\n  url: https://10.0.0.6:25555\nfilters:\n")
        config = load_config(str(path))
        assert config.filters.cidrs == ["0.0.0.0/0"]
        assert config.filters.deployments == []

    def test_bare_kubernetes_section_uses_defaults(self, tmp_path):
        config = load_config(_write_config(tmp_path, _with(service_discovery={"kubernetes": None})))
        assert config.service_discovery.kubernetes.config_map == ""
        assert config.service_discovery.uses_config_map is False

    def test_bare_bosh_section_still_requires_url(self, tmp_path):
        with pytest.raises(ConfigError, match="bosh.url"):
            load_config(_write_config(tmp_path, {"bosh": None}))

    def test_scalar_section_raises(self, tmp_path):
        with pytest.raises(ConfigError, match="'polling' must be a mapping"):
            load_config(_write_config(tmp_path, _with(polling=30)))
