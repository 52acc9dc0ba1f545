"""
Tests for configuration loading and logging setup.
"""

import logging

import pytest

from pf2e_oracle.configs import correlation_id_var
from pf2e_oracle.configs.logging import CorrelationIdFilter, get_logger, setup_logging
from pf2e_oracle.configs.runtime import get_full_config
from pf2e_oracle.configs.yaml_config import create_default_config, get_config_path, load_yaml_config


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the data directory at a fresh temporary path."""
    monkeypatch.setenv("PF2E_DATA_PATH", str(tmp_path))
    for var in ("GITHUB_TOKEN", "PF2E_BATCH_SIZE", "PF2E_DATABASE_URL", "PF2E_CHROMA_PATH", "PF2E_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


class TestFullConfig:
    def test_defaults(self, data_dir):
        config = get_full_config()

        assert config["github"]["repository"] == "foundryvtt/pf2e"
        assert config["import"]["path_prefix"] == "packs/pf2e"
        assert config["database_url"] == f"sqlite:///{data_dir / 'oracle.db'}"
        assert config["chroma_path"] == str(data_dir / "chroma")

    def test_yaml_overrides_defaults(self, data_dir):
        get_config_path().write_text("github:\n  repository: me/fork\nunknown_key: 1\n")

        config = get_full_config()

        assert config["github"]["repository"] == "me/fork"
        assert "unknown_key" not in config

    def test_env_overrides_yaml(self, data_dir, monkeypatch):
        get_config_path().write_text("ingestion:\n  batch_size: 10\n")
        monkeypatch.setenv("PF2E_BATCH_SIZE", "25")
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")

        config = get_full_config()

        assert config["ingestion"]["batch_size"] == 25
        assert config["github"]["token"] == "ghp_test"

    def test_invalid_env_value_ignored(self, data_dir, monkeypatch):
        monkeypatch.setenv("PF2E_BATCH_SIZE", "lots")
        assert get_full_config()["ingestion"]["batch_size"] == 50

    def test_invalid_yaml_ignored(self, data_dir):
        get_config_path().write_text("github: [unclosed")
        assert load_yaml_config() == {}

    def test_create_default_config_once(self, data_dir):
        assert create_default_config() is True
        assert create_default_config() is False
        assert load_yaml_config()["github"]["repository"] == "foundryvtt/pf2e"


class TestLogging:
    def test_component_logger_namespace(self):
        assert get_logger("import").name == "pf2e.import"

    def test_correlation_filter_uses_context(self):
        record = logging.LogRecord("pf2e.test", logging.INFO, __file__, 1, "msg", None, None)
        token = correlation_id_var.set("req-42")
        try:
            CorrelationIdFilter().filter(record)
        finally:
            correlation_id_var.reset(token)

        assert record.correlation_id == "req-42"

    def test_setup_logging_writes_file(self, data_dir):
        log_file = data_dir / "logs" / "oracle.log"

        logger = setup_logging(debug=True, log_file=str(log_file))
        get_logger("test").debug("hello from test")
        for handler in logger.handlers:
            handler.flush()

        assert "[pf2e.test] [-] hello from test" in log_file.read_text()
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
