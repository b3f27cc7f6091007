"""Tests for configuration loading."""

import pytest

import flowrun.persistence as persistence
from flowrun.config import load_config
from flowrun.errors import ConfigurationError
from flowrun.persistence import (
    InMemoryRunRepository,
    SQLiteRunRepository,
    get_repository,
)
from flowrun.services import LoggingAlerter, WebhookAlerter, build_services, get_alerter


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("FLOWRUN_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(persistence, "_repository_instance", None)


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
log_level: DEBUG
http:
  timeout: 5
code:
  node: [node, --no-warnings]
alerting:
  backend: webhook
  webhook_url: http://alerts.local/hook
"""
    )
    monkeypatch.setenv("FLOWRUN_CONFIG", str(config_path))

    config = load_config()
    assert config.log_level == "DEBUG"
    assert config.http.timeout == 5
    assert config.code.node == ["node", "--no-warnings"]
    assert config.code.tsx == ["tsx"]
    assert config.alerting.backend == "webhook"


def test_missing_config_file_uses_defaults(tmp_path):
    config = load_config(str(tmp_path / "absent.yaml"))
    assert config.database_url is None
    assert config.alerting.backend == "log"


def test_database_url_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("database_url: sqlite://from-file.db\n")
    monkeypatch.setenv("FLOWRUN_DATABASE_URL", "sqlite://from-env.db")
    assert load_config(str(config_path)).database_url == "sqlite://from-env.db"


def test_get_repository_uses_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"database_url: sqlite://{tmp_path / 'runs.db'}\n")
    monkeypatch.setenv("FLOWRUN_CONFIG", str(config_path))

    repo = get_repository()
    assert isinstance(repo, SQLiteRunRepository)
    assert get_repository() is repo


def test_get_repository_defaults_to_memory(tmp_path, monkeypatch):
    monkeypatch.setenv("FLOWRUN_CONFIG", str(tmp_path / "absent.yaml"))
    assert isinstance(get_repository(), InMemoryRunRepository)


def test_get_repository_rejects_unknown_backend():
    with pytest.raises(ConfigurationError):
        get_repository("mysql://localhost/runs")


def test_get_alerter_uses_config(tmp_path):
    config = load_config(str(tmp_path / "absent.yaml"))
    assert isinstance(get_alerter(config), LoggingAlerter)

    config.alerting.backend = "webhook"
    with pytest.raises(ConfigurationError):
        get_alerter(config)

    config.alerting.webhook_url = "http://alerts.local/hook"
    alerter = get_alerter(config)
    assert isinstance(alerter, WebhookAlerter)
    assert alerter.url == "http://alerts.local/hook"


def test_build_services_applies_timeouts(tmp_path):
    config = load_config(str(tmp_path / "absent.yaml"))
    config.http.timeout = 3
    config.code.timeout = 4
    services = build_services(config)
    assert services.http.timeout == 3
    assert services.code.timeout == 4
