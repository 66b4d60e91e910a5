"""Tests for settings loaded from the environment."""

from ledgerpost.config import DEFAULT_QBO_BASE_URL, Settings, load_settings


def test_defaults(monkeypatch):
    for name in (
        "LEDGERPOST_DB_PATH",
        "LEDGERPOST_DRY_RUN",
        "LEDGERPOST_QBO_BASE_URL",
        "LEDGERPOST_QBO_MINOR_VERSION",
        "LEDGERPOST_HTTP_TIMEOUT",
        "LEDGERPOST_HTTP_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.db_path is None
    assert settings.dry_run is False
    assert settings.qbo_base_url == DEFAULT_QBO_BASE_URL
    assert settings.qbo_minor_version == 73
    assert settings.validate() == []


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LEDGERPOST_DRY_RUN", "yes")
    monkeypatch.setenv("LEDGERPOST_QBO_BASE_URL", "https://sandbox-quickbooks.api.intuit.com/")
    monkeypatch.setenv("LEDGERPOST_HTTP_TIMEOUT", "7.5")
    monkeypatch.setenv("LEDGERPOST_HTTP_RETRIES", "1")

    settings = load_settings()

    assert settings.dry_run is True
    assert settings.qbo_base_url == "https://sandbox-quickbooks.api.intuit.com"
    assert settings.http_timeout == 7.5
    assert settings.http_retries == 1


def test_validate_reports_problems():
    problems = Settings(qbo_base_url="quickbooks", http_timeout=0, http_retries=-1).validate()
    assert len(problems) == 3


def test_non_numeric_values_are_reported(monkeypatch):
    monkeypatch.setenv("LEDGERPOST_HTTP_TIMEOUT", "soon")
    monkeypatch.setenv("LEDGERPOST_HTTP_RETRIES", "3.5")
    monkeypatch.setenv("LEDGERPOST_QBO_MINOR_VERSION", "latest")

    settings = load_settings()

    assert settings.http_timeout == 30.0
    assert settings.http_retries == 3
    assert settings.qbo_minor_version == 73
    assert settings.validate() == [
        "LEDGERPOST_QBO_MINOR_VERSION must be a number, got 'latest'",
        "LEDGERPOST_HTTP_TIMEOUT must be a number, got 'soon'",
        "LEDGERPOST_HTTP_RETRIES must be a number, got '3.5'",
    ]
