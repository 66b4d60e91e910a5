"""Runtime configuration.

Every setting can be overridden through environment variables:
- LEDGERPOST_DB_PATH
- LEDGERPOST_DRY_RUN (true/false)
- LEDGERPOST_QBO_BASE_URL
- LEDGERPOST_QBO_MINOR_VERSION
- LEDGERPOST_HTTP_TIMEOUT (seconds)
- LEDGERPOST_HTTP_RETRIES
"""

import os
from dataclasses import dataclass, field
from typing import Callable, Optional

DEFAULT_QBO_BASE_URL = "https://quickbooks.api.intuit.com"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_number(name: str, cast: Callable[[str], float], default, problems: list[str]):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        problems.append(f"{name} must be a number, got '{raw}'")
        return default


@dataclass
class Settings:
    """Application settings."""

    db_path: Optional[str] = None
    # Forces every submission into preview mode
    dry_run: bool = False
    qbo_base_url: str = DEFAULT_QBO_BASE_URL
    qbo_minor_version: int = 73
    http_timeout: float = 30.0
    http_retries: int = 3
    # Environment values that could not be read
    load_errors: list[str] = field(default_factory=list, repr=False)

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty if valid)."""
        errors: list[str] = list(self.load_errors)
        if not self.qbo_base_url.startswith(("http://", "https://")):
            errors.append("LEDGERPOST_QBO_BASE_URL must be an http(s) URL")
        if self.http_timeout <= 0:
            errors.append("LEDGERPOST_HTTP_TIMEOUT must be positive")
        if self.http_retries < 0:
            errors.append("LEDGERPOST_HTTP_RETRIES must not be negative")
        return errors


def load_settings() -> Settings:
    """Build settings from the environment, falling back to defaults.

    A numeric variable that does not parse keeps its default and is
    reported by ``Settings.validate()``.
    """
    problems: list[str] = []
    return Settings(
        db_path=os.environ.get("LEDGERPOST_DB_PATH"),
        dry_run=_env_bool("LEDGERPOST_DRY_RUN"),
        qbo_base_url=os.environ.get("LEDGERPOST_QBO_BASE_URL", DEFAULT_QBO_BASE_URL).rstrip("/"),
        qbo_minor_version=_env_number("LEDGERPOST_QBO_MINOR_VERSION", int, 73, problems),
        http_timeout=_env_number("LEDGERPOST_HTTP_TIMEOUT", float, 30.0, problems),
        http_retries=_env_number("LEDGERPOST_HTTP_RETRIES", int, 3, problems),
        load_errors=problems,
    )
