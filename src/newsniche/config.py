"""Application settings loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache

from dotenv import load_dotenv

_DEFAULT_BLOCKED_HOSTS = ("competitor1.com", "competitor2.com")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    raw = _env(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _split_hosts(raw: str) -> tuple[str, ...]:
    """Parse a comma separated host list, lowercased, blanks dropped."""
    return tuple(h.strip().lower() for h in raw.split(",") if h.strip())


@dataclass(frozen=True)
class AppConfig:
    env: str = field(default_factory=lambda: _env("APP_ENV", "development"))
    log_level: str = field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    secret_key: str = field(default_factory=lambda: _env("SECRET_KEY"))
    host: str = field(default_factory=lambda: _env("APP_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _env_int("APP_PORT", 8000))
    frontend_url: str = field(
        default_factory=lambda: _env("FRONTEND_URL", "http://localhost:3000")
    )
    maintenance_interval_seconds: int = field(
        default_factory=lambda: _env_int("MAINTENANCE_INTERVAL_SECONDS", 0)
    )

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@dataclass(frozen=True)
class CosmosConfig:
    endpoint: str = field(default_factory=lambda: _env("COSMOS_ENDPOINT"))
    key: str = field(default_factory=lambda: _env("COSMOS_KEY"))
    database: str = field(default_factory=lambda: _env("COSMOS_DATABASE", "newsniche"))


@dataclass(frozen=True)
class SmtpConfig:
    host: str = field(default_factory=lambda: _env("SMTP_HOST"))
    port: int = field(default_factory=lambda: _env_int("SMTP_PORT", 587))
    user: str = field(default_factory=lambda: _env("SMTP_USER"))
    password: str = field(default_factory=lambda: _env("SMTP_PASS"))
    secure: bool = field(
        default_factory=lambda: _env("SMTP_SECURE", "false").lower() == "true"
    )
    from_name: str = field(
        default_factory=lambda: _env("SMTP_FROM_NAME", "News and Niche")
    )

    @property
    def enabled(self) -> bool:
        return bool(self.host)


@dataclass(frozen=True)
class PolicyConfig:
    """Content policy and edit-link knobs."""

    blocked_hosts: tuple[str, ...] = field(
        default_factory=lambda: _split_hosts(_env("BLOCKED_COMPETITOR_HOSTS"))
        or _DEFAULT_BLOCKED_HOSTS
    )
    edit_token_ttl_days: int = field(
        default_factory=lambda: _env_int("EDIT_TOKEN_TTL_DAYS", 3)
    )

    @property
    def edit_token_ttl(self) -> timedelta:
        return timedelta(days=self.edit_token_ttl_days)


@dataclass(frozen=True)
class Settings:
    app: AppConfig = field(default_factory=AppConfig)
    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    smtp: SmtpConfig = field(default_factory=SmtpConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load ``.env`` (if present) and build the settings once per process."""
    load_dotenv()
    return Settings()
