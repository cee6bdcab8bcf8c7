from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

GATEWAY_BACKENDS = ("rest", "sql")


class ConfigError(ValueError):
    pass


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "gestao-eventos"
    GATEWAY_BACKEND: str = "rest"
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""
    DATABASE_URL: str = "sqlite+pysqlite:///./gestao_eventos.db"
    CONNECT_TIMEOUT_SECONDS: float = 5.0
    READ_TIMEOUT_SECONDS: float = 15.0
    READ_RETRIES: int = 2
    RETRY_BACKOFF_SECONDS: float = 0.3
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @field_validator("GATEWAY_BACKEND")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in GATEWAY_BACKENDS:
            raise ValueError(f"expected one of {', '.join(GATEWAY_BACKENDS)}, got {value!r}")
        return normalized

    @field_validator("CONNECT_TIMEOUT_SECONDS", "READ_TIMEOUT_SECONDS")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"expected > 0, got {value}")
        return value

    @field_validator("READ_RETRIES")
    @classmethod
    def _non_negative_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"expected >= 0, got {value}")
        return value

    @field_validator("RETRY_BACKOFF_SECONDS")
    @classmethod
    def _non_negative_backoff(cls, value: float) -> float:
        if value < 0:
            raise ValueError(f"expected >= 0, got {value}")
        return value

    @field_validator("SUPABASE_URL")
    @classmethod
    def _strip_url(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.CONNECT_TIMEOUT_SECONDS, self.READ_TIMEOUT_SECONDS)


def _require(settings: Settings, names: tuple[str, ...]) -> None:
    missing = [name for name in names if not getattr(settings, name)]
    if missing:
        raise ConfigError(f"Missing required config values: {', '.join(missing)}")


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment (and .env), failing with ConfigError."""
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        first = exc.errors()[0]
        name = ".".join(str(part) for part in first["loc"]) or "settings"
        raise ConfigError(f"Invalid {name}: {first['msg']}") from exc
    if settings.GATEWAY_BACKEND == "rest":
        _require(settings, ("SUPABASE_URL", "SUPABASE_ANON_KEY"))
    else:
        _require(settings, ("DATABASE_URL",))
    return settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
