# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import sys
from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from auth_service.shared.utils import parse_duration

DEV_ACCESS_SECRET = "dev-access-secret-change-me-0123456789abcdef"
DEV_REFRESH_SECRET = "dev-refresh-secret-change-me-0123456789abcdef"

_SECTION_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    validate_by_name=True,
)


def _parse_bool(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


class AuthConfig(BaseSettings):
    access_secret: str = Field(DEV_ACCESS_SECRET, min_length=32, alias="JWT_SECRET")
    access_expires_in: str = Field("1d", alias="JWT_EXPIRES_IN")
    refresh_secret: str = Field(DEV_REFRESH_SECRET, min_length=32, alias="JWT_REFRESH_SECRET")
    refresh_expires_in: str = Field("30d", alias="JWT_REFRESH_EXPIRES_IN")
    algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    session_ttl_days: int = Field(30, ge=1, alias="REFRESH_TOKEN_TTL_DAYS")
    atomic_rotation: bool = Field(False, alias="AUTH_ATOMIC_ROTATION")

    model_config = _SECTION_CONFIG

    @field_validator("access_expires_in", "refresh_expires_in")
    @classmethod
    def _validate_duration(cls, value: str) -> str:
        parse_duration(value)
        return value

    @field_validator("algorithm")
    @classmethod
    def _validate_algorithm(cls, value: str) -> str:
        if value not in ("HS256", "HS384", "HS512"):
            raise ValueError("only HMAC algorithms are supported")
        return value

    @field_validator("atomic_rotation", mode="before")
    @classmethod
    def _parse_atomic(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @model_validator(mode="after")
    def _validate_distinct_secrets(self) -> "AuthConfig":
        if self.access_secret == self.refresh_secret:
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must differ")
        return self

    @property
    def access_ttl(self) -> timedelta:
        return parse_duration(self.access_expires_in)

    @property
    def refresh_ttl(self) -> timedelta:
        return parse_duration(self.refresh_expires_in)

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(days=self.session_ttl_days)

    def uses_dev_secrets(self) -> bool:
        return self.access_secret == DEV_ACCESS_SECRET or self.refresh_secret == DEV_REFRESH_SECRET


class DatabaseConfig(BaseSettings):
    url: str = Field("sqlite:///auth.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")

    model_config = _SECTION_CONFIG

    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def is_sqlite_memory(self) -> bool:
        return self.url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in self.url


class MessagingConfig(BaseSettings):
    redis_url: str | None = Field(None, alias="REDIS_URL")
    user_registered_stream: str = Field(
        "events:user.registered", min_length=1, alias="USER_REGISTERED_STREAM"
    )
    stream_maxlen: int = Field(100_000, ge=1, alias="EVENT_STREAM_MAXLEN")
    notifier_workers: int = Field(2, ge=1, alias="NOTIFIER_WORKERS")
    socket_timeout: float = Field(5.0, ge=0.1, alias="REDIS_SOCKET_TIMEOUT")

    model_config = _SECTION_CONFIG

    @field_validator("redis_url", mode="before")
    @classmethod
    def _blank_is_none(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ResilienceConfig(BaseSettings):
    max_retries: int = Field(3, ge=0, alias="RESILIENCE_RETRIES")
    backoff_base: float = Field(0.5, ge=0.0, alias="RESILIENCE_BACKOFF_BASE")
    backoff_cap: float = Field(8.0, ge=0.0, alias="RESILIENCE_BACKOFF_CAP")
    circuit_fail_threshold: int = Field(5, ge=1, alias="RESILIENCE_CIRCUIT_THRESHOLD")
    circuit_reset_timeout: float = Field(60.0, ge=0.1, alias="RESILIENCE_CIRCUIT_RESET")

    model_config = _SECTION_CONFIG


class SecurityConfig(BaseSettings):
    # Shared secret for trusted callers (gateway, internal services)
    internal_api_token: str | None = Field(None, min_length=32, alias="INTERNAL_API_TOKEN")

    # CORS
    allowed_origins: Annotated[list[str], NoDecode] = Field(["*"], alias="ALLOWED_ORIGINS")

    # Rate limiting
    enable_rate_limit: bool = Field(True, alias="ENABLE_RATE_LIMIT")
    rate_limit_requests: int = Field(10, ge=1, alias="RL_LIMIT")
    rate_limit_window: float = Field(60.0, ge=0.1, alias="RL_WINDOW")

    # Reverse proxies in front of the service; X-Forwarded-For is ignored when 0
    trusted_proxy_hops: int = Field(0, ge=0, alias="TRUSTED_PROXY_HOPS")

    # HSTS
    enable_hsts: bool = Field(False, alias="ENABLE_HSTS")

    model_config = _SECTION_CONFIG

    @field_validator("internal_api_token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("enable_rate_limit", "enable_hsts", mode="before")
    @classmethod
    def _parse_flags(cls, value: str | bool) -> bool:
        return _parse_bool(value)


def _auth_config_factory() -> AuthConfig:
    return AuthConfig()  # type: ignore[call-arg]


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig()  # type: ignore[call-arg]


def _messaging_config_factory() -> MessagingConfig:
    return MessagingConfig()  # type: ignore[call-arg]


def _resilience_config_factory() -> ResilienceConfig:
    return ResilienceConfig()  # type: ignore[call-arg]


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    service_name: str = Field("auth-service", alias="SERVICE_NAME")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(None, alias="LOG_FILE")

    auth: AuthConfig = Field(default_factory=_auth_config_factory)
    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    messaging: MessagingConfig = Field(default_factory=_messaging_config_factory)
    resilience: ResilienceConfig = Field(default_factory=_resilience_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_by_name=True,
        validate_assignment=True,
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        errors = []
        if self.auth.uses_dev_secrets():
            errors.append("JWT_SECRET / JWT_REFRESH_SECRET still use development defaults")
        if not self.security.internal_api_token:
            errors.append("INTERNAL_API_TOKEN is not set")

        if errors:
            print("\n❌ CRITICAL SECURITY ERROR: refusing to start in production:", file=sys.stderr)
            for error in errors:
                print(f"   {error}", file=sys.stderr)
            print(
                "   Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\"\n",
                file=sys.stderr,
            )
            sys.exit(1)

        warnings = []
        if "*" in self.security.allowed_origins:
            warnings.append("⚠️  CORS allows wildcard (*) origins")
        if not self.security.enable_hsts:
            warnings.append("⚠️  HSTS is DISABLED (recommended for HTTPS)")

        if warnings:
            print("\n⚠️  PRODUCTION SECURITY WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()


__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "MessagingConfig",
    "ResilienceConfig",
    "SecurityConfig",
    "load_config",
]
