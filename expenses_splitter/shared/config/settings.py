# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import sys
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_SECTION_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    validate_by_name=True,
    extra="ignore",
)


def _parse_flag(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


class DatabaseConfig(BaseSettings):
    url: str = Field("sqlite:///expenses.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")

    model_config = _SECTION_CONFIG


class SessionConfig(BaseSettings):
    backend: Literal["database", "memory"] = Field("database", alias="SESSION_BACKEND")
    cookie_name: str = Field("session_id", min_length=1, alias="SESSION_COOKIE_NAME")
    # 6 hours, refreshed on every write
    lifetime_seconds: int = Field(6 * 60 * 60, ge=60, alias="SESSION_LIFETIME")

    model_config = _SECTION_CONFIG


class AuthPolicyConfig(BaseSettings):
    hash_method: str = Field("scrypt", alias="PASSWORD_HASH_METHOD")
    salt_length: int = Field(16, ge=8, alias="PASSWORD_SALT_LENGTH")
    username_min_length: int = Field(5, ge=1, alias="USERNAME_MIN_LENGTH")
    password_min_length: int = Field(8, ge=1, alias="PASSWORD_MIN_LENGTH")

    model_config = _SECTION_CONFIG


class SecurityConfig(BaseSettings):
    # Cookie security
    cookie_secure: bool = Field(False, alias="COOKIE_SECURE")
    cookie_samesite: Literal["Strict", "Lax"] = Field("Lax", alias="COOKIE_SAMESITE")

    # Rate limiting
    enable_rate_limit: bool = Field(True, alias="ENABLE_RATE_LIMIT")
    rate_limit_requests: int = Field(10, ge=1, alias="RL_LIMIT")
    rate_limit_window: float = Field(60.0, ge=0.1, alias="RL_WINDOW")

    # Reverse proxies in front of the app; X-Forwarded-For is ignored when 0
    trusted_proxy_hops: int = Field(0, ge=0, alias="TRUSTED_PROXY_HOPS")

    # HSTS
    enable_hsts: bool = Field(False, alias="ENABLE_HSTS")

    # Login failures are reported as invalid_credentials unless this is set
    expose_login_failure_reason: bool = Field(False, alias="EXPOSE_LOGIN_FAILURE_REASON")

    model_config = _SECTION_CONFIG

    @field_validator(
        "cookie_secure",
        "enable_rate_limit",
        "enable_hsts",
        "expose_login_failure_reason",
        mode="before",
    )
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        return _parse_flag(value)


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig()  # type: ignore[call-arg]


def _session_config_factory() -> SessionConfig:
    return SessionConfig()  # type: ignore[call-arg]


def _auth_policy_config_factory() -> AuthPolicyConfig:
    return AuthPolicyConfig()  # type: ignore[call-arg]


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    secret_key: str = Field("dev", alias="SECRET_KEY")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    landing_route: str = Field("/", alias="LANDING_ROUTE")

    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    sessions: SessionConfig = Field(default_factory=_session_config_factory)
    auth_policy: AuthPolicyConfig = Field(default_factory=_auth_policy_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        return _parse_flag(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        if self.secret_key in ("dev", "development", "test", ""):
            print(
                "\n❌ CRITICAL SECURITY ERROR: Insecure SECRET_KEY detected in production!\n"
                "   SECRET_KEY must be a strong random value in production.\n"
                "   Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\"\n",
                file=sys.stderr,
            )
            sys.exit(1)

        warnings = []
        if not self.security.cookie_secure:
            warnings.append("⚠️  Cookie Secure flag is DISABLED (use HTTPS!)")
        if not self.security.enable_hsts:
            warnings.append("⚠️  HSTS is DISABLED (recommended for HTTPS)")
        if self.security.expose_login_failure_reason:
            warnings.append("⚠️  Login failures reveal whether a username exists")
        if self.sessions.backend == "memory":
            warnings.append("⚠️  Sessions are kept in process memory and lost on restart")

        if warnings:
            print("\n⚠️  PRODUCTION SECURITY WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)
            print(
                "   Consider enabling these security features in production.\n",
                file=sys.stderr,
            )

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()  # type: ignore[call-arg]


__all__ = [
    "AppConfig",
    "AuthPolicyConfig",
    "DatabaseConfig",
    "SecurityConfig",
    "SessionConfig",
    "load_config",
]
