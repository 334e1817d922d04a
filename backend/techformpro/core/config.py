"""Settings loaded from the environment (and .env) via pydantic-settings.

Covers the database, the HTTP server, session auth, rate limiting and the
onboarding client. Validators refuse combinations that are unsafe anywhere
(wildcard CORS with cookies) or only in production (default credentials).
"""

import uuid
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Security: refused in production by _check_production_secrets()
_INSECURE_DEFAULT_PASSWORD = "techformpro_dev_password"  # nosec B105

# 256-bit HMAC key
_MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: str = "development"
    log_level: str = "INFO"

    # PostgreSQL
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "techformpro"
    database_user: str = "techformpro_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # HTTP server; 0.0.0.0 so the container port mapping works
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000
    # Vite dev server. Never "*": the API is called with credentials
    allowed_origins: list[str] = ["http://localhost:5173"]

    # Session auth. With auth disabled every request runs as DEFAULT_USER_ID
    default_user_id: uuid.UUID | None = None
    auth_enabled: bool = False
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "techformpro"
    auth_cookie_name: str = "techformpro.session-token"
    auth_cookie_secure: bool = True
    auth_cookie_samesite: Literal["lax", "strict", "none"] = "lax"

    # Onboarding client
    backend_url: str = "http://localhost:8000"
    onboarding_request_timeout: float = 10.0

    # slowapi limit string for mutating onboarding endpoints
    rate_limit_onboarding: str = "30/minute"
    rate_limit_enabled: bool = True

    @property
    def database_url(self) -> str:
        """asyncpg URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def onboarding_api_url(self) -> str:
        """Base URL the onboarding client prefixes to every request path."""
        return f"{self.backend_url.rstrip('/')}/api"

    @field_validator("onboarding_request_timeout")
    @classmethod
    def _check_timeout(cls, value: float) -> float:
        if value <= 0:
            msg = f"ONBOARDING_REQUEST_TIMEOUT must be positive. Got: {value}"
            raise ValueError(msg)
        return value

    @field_validator("allowed_origins")
    @classmethod
    def _check_origins(cls, value: list[str]) -> list[str]:
        if "*" in value:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). Session "
                "cookies are sent with credentials, which browsers refuse "
                "for wildcard origins."
            )
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _check_cookie_flags(self) -> "Settings":
        if self.auth_cookie_samesite == "none" and not self.auth_cookie_secure:
            msg = (
                "AUTH_COOKIE_SECURE must be true when AUTH_COOKIE_SAMESITE=none. "
                "Browsers reject SameSite=None cookies without the Secure flag."
            )
            raise ValueError(msg)
        return self

    @model_validator(mode="after")
    def _check_production_secrets(self) -> "Settings":
        """Security: refuse known-insecure secrets in production."""
        if self.environment != "production":
            return self

        if self.database_password == _INSECURE_DEFAULT_PASSWORD:
            msg = (
                "Cannot use default database password in production. "
                "Set DATABASE_PASSWORD to a secure value."
            )
            raise ValueError(msg)

        if not self.auth_enabled:
            return self
        secret = self.auth_secret.get_secret_value()
        if not secret:
            msg = (
                "AUTH_SECRET must be set when AUTH_ENABLED=true in production. "
                'Generate with: python -c "import secrets; '
                'print(secrets.token_hex(32))"'
            )
            raise ValueError(msg)
        if len(secret) < _MIN_AUTH_SECRET_LENGTH:
            msg = (
                f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                "characters."
            )
            raise ValueError(msg)
        return self


settings = Settings()
