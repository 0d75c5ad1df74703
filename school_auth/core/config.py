"""
School Auth — Configuration
All settings are read from environment variables (or .env file).
Signing secrets have no defaults: a missing or placeholder secret fails at startup.
"""
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

INSECURE_SECRET_MARKERS = (
    "change_me",
    "change-me",
    "changeme",
    "fallback-secret",
    "your-secret-key",
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    SERVICE_NAME: str = "school-auth"
    SERVICE_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8001
    CORS_ALLOWED_ORIGINS: list[str] = ["*"]

    # ── JWT ──────────────────────────────────────────────────
    JWT_SECRET_KEY: str = Field(..., min_length=32)
    JWT_REFRESH_SECRET_KEY: str = Field(..., min_length=32)
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # ── Passwords ────────────────────────────────────────────
    BCRYPT_ROUNDS: int = Field(12, ge=4, le=31)
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    EXPOSE_RESET_TOKEN: bool = False

    # ── Database ─────────────────────────────────────────────
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "auth-db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "school_auth"
    POSTGRES_USER: str = "school_auth"
    POSTGRES_PASSWORD: str = "school_auth"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # ── Redis ─────────────────────────────────────────────────
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    TOKEN_REVOCATION_ENABLED: bool = True

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # ── Rate Limiting ─────────────────────────────────────────
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_MAX_ATTEMPTS: int = 5
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60

    # ── Observability ─────────────────────────────────────────
    METRICS_ENABLED: bool = True
    HEALTH_CHECK_TIMEOUT: float = 5.0
    LOG_LEVEL: str = "INFO"

    @field_validator("JWT_SECRET_KEY", "JWT_REFRESH_SECRET_KEY")
    @classmethod
    def reject_placeholder_secret(cls, v: str) -> str:
        lowered = v.lower()
        if any(marker in lowered for marker in INSECURE_SECRET_MARKERS):
            raise ValueError(
                "JWT secret looks like a placeholder. Generate one with: "
                "python -c 'import secrets; print(secrets.token_hex(32))'"
            )
        return v

    @model_validator(mode="after")
    def secrets_must_differ(self) -> "Settings":
        if self.JWT_SECRET_KEY == self.JWT_REFRESH_SECRET_KEY:
            raise ValueError("JWT_SECRET_KEY and JWT_REFRESH_SECRET_KEY must differ")
        return self

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
