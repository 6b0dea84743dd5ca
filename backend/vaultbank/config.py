"""Application configuration."""
from collections import Counter
from decimal import Decimal
from functools import lru_cache
import math

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "VaultBank"
    debug: bool = False
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:5173"

    # Database
    database_url: str = "sqlite:///./data/vaultbank.db"

    # Auth
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    admin_token_expire_minutes: int = 24 * 60
    refresh_token_expire_days: int = 7
    refresh_cookie_name: str = "vaultbank_refresh"
    refresh_cookie_path: str = "/api/auth"
    refresh_cookie_samesite: str = "lax"
    refresh_cookie_secure: bool = True
    bcrypt_rounds: int = 12
    max_login_attempts: int = 5
    lockout_minutes: int = 120
    reset_token_ttl_minutes: int = 60

    # Bootstrap admin (created on startup when both are set)
    admin_username: str | None = None
    admin_password: str | None = None
    admin_email: str = "admin@vaultbank.local"

    # Banking
    transfer_fee_rate: Decimal = Decimal("0.006")
    identifier_max_attempts: int = 10

    # Rate limiting (requests per window, window in seconds)
    rate_limit_enabled: bool = True
    general_rate_limit: int = 100
    general_rate_window: int = 15 * 60
    auth_rate_limit: int = 10
    auth_rate_window: int = 15 * 60
    login_rate_limit: int = 5
    login_rate_window: int = 5 * 60
    # Reverse proxies in front of the app; 0 ignores X-Forwarded-For
    trusted_proxy_hops: int = 0

    # Email
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from_email: str = "noreply@vaultbank.local"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        """Fail closed if SECRET_KEY is weak or placeholder quality."""
        if not value:
            raise ValueError("SECRET_KEY must be set.")

        if len(value) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")

        weak_values = {"changeme", "changeme-in-production", "secret", "password", "test"}
        lowered = value.lower()
        if lowered in weak_values or "changeme" in lowered:
            raise ValueError("SECRET_KEY must not be a placeholder value.")

        counts = Counter(value)
        entropy_per_char = -sum((count / len(value)) * math.log2(count / len(value)) for count in counts.values())
        estimated_entropy_bits = entropy_per_char * len(value)
        if estimated_entropy_bits < 100:
            raise ValueError("SECRET_KEY entropy is too low; use a cryptographically random value.")

        return value

    @field_validator("transfer_fee_rate")
    @classmethod
    def validate_fee_rate(cls, value: Decimal) -> Decimal:
        if value < 0 or value >= 1:
            raise ValueError("TRANSFER_FEE_RATE must be between 0 and 1.")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
