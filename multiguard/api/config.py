"""
Multiguard API Configuration

Environment-based settings for the FastAPI backend and the security core.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Multiguard Access Control API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./multiguard.db"
    DATABASE_ECHO: bool = False

    # Session tokens (JWT)
    JWT_SECRET_KEY: str = "your-super-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Audit log encryption
    LOG_ENCRYPTION_KEY: str = "your-log-encryption-key-change-in-production"

    # Lockout policy
    LOCKOUT_THRESHOLD: int = Field(5, ge=1)
    LOCKOUT_DURATION_MINUTES: int = Field(15, ge=1)

    # RuBAC working hours, [start, end) in server local time
    BUSINESS_HOURS_START: int = 9
    BUSINESS_HOURS_END: int = 17

    # MFA
    MFA_VALID_WINDOW: int = 1  # +/- TOTP time steps
    MFA_ISSUER: str = "Multiguard"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
