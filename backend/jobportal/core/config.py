from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./jobportal.db"

    # JWT Authentication
    JWT_SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "jobportal"
    JWT_AUDIENCE: str = "jobportal-clients"
    TOKEN_EXPIRATION_HOURS: int = 1

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # Seeded administrator (skipped when either is empty)
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # Application
    APP_NAME: str = "JobPortal"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False
    BACKEND_CORS_ORIGINS: str = (
        "http://localhost:3000,"
        "http://localhost:8081,"
        "http://10.0.2.2:5000"
    )


settings = Settings()
