from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application Settings
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database Settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./properties.db")

    # Telegram Settings
    TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")
    TELEGRAM_WEBHOOK_URL: Optional[str] = os.getenv("TELEGRAM_WEBHOOK_URL")
    TELEGRAM_WEBHOOK_SECRET: Optional[str] = os.getenv("TELEGRAM_WEBHOOK_SECRET")

    # Search Settings
    SERVICE_AREA: str = os.getenv("SERVICE_AREA", "Bath")

    # Presentation pacing (seconds)
    PRESENTATION_DELAY_SECONDS: float = float(os.getenv("PRESENTATION_DELAY_SECONDS", "5"))
    MESSAGE_INTERVAL_SECONDS: float = float(os.getenv("MESSAGE_INTERVAL_SECONDS", "1"))

    # Validate database URL format
    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def validate_database_url(cls, v: Optional[str]) -> str:
        if not v:
            raise ValueError("DATABASE_URL is not set in environment variables")
        if v.startswith("postgresql://"):
            # psycopg 3 has an async driver, so plain postgres URLs are upgraded to it
            v = v.replace("postgresql://", "postgresql+psycopg://", 1)
        if not v.startswith(("sqlite+aiosqlite://", "postgresql+psycopg://")):
            raise ValueError(
                "DATABASE_URL must start with sqlite+aiosqlite://, postgresql:// or postgresql+psycopg://"
            )
        return v

    @field_validator("PRESENTATION_DELAY_SECONDS", "MESSAGE_INTERVAL_SECONDS")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Delays must be zero or positive")
        return v


# Create settings instance
settings = Settings()
