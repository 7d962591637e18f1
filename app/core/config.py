from pathlib import Path
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repo root

ENV_FILE = os.getenv("ENV_FILE", str(BASE_DIR / ".env"))

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_FILE, extra="ignore")

    APP_ENV: str = "local"
    DATABASE_URL: str
    CORS_ORIGINS: str = "*"  # Comma-separated list of allowed origins, or "*" for all

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Release gate
    MIN_RELEASE_INTERVAL_DAYS: int = 30

    # Image answers
    IMAGE_MAX_BYTES: int = 2 * 1024 * 1024
    IMAGE_MAX_WIDTH: int = 800
    IMAGE_MAX_HEIGHT: int = 600
    IMAGE_INITIAL_QUALITY: int = 90
    IMAGE_QUALITY_STEP: int = 10
    IMAGE_MIN_QUALITY: int = 5

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list, handling '*' for development"""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

settings = Settings()
