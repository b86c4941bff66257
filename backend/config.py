# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    DATABASE_URL: str = "sqlite:///./keluarga_pekong.db"

    FRONTEND_URL: str = "http://localhost:5173"
    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Products at or below this stock level show up in the low-stock listing
    LOW_STOCK_THRESHOLD: int = 5

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra = "ignore"

settings = Settings()
