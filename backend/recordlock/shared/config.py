from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[2]  # backend/
(BASE_DIR / "_data").mkdir(exist_ok=True)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_ENV: str = "dev"
    API_PREFIX: str = "/api"
    DATABASE_URL: str = "sqlite:///./_data/locks.db"
    AUTO_CREATE_TABLES: bool = True
    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # lock durations are expressed in minutes on the wire
    LOCK_DEFAULT_MINUTES: int = 120
    LOCK_MAX_MINUTES: int = 365 * 24 * 60

    # client side
    LOCK_API_URL: str = "http://127.0.0.1:8000/api/v1/locks"
    CLIENT_ATTEMPTS: int = 3
    CLIENT_BASE_DELAY: float = 1.0
    CLIENT_TIMEOUT: float = 10.0
    IDENTITY_CACHE_PATH: str = "./_data/identity.json"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
