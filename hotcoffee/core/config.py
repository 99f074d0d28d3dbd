from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "HotCoffee"
    VERSION: str = "0.1.0"

    # Storage
    STORAGE_BACKEND: Literal["sql", "memory"] = "sql"
    DATABASE_URL: str = "sqlite:///./hotcoffee.db"
    STORE_TIMEOUT_SECONDS: float = 5.0
    SEED_ON_STARTUP: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, port: int) -> int:
        if not 1 <= port <= 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return port


@lru_cache()
def get_settings() -> Settings:
    return Settings()
