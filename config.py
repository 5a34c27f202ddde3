import logging
from functools import lru_cache
from typing import List

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_name: str = "Layo Investment Store API"
    port: int = 3000
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    # Database
    mongo_url: str = "mongodb://localhost"
    database_name: str = "layo-investment"

    # Seller bootstrap
    admin_username: str = "admin"
    admin_password: str = "Layo@1ly"
    bcrypt_rounds: int = 10

    # Media
    upload_dir: str = "uploads"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=False,
    )
