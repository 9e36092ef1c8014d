"""Runtime settings and logging setup."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

    # Storage
    db_path: str = Field(default="data/invoices.db", alias="INVOICE_DB_PATH")
    db_timeout: float = Field(default=5.0, alias="INVOICE_DB_TIMEOUT")

    # API
    api_host: str = Field(default="127.0.0.1", alias="INVOICE_API_HOST")
    api_port: int = Field(default=3000, alias="INVOICE_API_PORT")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="INVOICE_CORS_ORIGINS")

    log_level: str = Field(default="INFO", alias="INVOICE_LOG_LEVEL")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
