"""Configuration settings loaded from the environment and an optional .env file."""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

MISSING_DELETE_TARGETS = ("redirect", "not_found")


class Settings(BaseSettings):
    """Application settings.

    ``missing_delete_target`` decides what a delete against an unknown id does:
    ``redirect`` falls through to the list page, ``not_found`` answers 404 the
    same way detail and edit pages do.
    """

    # Database
    database_url: str = "sqlite+aiosqlite:///./catalog.db"

    # Views
    templates_dir: Path = Path("templates")

    # Workflow choices
    missing_delete_target: str = "redirect"
    genre_unique_on_update: bool = False

    # Logging
    log_level: str = "INFO"
    log_dir: Path = Path("./data/logs")
    log_to_file: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "CATALOG_",
    }

    @field_validator("missing_delete_target")
    @classmethod
    def validate_missing_delete_target(cls, v: str) -> str:
        if v not in MISSING_DELETE_TARGETS:
            raise ValueError(f"missing_delete_target must be one of {MISSING_DELETE_TARGETS}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()
