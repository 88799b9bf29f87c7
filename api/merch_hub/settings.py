# merch_hub/settings.py
"""
Merch Hub Settings - PostgreSQL (asyncpg) by default, any SQLAlchemy async URL via DATABASE_URL.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    # =========================================================================
    # File Storage (logs, uploaded exports)
    # =========================================================================
    MERCH_DATA_ROOT: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "merch-data"),
        validation_alias=AliasChoices("MERCH_DATA_ROOT", "merch_data_root"),
    )

    # =========================================================================
    # Database
    # =========================================================================
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "merch_database_url"),
        description="Full async SQLAlchemy URL; overrides the DB_* fields when set",
    )
    DB_HOST: str = Field(default="localhost", validation_alias="DB_HOST")
    DB_PORT: int = Field(default=5432, validation_alias="DB_PORT")
    DB_NAME: str = Field(default="merch_hub", validation_alias="DB_NAME")
    DB_USER: str = Field(default="postgres", validation_alias="DB_USER")
    DB_PASSWORD: str = Field(default="postgres", validation_alias="DB_PASSWORD")

    # Connection pool settings
    DB_POOL_SIZE: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    DB_ECHO: bool = Field(default=False, validation_alias="DB_ECHO")

    # =========================================================================
    # Logging
    # =========================================================================
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # =========================================================================
    # Master Tour (Eventric) API - requests go through an OAuth signing proxy
    # =========================================================================
    MASTER_TOUR_API_URL: str = Field(default="https://my.eventric.com", validation_alias="MASTER_TOUR_API_URL")
    MASTER_TOUR_PUBLIC_KEY: Optional[str] = Field(default=None, validation_alias="MASTER_TOUR_PUBLIC_KEY")
    MASTER_TOUR_PRIVATE_KEY: Optional[str] = Field(default=None, validation_alias="MASTER_TOUR_PRIVATE_KEY")
    MASTER_TOUR_TIMEOUT: float = Field(default=30.0, validation_alias="MASTER_TOUR_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

settings = Settings()
