"""
Engine configuration.

Centralized configuration management with environment variables.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Expression engine settings"""

    model_config = SettingsConfigDict(
        env_prefix="RPNEXPR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_FORMAT: Literal["text", "json"] = "text"
    LOG_FILE: Optional[str] = None

    # Compilation
    STRICT: bool = False  # raise instead of skipping malformed input

    # Evaluation
    CONSTANT_PRECISION: Literal["double", "single"] = "double"
    FREE_VARIABLE: str = "x"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
