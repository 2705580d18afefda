"""Runtime settings read from the environment."""

from functools import lru_cache
from typing import Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Only read by the SQLAlchemy adapter wiring in the demo app.
    DATABASE_URL: Optional[str] = None

    DEFAULT_TOP_COUNTRIES: int = 5

    model_config = ConfigDict(
        env_prefix="EVENTMET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
