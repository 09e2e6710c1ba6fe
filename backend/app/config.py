"""Application settings and configuration helpers."""
from functools import lru_cache
import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./hr_portal.db", alias="DATABASE_URL"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    seed_reference_data: bool = Field(default=True, alias="SEED_REFERENCE_DATA")
    # Length of the fresh probation window opened by a contract renewal.
    default_probation_months: int = Field(default=3, alias="DEFAULT_PROBATION_MONTHS")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    defaults = Settings.model_fields
    return Settings(
        database_url=os.getenv("DATABASE_URL", defaults["database_url"].default),
        log_level=os.getenv("LOG_LEVEL", defaults["log_level"].default),
        seed_reference_data=_env_flag("SEED_REFERENCE_DATA", defaults["seed_reference_data"].default),
        default_probation_months=int(
            os.getenv("DEFAULT_PROBATION_MONTHS", defaults["default_probation_months"].default)
        ),
    )
