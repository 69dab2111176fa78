"""Service configuration.

Every value can be overridden with an environment variable of the same
name, or from a ``.env`` file in the working directory.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Price Points Ledger"
    LOG_LEVEL: str = Field(default="INFO")

    # Rewards
    BASE_AWARD_POINTS: int = 5
    AWARD_REASON: str = "price_report"
    DUPLICATE_WINDOW_HOURS: int = 24
    GEOFENCE_RADIUS_KM: float = 1.0
    # JSON list of stores with coordinates, read at startup for the geofence
    STORES_FILE: Optional[str] = Field(default=None)

    # Image classifier (Groq vision model)
    GROQ_API_KEY: Optional[str] = Field(default=None)
    CLASSIFIER_MODEL: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    CLASSIFIER_TIMEOUT_SECONDS: float = 30.0
    CLASSIFIER_MAX_RETRIES: int = 1
    CLASSIFIER_MIN_CONFIDENCE: int = 50

    # Submission queue
    QUEUE_ITEM_DELAY_SECONDS: float = 0.5
    # Paused runs are written here as JSON; unset keeps them in memory only
    RUN_STATE_DIRECTORY: Optional[str] = Field(default=None)

    # Image storage
    STORAGE_DIRECTORY: str = "data/price-tags"
    STORAGE_PUBLIC_BASE_URL: str = "/static/price-tags"
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024

    # Admin listing
    ADMIN_PAGE_SIZE: int = 20


@lru_cache
def get_settings() -> Settings:
    return Settings()
