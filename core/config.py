"""Define configuration settings using Pydantic and manage environment variables."""

from logging import getLogger
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = getLogger(__name__)

load_dotenv("dev.env")

SCRAPE_METHODS = ("html", "graphql", "puppeteer", "fallback")


class Settings(BaseSettings):
    """Class defining configuration settings using Pydantic."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True
    )

    DATABASE_URL: str = "sqlite:///./assets.db"

    # External optimizer service
    OPTIMIZER_BASE_URL: str = "http://localhost:3002"
    OPTIMIZER_TIMEOUT_SECONDS: float = 60.0

    # Scraping
    ASSET_STORE_GRAPHQL_URL: str = "https://assetstore.unity.com/api/graphql/batch"
    DEFAULT_SCRAPE_METHOD: str = "html"
    BROWSER_HEADLESS: bool = True
    PAGE_LOAD_TIMEOUT_MS: int = 15000
    REVIEWS_SETTLE_MS: int = 3000
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Refresh worker
    CYCLE_FREQUENCY_SECONDS: int = 3600
    REFRESH_SLEEP_SECONDS: int = 3
    TRACKED_URLS: List[str] = []

    # API
    CORS_ALLOW_ORIGINS: List[str] = ["*"]
    CATEGORY_DATA_DIR: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    @field_validator("DEFAULT_SCRAPE_METHOD")
    def default_scrape_method(cls, value: str, info: ValidationInfo) -> str:
        if value not in SCRAPE_METHODS:
            raise ValueError(
                f"{info.field_name} must be one of: {', '.join(SCRAPE_METHODS)}"
            )
        return value


settings = Settings()
