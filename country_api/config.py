from pydantic_settings import BaseSettings
from pathlib import Path


class Settings(BaseSettings):
    model_config = {"extra": "ignore", "env_file": ".env"}
    DATABASE_URL: str = "sqlite:///./countries.db"
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    COUNTRY_API: str = "https://restcountries.com/v2/all?fields=name,capital,region,population,flag,currencies"
    EXCHANGE_API: str = "https://open.er-api.com/v6/latest/USD"
    # Seconds to wait on each external source before giving up
    HTTP_TIMEOUT: float = 15.0

    # Logging configuration used by country_api.logging
    LOG_LEVEL: str = "INFO"
    CONSOLE_LOG_LEVEL: str = "INFO"

    # Base directory of the project
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    # Where the summary image is cached; defaults to BASE_DIR / "cache"
    CACHE_DIR: Path | None = None

    # When True every read re-derives estimated_gdp with a fresh random factor
    # (the stored value is only used by the summary image).
    RECOMPUTE_GDP_ON_READ: bool = True

    # Rate limiting / Redis configuration
    # If REDIS_URL is not provided, rate limiting will be disabled gracefully.
    REDIS_URL: str | None = None
    RATE_LIMIT_DEFAULT_TIMES: int = 60
    RATE_LIMIT_DEFAULT_SECONDS: int = 60
    RATE_LIMIT_REFRESH_TIMES: int = 10
    RATE_LIMIT_REFRESH_SECONDS: int = 60
    RATE_LIMIT_IMAGE_TIMES: int = 30
    RATE_LIMIT_IMAGE_SECONDS: int = 60

    @property
    def cache_dir(self) -> Path:
        return self.CACHE_DIR or (self.BASE_DIR / "cache")

    @property
    def summary_image_path(self) -> Path:
        return self.cache_dir / "summary.png"


settings = Settings()
