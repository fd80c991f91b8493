"""Application configuration helpers.

Credentials are only read from the environment: `SERPER_API_KEY` and
`SERPAPI_API_KEY` are billable keys and must never be hardcoded.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("serper", "serpapi")


class ConfigurationError(RuntimeError):
    """Raised when mandatory configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    serper_api_key: str = ""
    serpapi_api_key: str = ""
    search_provider: str = "serper"
    default_country_code: str = "us"
    search_max_pages: int = 5
    grid_max_pages: int = 1
    grid_batch_size: int = 5
    grid_batch_pause_seconds: float = 0.2
    request_timeout_seconds: float = 10.0
    worker_port: int = 9000

    @property
    def provider_api_key(self) -> str:
        if self.search_provider == "serpapi":
            return self.serpapi_api_key
        return self.serper_api_key


def require_api_key(settings: Settings) -> str:
    """Return the credential of the configured provider or fail loudly."""
    api_key = settings.provider_api_key
    if not api_key:
        env_name = "SERPAPI_API_KEY" if settings.search_provider == "serpapi" else "SERPER_API_KEY"
        raise ConfigurationError(f"{env_name} must be set for the {settings.search_provider} provider.")
    return api_key


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    serper_api_key = os.getenv("SERPER_API_KEY", "")
    serpapi_api_key = os.getenv("SERPAPI_API_KEY", "")
    search_provider = os.getenv("SEARCH_PROVIDER", "serper").strip().lower()
    default_country_code = os.getenv("DEFAULT_COUNTRY_CODE", "us").strip().lower() or "us"
    search_max_pages = int(os.getenv("SEARCH_MAX_PAGES", "5"))
    grid_max_pages = int(os.getenv("GRID_MAX_PAGES", "1"))
    grid_batch_size = int(os.getenv("GRID_BATCH_SIZE", "5"))
    grid_batch_pause_seconds = float(os.getenv("GRID_BATCH_PAUSE_SECONDS", "0.2"))
    request_timeout_seconds = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
    worker_port = int(os.getenv("WORKER_PORT", "9000"))

    if search_provider not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"SEARCH_PROVIDER must be one of {', '.join(SUPPORTED_PROVIDERS)}; got {search_provider!r}."
        )
    if grid_batch_size < 1:
        raise ConfigurationError("GRID_BATCH_SIZE must be at least 1.")
    if search_max_pages < 1 or grid_max_pages < 1:
        raise ConfigurationError("SEARCH_MAX_PAGES and GRID_MAX_PAGES must be at least 1.")

    settings = Settings(
        serper_api_key=serper_api_key,
        serpapi_api_key=serpapi_api_key,
        search_provider=search_provider,
        default_country_code=default_country_code,
        search_max_pages=search_max_pages,
        grid_max_pages=grid_max_pages,
        grid_batch_size=grid_batch_size,
        grid_batch_pause_seconds=grid_batch_pause_seconds,
        request_timeout_seconds=request_timeout_seconds,
        worker_port=worker_port,
    )
    if not settings.provider_api_key:
        logger.warning(
            "No API key configured for search provider %s; ranking requests will fail.", search_provider
        )
    return settings
