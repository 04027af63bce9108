"""
Configuration for CardSense.

Settings are read from the environment once and cached.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass
class Settings:
    """Runtime settings loaded from environment."""

    # Catalog
    catalog_base_url: str = "https://api.scryfall.com"
    catalog_timeout_seconds: float = 10.0
    request_interval_ms: int = 100  # 10 requests/second
    user_agent: str = "CardSense/1.0"

    # Cache
    cache_ttl_hours: int = 24

    # Recognition
    ocr_confidence_threshold: int = 60
    tesseract_config: str = "--oem 3 --psm 6"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            catalog_base_url=os.getenv("CARDSENSE_CATALOG_URL", cls.catalog_base_url),
            catalog_timeout_seconds=float(
                os.getenv("CARDSENSE_CATALOG_TIMEOUT", cls.catalog_timeout_seconds)
            ),
            request_interval_ms=int(
                os.getenv("CARDSENSE_REQUEST_INTERVAL_MS", cls.request_interval_ms)
            ),
            user_agent=os.getenv("CARDSENSE_USER_AGENT", cls.user_agent),
            cache_ttl_hours=int(os.getenv("CARDSENSE_CACHE_TTL_HOURS", cls.cache_ttl_hours)),
            ocr_confidence_threshold=int(
                os.getenv("CARDSENSE_OCR_MIN_CONFIDENCE", cls.ocr_confidence_threshold)
            ),
            tesseract_config=os.getenv("CARDSENSE_TESSERACT_CONFIG", cls.tesseract_config),
            log_level=os.getenv("CARDSENSE_LOG_LEVEL", cls.log_level),
            json_logs=os.getenv("CARDSENSE_JSON_LOGS", "false").lower() == "true",
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings.from_env()
