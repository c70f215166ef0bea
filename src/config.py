"""
Configuration settings for the application.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Redis settings
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Catalog store keys
    CATALOG_KEY_PREFIX: str = os.getenv("CATALOG_KEY_PREFIX", "catalog:")
    LEDGER_KEY_PREFIX: str = os.getenv("LEDGER_KEY_PREFIX", "ledger:")
    PROFILE_KEY: str = os.getenv("PROFILE_KEY", "profiles")

    # Filter engine settings
    CATALOG_PAGE_SIZE: int = int(os.getenv("CATALOG_PAGE_SIZE", "20"))
    FILTER_SESSION_KEY_PREFIX: str = os.getenv(
        "FILTER_SESSION_KEY_PREFIX",
        "filters:session:",
    )
    FILTER_SESSION_TTL_SECONDS: int = int(
        os.getenv("FILTER_SESSION_TTL_SECONDS", str(60 * 60 * 24))
    )
    TOWN_OVERRIDE_KEY_PREFIX: str = os.getenv(
        "TOWN_OVERRIDE_KEY_PREFIX",
        "filters:town:",
    )

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    def __init__(self):
        self.env = os.getenv("ENV", "dev")
        self.debug = os.getenv("DEBUG", "false").lower() == "true"
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with env={self.env}, debug={self.debug}, "
            f"log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
