"""
Portal Configuration

Settings are read from ``CLAIMS_PORTAL_*`` environment variables or a local
``.env`` file.
"""
import logging
from functools import lru_cache
from typing import Dict

from pydantic_settings import BaseSettings, SettingsConfigDict

from claims_portal.core.states import Priority

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLAIMS_PORTAL_",
        env_file=".env",
        extra="ignore",
    )

    # --- Backend ---
    API_URL: str = "http://localhost:8000"
    REQUEST_TIMEOUT: float = 30.0

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Worklists ---
    PAGE_SIZE: int = 10
    QUEUE_PREVIEW_SIZE: int = 5

    # --- Uploads ---
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # --- SLA (days until an assignment is due, per priority) ---
    SLA_DAYS_URGENT: int = 1
    SLA_DAYS_HIGH: int = 3
    SLA_DAYS_MEDIUM: int = 5
    SLA_DAYS_LOW: int = 10

    @property
    def sla_days(self) -> Dict[Priority, int]:
        return {
            Priority.URGENT: self.SLA_DAYS_URGENT,
            Priority.HIGH: self.SLA_DAYS_HIGH,
            Priority.MEDIUM: self.SLA_DAYS_MEDIUM,
            Priority.LOW: self.SLA_DAYS_LOW,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "") -> None:
    """Configure root logging once for an entry point."""
    logging.basicConfig(
        level=(level or get_settings().LOG_LEVEL).upper(),
        format=LOG_FORMAT
    )
