"""
Environment-based configuration for the API manager.

Every component takes its collaborators and knobs as constructor arguments;
these settings only provide the defaults used when nothing is passed in.
Values are read from ``MANAGER_*`` environment variables or a local ``.env``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MANAGER_",
        env_file=".env",
        extra="ignore",
    )

    DATA_DIR: Optional[Path] = Field(default=None, description="Directory with JSON fixtures")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    # Events
    EVENT_SOURCE_URI: str = Field(
        default="http://localhost:8080/apiman",
        description="Source header stamped on events raised by this manager",
    )
    ACCOUNT_APPROVAL_REQUIRED: bool = Field(
        default=True, description="New SSO accounts must be approved before use"
    )
    APPROVER_ROLE: str = Field(default="approver", description="Role notified of approval requests")

    # Email
    MAIL_FROM: str = Field(default="apiman@localhost", description="Sender of email notifications")

    # Paging
    DEFAULT_PAGE_SIZE: int = Field(default=20, ge=1)
    MAX_PAGE_SIZE: int = Field(default=500, ge=1)

    # Event bus
    EVENT_LOG_SIZE: int = Field(default=1000, ge=0, description="Most recent bus events kept for inspection")

    @property
    def data_dir(self) -> Path:
        return self.DATA_DIR or DEFAULT_DATA_DIR


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
