from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from contribhub.domain.models import DifficultyFilter, SortMode, ViewQuery

ENV_PREFIX = "CONTRIBHUB_"


class Settings(BaseSettings):
    """Runtime configuration, read from ``CONTRIBHUB_*`` variables (and a .env file via main)."""
    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, frozen=True, extra="ignore")

    backend_url: str = Field(..., min_length=1, description="Base URL of the ContributionHub backend")
    session_cookie: Optional[str] = Field(None, description="Session cookie value for headless use")
    log_level: str = Field("INFO", description="Root logging level")
    search: str = ""
    difficulty: DifficultyFilter = DifficultyFilter.ALL
    sort: SortMode = SortMode.COMMENTS_DESC
    page: int = Field(1, ge=1)

    @field_validator("session_cookie", mode="before")
    @classmethod
    def _blank_cookie_is_none(cls, value):
        return value or None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Builds settings from the process environment.

        Raises:
            pydantic.ValidationError: If a variable is missing or malformed.
        """
        return cls()

    @property
    def query(self) -> ViewQuery:
        return ViewQuery(search=self.search, difficulty=self.difficulty, sort=self.sort)
