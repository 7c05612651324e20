"""Application settings for espn-slate."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORE_BASE_URL = "https://sports.core.api.espn.com/v2/sports/football/leagues/nfl"
DEFAULT_SITE_SCOREBOARD_URL = (
    "https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard"
)


class Settings(BaseSettings):
    """Runtime settings for upstream API access and fan-out."""

    model_config = SettingsConfigDict(
        env_prefix="ESPN_SLATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    core_base_url: str = DEFAULT_CORE_BASE_URL
    site_scoreboard_url: str = DEFAULT_SITE_SCOREBOARD_URL
    timeout_s: float = 10.0
    max_attempts: int = Field(default=5, ge=1)
    backoff_base_s: float = Field(default=1.0, ge=0.0)
    max_workers: int = Field(default=16, ge=1)
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("ESPN_SLATE_LOG_LEVEL", "LOG_LEVEL"),
    )
    user_agent: str = "Mozilla/5.0 (compatible; espn-slate/0.1.0)"

    def core_url(self, path: str) -> str:
        """Join a relative path onto the core API base URL."""
        return f"{self.core_base_url.rstrip('/')}/{path.lstrip('/')}"
