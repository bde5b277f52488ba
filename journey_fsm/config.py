from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Name of the session field holding the journey id, and the
    # persistence key used when journeys are not scoped per browser session
    JOURNEY_KEY: str = "journeyId"

    # Persistence backend
    # "memory" keeps journeys in the process, "sql" uses DATABASE_URL
    JOURNEY_STORE: Literal["memory", "sql"] = "memory"
    DATABASE_URL: str = "sqlite:///./journeys.db"

    # History retention (None keeps every breadcrumb)
    BREADCRUMBS_MAX_DEPTH: Optional[int] = None

    # 303 See Other so that browsers follow up a POST with a GET
    REDIRECT_STATUS_CODE: int = 303

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
