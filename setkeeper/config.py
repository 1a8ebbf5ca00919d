from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SETKEEPER_")

    app_name: str = "SetKeeper"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./setkeeper.db"

    scryfall_api_url: str = "https://api.scryfall.com"
    scryfall_user_agent: str = "SetKeeper/1.0"
    request_timeout: float = 30.0

    # Scryfall asks clients to keep 50-100ms between requests
    request_delay: float = 0.1

    # Single JSON blob holding every set's collection state
    storage_key: str = "magic-tracker-collection"

    # Legacy flat collection blobs are attributed to this set on migration
    default_set_code: str = "tla"

    cors_origins: list[str] = ["*"]


settings = Settings()


# =============================================================================
# RECONCILIATION LIMITS
# =============================================================================

# Hard cap on continuation pages followed for one query
# (guards against an API that always reports has_more)
MAX_PAGES = 200
