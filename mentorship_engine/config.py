import logging
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # Pydantic Settings will automatically look for these as environment variables
    # or in a .env file

    # Database Settings
    POSTGRES_USER: str = "user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "mentorship_db"
    DATABASE_URL: Optional[str] = None # Overrides the POSTGRES_* settings when set (e.g. sqlite:///./mentorship.db)

    # SQLAlchemy Connection Pooling Settings
    # Refer to https://docs.sqlalchemy.org/en/20/core/engines.html#connection-pooling-options
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30 # seconds
    DB_POOL_RECYCLE: int = 1800 # seconds (30 minutes) - recycle connections older than this

    # Pairing Settings
    ALLOWED_MATCH_ATTRIBUTES: List[str] = ["male", "female"]

    # Session Scheduling Settings
    SESSION_MIN_DURATION_MINUTES: int = 15
    SESSION_MAX_DURATION_MINUTES: int = 240
    RECENT_SESSIONS_LIMIT: int = 10

    # Notification Settings
    NOTIFICATION_ASYNC: bool = True # Hooks run on a worker pool; false delivers inline in the caller (tests only)
    NOTIFICATION_MAX_WORKERS: int = 2

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore" # Ignore extra env variables not defined here
    )

@lru_cache() # Cache settings to avoid re-reading on every call
def get_settings():
    """Returns a cached instance of the Settings."""
    return Settings()

def configure_logging(level: Optional[str] = None):
    """Configures root logging with the service format."""
    logging.basicConfig(
        level=(level or get_settings().LOG_LEVEL).upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True,
    )
