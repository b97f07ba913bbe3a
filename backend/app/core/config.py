from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings sourced from environment variables."""

    DATABASE_URL: str = "postgresql+asyncpg://app_user@localhost:5432/reservations"
    REDIS_URL: str = "redis://localhost:6379/0"

    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Advisory lock around batch table assignment for one restaurant day
    ASSIGNMENT_LOCK_TTL_SECONDS: int = 60
    GROUP_PROXIMITY_RADIUS: float = 100.0

    model_config = ConfigDict(env_file=".env", extra="ignore")


settings = Settings()
