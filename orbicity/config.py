from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    # Environment
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # Database - PostgreSQL for production, SQLite for development
    database_url: str = Field(
        default="sqlite:///./orbicity.db",
        alias="DATABASE_URL"
    )

    # CORS - Frontend URLs from environment (comma-separated)
    allowed_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        alias="ALLOWED_ORIGINS"
    )

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    # ==============================================
    # Channel (iCal) Sync Settings
    # ==============================================
    # Hard limit for fetching one remote calendar
    channel_fetch_timeout_seconds: float = Field(default=20.0, alias="CHANNEL_FETCH_TIMEOUT_SECONDS")
    channel_user_agent: str = Field(
        default="OrbiCity-Channel-Manager/1.0",
        alias="CHANNEL_USER_AGENT"
    )

    # Periodic sync of all active integrations (runs inside the FastAPI process)
    channel_sync_enabled: bool = Field(default=False, alias="CHANNEL_SYNC_ENABLED")
    channel_sync_interval_seconds: int = Field(default=900, alias="CHANNEL_SYNC_INTERVAL_SECONDS")

    # ==============================================
    # Booking rules
    # ==============================================
    max_stay_nights: int = Field(default=90, alias="MAX_STAY_NIGHTS")
    max_advance_days: int = Field(default=730, alias="MAX_ADVANCE_DAYS")  # two years
    currency: str = Field(default="GEL", alias="CURRENCY")

    # Rate limits for guest-facing endpoints (slowapi syntax)
    quote_rate_limit: str = Field(default="60/minute", alias="QUOTE_RATE_LIMIT")
    booking_rate_limit: str = Field(default="10/minute", alias="BOOKING_RATE_LIMIT")
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    # memory:// for a single instance, redis://... when several share limits
    rate_limit_storage_uri: str = Field(default="memory://", alias="RATE_LIMIT_STORAGE_URI")

    @field_validator('channel_fetch_timeout_seconds')
    @classmethod
    def validate_fetch_timeout(cls, v: float) -> float:
        """A channel fetch must always be bounded"""
        if v <= 0:
            raise ValueError("CHANNEL_FETCH_TIMEOUT_SECONDS must be positive")
        return v

    @field_validator('database_url')
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        # Hosting providers hand out postgres://, SQLAlchemy needs postgresql://
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def cors_origins(self) -> List[str]:
        """
        Parse allowed origins from comma-separated string.
        Returns a list suitable for CORSMiddleware.
        """
        origins = []
        for origin in self.allowed_origins.split(","):
            origin = origin.strip().rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)

        return origins if origins else ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Initialize settings on module load
settings = get_settings()
