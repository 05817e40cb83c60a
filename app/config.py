from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Restaurant Inventory API"
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Supabase
    SUPABASE_URL: str
    SUPABASE_KEY: str
    SUPABASE_SERVICE_KEY: str
    SUPABASE_JWT_SECRET: str

    # Database
    DATABASE_URL: str
    DB_STATEMENT_TIMEOUT_MS: int = 15000

    # JWT (tokens are issued by Supabase Auth)
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: str = "authenticated"

    # Business rules
    TIMEZONE: str = "UTC"
    TAX_RATE: float = 0.09
    ORDER_NUMBER_MAX_RETRIES: int = 3

    # Password reset links land here
    FRONTEND_URL: str = "http://localhost:5173"

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    # API
    API_PREFIX: str = "/api"

    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def is_postgres(self) -> bool:
        return self.DATABASE_URL.startswith("postgres")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()


# Placeholder metrics. These are not computed from real data yet.
WEEKLY_FOOD_COST_PERCENT = 28.5
INVENTORY_TURNOVER_RATE = 2.3
QUALITY_ISSUES_COUNT = 1
