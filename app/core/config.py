from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Pet Grooming Booking"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Supabase (Auth + Postgres)
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Shop
    TIMEZONE: str = "Asia/Bangkok"
    BOOKING_WINDOW_DAYS: int = 14
    SHOP_CONFIG_PATH: str = "data/shop_config.json"

    # Admin panel
    API_BASE_URL: str = "http://localhost:8000"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
