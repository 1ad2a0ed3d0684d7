from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_NAME: str = "granite-measurement"
    DATABASE_URL: str = "sqlite:///./granite.db"
    LOG_LEVEL: str = "INFO"

    # Cache: Redis when REDIS_URL is set, otherwise CACHE_BACKEND decides
    REDIS_URL: str = ""
    CACHE_BACKEND: str = "memory"  # 'memory' | 'redis' | 'none'
    CACHE_KEY_PREFIX: str = ""
    CACHE_SOCKET_TIMEOUT: float = 0.5

    # TTLs in seconds
    CACHE_TTL_CUSTOMER: int = 3600
    CACHE_TTL_SHEET: int = 3600
    CACHE_TTL_SHEET_FULL: int = 1800
    CACHE_TTL_ENTRY_LIST: int = 1800
    CACHE_TTL_SEARCH: int = 300
    CACHE_TTL_RECENT: int = 600
    CACHE_TTL_STATS: int = 900

    # Sequences
    SHEET_NUMBER_PREFIX: str = "MS-"
    SHEET_NUMBER_WIDTH: int = 4
    SERIAL_ALLOCATION_ATTEMPTS: int = 3
    MAX_BATCH_SIZE: int = 500

    # Late corrections on completed sheets are allowed unless this is turned off
    ALLOW_EDITS_ON_COMPLETED_SHEETS: bool = True

    class Config:
        env_file = ".env"

settings = Settings()
