# delivery/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./delivery.db"

    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000

    LOG_DIR: str = "delivery/log"
    LOG_PRINT: str = "1"

    # restaurant point used for distance-based fees (Sana'a center)
    RESTAURANT_LAT: float = 15.3694
    RESTAURANT_LNG: float = 44.1910

    DELIVERY_MIN_FEE: float = 3
    DELIVERY_FEE_PER_KM: float = 2
    DELIVERY_DEFAULT_FEE: float = 5     # flat fee until a location is chosen
    STRICT_PRICING: bool = True         # recompute subtotal/fee/total on the server

    NOTIFY_MAX_ATTEMPTS: int = 3
    NOTIFY_RETRY_DELAY: float = 0.5     # seconds, multiplied by the attempt number
    NOTIFY_QUEUE_SIZE: int = 1000
    NOTIFY_DEAD_LETTER_SIZE: int = 100  # failed notifications kept in memory

    PASSWORD_HASH_ROUNDS: int = 535000

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
