"""
Application Settings
Load from environment variables
"""

from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_REFERENCE_DIR = Path(__file__).resolve().parents[2] / "config"


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Database
    # ======================
    DATABASE_URL: str = "sqlite+aiosqlite:///./dca_simulator.db"
    AUTO_CREATE_TABLES: bool = True

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # ======================
    # Reference data
    # ======================
    REFERENCE_DATA_DIR: Path = _DEFAULT_REFERENCE_DIR

    # ======================
    # Market Data
    # ======================
    LIVE_PROVIDERS: str = "coinmarketcap,coingecko"
    COINGECKO_BASE_URL: str = "https://api.coingecko.com/api/v3"
    COINMARKETCAP_BASE_URL: str = "https://pro-api.coinmarketcap.com/v1"
    COINMARKETCAP_API_KEY: Optional[str] = None
    QUOTE_CURRENCY: str = "eur"
    HTTP_TIMEOUT_SECONDS: float = 15.0
    HTTP_RETRIES: int = 2
    QUOTE_CACHE_TTL_SECONDS: int = 60

    # ======================
    # Price resolution
    # ======================
    LIVE_WINDOW_DAYS: int = 7
    FALLBACK_JITTER_PCT: float = 5.0
    FALLBACK_DEFAULT_PRICE: float = 100.0
    FALLBACK_SEED: Optional[int] = None
    PRICE_FLOOR: float = 0.01
    MAX_TICK_PRICE: float = 1_000_000.0

    # ======================
    # Simulation
    # ======================
    SIMULATION_CONCURRENCY: int = 4
    RANKING_TOP_N: int = 3
    DAY_OF_MONTH_POLICY: str = "clamp"
    COMPETING_SYMBOLS: List[str] = [
        "BTC", "ETH", "SOL", "XRP", "BNB", "DOGE", "TON", "TRX", "ADA", "SHIB",
    ]

    # ======================
    # Live ticker stream
    # ======================
    STREAM_ENABLED: bool = False
    BINANCE_WS_URL: str = "wss://stream.binance.com:9443"
    STREAM_RECONNECT_DELAY: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="forbid",
    )


settings = Settings()
