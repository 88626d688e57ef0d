"""
Signalbench Configuration

Uses pydantic-settings for environment variable management.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Signalbench configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backtest defaults
    default_initial_capital: float = 100000.0
    default_position_size: float = 0.10  # Fraction of current capital per trade
    default_stop_loss_pct: float = 2.0  # Exit when trade is down X%
    default_target_pct: float = 4.0  # Exit when trade is up X%
    warmup_bars: int = 50  # Bars skipped before the first evaluation
    max_result_trades: int = 100  # Most recent trades kept in a result

    # Rule evaluation
    equals_tolerance: float = 0.01

    # Statistics
    trading_days_per_year: int = 252

    # Live scan
    scan_min_bars: int = 50
    scan_atr_period: int = 14
    scan_fallback_stop_pct: float = 2.0  # Used when ATR is not yet defined
    default_watchlist: List[str] = [
        "RELIANCE", "TCS", "HDFCBANK", "INFY", "ICICIBANK", "HINDUNILVR",
        "ITC", "SBIN", "BHARTIARTL", "KOTAKBANK", "LT", "AXISBANK",
        "MARUTI", "TITAN", "SUNPHARMA", "BAJFINANCE", "WIPRO", "HCLTECH",
        "TATAMOTORS", "NTPC",
    ]

    # CLI
    data_dir: str = "data"
    log_level: str = "INFO"


# Global settings instance
settings = Settings()
