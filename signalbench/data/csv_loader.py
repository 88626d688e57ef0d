"""
CSV Candle Loader

Loads OHLCV data from per-symbol CSV files. This is the candle collaborator
used by the CLI; the core itself never reads files.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from ..config import settings
from .candles import CandleSeries

logger = logging.getLogger(__name__)


def load_csv(path: Union[str, Path]) -> CandleSeries:
    """
    Load a CSV file with a timestamp column and open/high/low/close/volume.

    Args:
        path: CSV file path

    Returns:
        Normalized CandleSeries (malformed rows dropped)
    """
    path = Path(path)
    logger.info(f"Loading candles from {path}")

    df = pd.read_csv(path)
    if df.empty:
        logger.warning(f"No rows in {path}")
        return CandleSeries()

    df.columns = [str(c).strip().lower() for c in df.columns]
    for col in ["open", "high", "low", "close", "volume"]:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")

    series = CandleSeries.from_dataframe(df)
    logger.info(f"Loaded {len(series)} bars from {path.name}")
    return series


class CsvCandleProvider:
    """Candle provider reading ``<directory>/<SYMBOL>.csv``."""

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory or settings.data_dir)

    def path_for(self, symbol: str) -> Path:
        return self.directory / f"{symbol.upper()}.csv"

    def get_candles(self, symbol: str) -> CandleSeries:
        path = self.path_for(symbol)
        if not path.exists():
            raise FileNotFoundError(f"No candle file for {symbol}: {path}")
        return load_csv(path)

    def get_available_symbols(self) -> List[str]:
        """Symbols with a CSV file in the directory."""
        if not self.directory.is_dir():
            return []
        return sorted(p.stem.upper() for p in self.directory.glob("*.csv"))
