"""Candle data types and loaders."""

from .candles import Candle, CandleSeries, normalize_candles
from .csv_loader import CsvCandleProvider, load_csv

__all__ = ["Candle", "CandleSeries", "normalize_candles", "CsvCandleProvider", "load_csv"]
