"""Live signal scanning over a watchlist."""

from .live_scanner import CandleProvider, LiveScanner, ScanReport, Signal, scan_signals

__all__ = ["CandleProvider", "LiveScanner", "ScanReport", "Signal", "scan_signals"]
