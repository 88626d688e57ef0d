"""Reporting modules for backtest and scan results."""

from .console_report import print_multi_report, print_report, print_signals
from .json_report import export_json

__all__ = ["print_report", "print_multi_report", "print_signals", "export_json"]
