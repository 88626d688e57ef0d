"""
JSON Report Export

Export backtest and scan results to JSON format.
"""

import json
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np

from ..engine.simulator import BacktestResult
from ..scanner.live_scanner import ScanReport


def _serialize(obj):
    """JSON serializer for objects not serializable by default."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    raise TypeError(f"Type {type(obj)} not serializable")


def _sanitize(value):
    """Replace non-finite floats (which json emits as bare Infinity/NaN) with strings."""
    if isinstance(value, float) and not np.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {k: _sanitize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize(v) for v in value]
    return value


def export_json(
    result: Union[BacktestResult, ScanReport, Dict[str, BacktestResult]],
    output_path: Optional[str] = None,
) -> str:
    """
    Export a backtest result, a dict of results or a scan report to JSON.

    Args:
        result: BacktestResult, dict of symbol -> BacktestResult, or ScanReport
        output_path: Optional file path to write JSON

    Returns:
        JSON string
    """
    if isinstance(result, (BacktestResult, ScanReport)):
        data = result.to_dict()
    else:
        data = {
            "multi_symbol": True,
            "symbols": list(result.keys()),
            "results": {sym: r.to_dict() for sym, r in result.items()},
            "aggregate": _calculate_aggregate(result),
        }

    json_str = json.dumps(_sanitize(data), indent=2, default=_serialize)

    if output_path:
        Path(output_path).write_text(json_str)

    return json_str


def _calculate_aggregate(results: Dict[str, BacktestResult]) -> Dict:
    """Calculate aggregate statistics across multiple symbols."""
    if not results:
        return {}

    total_trades = sum(r.stats.total_trades for r in results.values())
    total_wins = sum(r.stats.winning_trades for r in results.values())
    returns = [r.stats.net_return for r in results.values()]

    return {
        "total_symbols": len(results),
        "total_trades": total_trades,
        "total_wins": total_wins,
        "overall_win_rate": round(total_wins / total_trades * 100, 2) if total_trades > 0 else 0,
        "avg_return": round(sum(returns) / len(returns), 2),
        "best_symbol": max(results.items(), key=lambda x: x[1].stats.net_return)[0],
        "worst_symbol": min(results.items(), key=lambda x: x[1].stats.net_return)[0],
    }
