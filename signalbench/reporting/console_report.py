"""
Console Report

Pretty console output for backtest and scan results using Rich.
"""

from typing import Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..analyzers.trade_logger import format_trades
from ..engine.simulator import BacktestResult
from ..scanner.live_scanner import BUY, ScanReport

console = Console()


def print_report(
    result: BacktestResult,
    show_trades: bool = False,
    trade_limit: int = 10,
    out: Optional[Console] = None,
):
    """
    Print a formatted backtest report to the console.

    Args:
        result: BacktestResult from the simulator
        show_trades: Whether to show individual trade details
        trade_limit: Maximum number of trades to show
        out: Console to print to (defaults to the module console)
    """
    out = out or console
    stats = result.stats
    cfg = result.config

    out.print()
    out.print(
        Panel.fit(
            f"[bold blue]Backtest Results: {result.symbol or 'series'}[/bold blue]",
            border_style="blue",
        )
    )

    out.print(
        f"\n[bold]Risk:[/bold] stop {cfg.stop_loss_pct:g}% / target {cfg.target_pct:g}%, "
        f"{cfg.position_size:.0%} of capital per trade"
    )
    if result.equity_curve and result.equity_curve[-1].timestamp is not None:
        out.print(
            f"[bold]Period:[/bold] {result.equity_curve[0].timestamp} to "
            f"{result.equity_curve[-1].timestamp}"
        )
    out.print()

    perf_table = Table(title="Performance Metrics", show_header=True, header_style="bold cyan")
    perf_table.add_column("Metric", style="dim")
    perf_table.add_column("Value", justify="right")

    return_color = "green" if stats.net_return >= 0 else "red"

    perf_table.add_row("Initial Capital", f"{stats.initial_capital:,.0f}")
    perf_table.add_row("Final Capital", f"{stats.final_capital:,.0f}")
    perf_table.add_row("Net Return", f"[{return_color}]{stats.net_return:+.2f}%[/{return_color}]")
    perf_table.add_row("Total P&L", f"{stats.total_pnl:+,.0f}")
    perf_table.add_row("", "")

    perf_table.add_row("Total Trades", str(stats.total_trades))
    perf_table.add_row("Winning Trades", str(stats.winning_trades))
    perf_table.add_row("Losing Trades", str(stats.losing_trades))

    win_color = "green" if stats.win_rate >= 50 else "yellow"
    perf_table.add_row("Win Rate", f"[{win_color}]{stats.win_rate:.2f}%[/{win_color}]")

    if stats.avg_win:
        perf_table.add_row("Avg Win", f"[green]+{stats.avg_win:,.0f}[/green]")
    if stats.avg_loss:
        perf_table.add_row("Avg Loss", f"[red]{stats.avg_loss:,.0f}[/red]")
    if stats.total_trades:
        perf_table.add_row("Best / Worst", f"{stats.best_trade:+,.0f} / {stats.worst_trade:+,.0f}")
        perf_table.add_row(
            "Streaks (W / L)", f"{stats.max_consecutive_wins} / {stats.max_consecutive_losses}"
        )
        perf_table.add_row("Avg Holding", f"{stats.avg_holding_bars:.1f} bars")

    perf_table.add_row("", "")

    if stats.profit_factor:
        pf_color = "green" if stats.profit_factor >= 1.5 else "yellow"
        pf_str = f"{stats.profit_factor:.2f}"
        if stats.worst_trade >= 0:
            pf_str += " (no losses)"
        perf_table.add_row("Profit Factor", f"[{pf_color}]{pf_str}[/{pf_color}]")

    if stats.sharpe_ratio:
        sharpe_color = "green" if stats.sharpe_ratio >= 1.0 else "yellow"
        perf_table.add_row("Sharpe Ratio", f"[{sharpe_color}]{stats.sharpe_ratio:.2f}[/{sharpe_color}]")

    if stats.max_drawdown:
        dd_color = "red" if stats.max_drawdown > 20 else "yellow"
        perf_table.add_row("Max Drawdown", f"[{dd_color}]-{stats.max_drawdown:.2f}%[/{dd_color}]")

    out.print(perf_table)

    if show_trades and result.trades:
        out.print()
        out.print("[bold]Recent Trades:[/bold]")
        out.print()
        out.print(format_trades(result.trades, limit=trade_limit), markup=False)

        if stats.exit_reasons:
            out.print("[bold]Exit Reasons:[/bold]")
            for reason, count in sorted(stats.exit_reasons.items(), key=lambda x: x[1], reverse=True):
                out.print(f"  {reason}: {count}")

    out.print()


def print_signals(report: ScanReport, out: Optional[Console] = None):
    """
    Print scan signals as a table, followed by skipped symbols.

    Args:
        report: ScanReport from LiveScanner.run
        out: Console to print to (defaults to the module console)
    """
    out = out or console

    out.print()
    out.print(
        Panel.fit(
            f"[bold blue]Live Scan: {len(report.signals)} signals "
            f"from {report.scanned_count} symbols[/bold blue]",
            border_style="blue",
        )
    )
    out.print()

    if not report.signals:
        out.print("No signals.")
    else:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Symbol", style="bold")
        table.add_column("Signal")
        table.add_column("Price", justify="right")
        table.add_column("Change", justify="right")
        table.add_column("Target", justify="right")
        table.add_column("Stop", justify="right")
        table.add_column("Conf.", justify="right")
        table.add_column("Indicator")

        for signal in report.signals:
            color = "green" if signal.direction == BUY else "red"
            change_color = "green" if signal.change_pct >= 0 else "red"
            table.add_row(
                signal.symbol,
                f"[{color}]{signal.direction}[/{color}]",
                f"{signal.price:.2f}",
                f"[{change_color}]{signal.change_pct:+.2f}%[/{change_color}]",
                f"{signal.target:.2f}",
                f"{signal.stop_loss:.2f}",
                f"{signal.confidence}%",
                signal.indicator,
            )
        out.print(table)

    if report.skipped:
        out.print()
        out.print(f"[bold]Skipped ({len(report.skipped)}):[/bold]")
        for symbol, reason in report.skipped.items():
            out.print(f"  {symbol}: {reason}", markup=False)

    out.print()


def print_multi_report(results: Dict[str, BacktestResult], out: Optional[Console] = None):
    """
    Print a summary report for multiple symbols.

    Args:
        results: Dict mapping symbol to BacktestResult
        out: Console to print to (defaults to the module console)
    """
    out = out or console

    out.print()
    out.print(
        Panel.fit(
            "[bold blue]Multi-Symbol Backtest Results[/bold blue]",
            border_style="blue",
        )
    )
    out.print()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Symbol", style="bold")
    table.add_column("Trades", justify="right")
    table.add_column("Win Rate", justify="right")
    table.add_column("Return", justify="right")
    table.add_column("Sharpe", justify="right")
    table.add_column("Max DD", justify="right")

    for symbol, result in sorted(results.items()):
        stats = result.stats
        return_color = "green" if stats.net_return >= 0 else "red"
        win_color = "green" if stats.win_rate >= 50 else "yellow"

        table.add_row(
            symbol,
            str(stats.total_trades),
            f"[{win_color}]{stats.win_rate:.2f}%[/{win_color}]",
            f"[{return_color}]{stats.net_return:+.2f}%[/{return_color}]",
            f"{stats.sharpe_ratio:.2f}",
            f"-{stats.max_drawdown:.2f}%",
        )

    out.print(table)

    total_trades = sum(r.stats.total_trades for r in results.values())
    total_wins = sum(r.stats.winning_trades for r in results.values())
    avg_return = sum(r.stats.net_return for r in results.values()) / len(results) if results else 0.0

    out.print()
    out.print("[bold]Aggregate:[/bold]")
    out.print(f"  Total Trades: {total_trades}")
    out.print(f"  Overall Win Rate: {total_wins / total_trades:.1%}" if total_trades > 0 else "  No trades")
    out.print(f"  Average Return: {avg_return:+.2f}%")
    out.print()
