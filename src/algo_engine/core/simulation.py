"""
Backtest replay loop.

Walks the candle window bar by bar, asks the strategy for its intent, feeds it to
the TradingEngine and, once the replay is over, computes aggregate trade
statistics vectorised with NumPy. Aggregates are a backtest-only concern; live
runs reconcile realized values against the broker instead.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import numpy as np
from tqdm import tqdm

from algo_engine.core.engine import TradingEngine
from algo_engine.core.pricing import Pricing
from algo_engine.core.results import BacktestResults
from algo_engine.core.trade import TradeOut
from algo_engine.strategies.base import Strategy

logger = logging.getLogger(__name__)


def _compute_trade_metrics(trades: List[TradeOut]) -> Dict[str, float]:
    """Compute standard trade-level performance metrics (per-unit profit)."""
    if not trades:
        return {
            "total_trades": 0,
            "win_rate": 0.0,
            "net_profit": 0.0,
            "gross_profit": 0.0,
            "gross_loss": 0.0,
            "profit_factor": 0.0,
            "avg_profit_per": 0.0,
            "largest_win": 0.0,
            "largest_loss": 0.0,
            "max_run_up": 0.0,
            "max_draw_down": 0.0,
            "max_win_streak": 0,
            "max_loss_streak": 0,
        }

    total_trades = len(trades)
    profits = np.array([t.profit for t in trades])
    wins = profits > 0
    losses = profits < 0

    num_wins = int(np.sum(wins))
    win_rate = num_wins / total_trades * 100

    gross_profit = float(np.sum(profits[wins]))
    gross_loss = float(np.sum(profits[losses]))
    net_profit = gross_profit + gross_loss
    profit_factor = gross_profit / abs(gross_loss) if gross_loss != 0 else float("inf")

    largest_win = float(np.max(profits[wins])) if num_wins > 0 else 0.0
    largest_loss = float(np.min(profits[losses])) if np.any(losses) else 0.0

    # Win/loss streaks in exit order; breakeven trades reset the streak
    max_win_streak = 0
    max_loss_streak = 0
    current_streak = 0
    current_type: Optional[str] = None

    for profit in profits:
        if profit == 0:
            current_streak = 0
            current_type = None
            continue
        kind = "win" if profit > 0 else "loss"
        current_streak = current_streak + 1 if kind == current_type else 1
        current_type = kind
        if kind == "win":
            max_win_streak = max(max_win_streak, current_streak)
        else:
            max_loss_streak = max(max_loss_streak, current_streak)

    return {
        "total_trades": total_trades,
        "win_rate": win_rate,
        "net_profit": net_profit,
        "gross_profit": gross_profit,
        "gross_loss": gross_loss,
        "profit_factor": profit_factor,
        "avg_profit_per": float(np.mean([t.profit_per for t in trades])),
        "largest_win": largest_win,
        "largest_loss": largest_loss,
        "max_run_up": float(np.max([t.run_up for t in trades])),
        "max_draw_down": float(np.max([t.draw_down for t in trades])),
        "max_win_streak": max_win_streak,
        "max_loss_streak": max_loss_streak,
    }


def run_backtest(
    engine: TradingEngine,
    strategy: Strategy,
    pricing: Pricing,
    start_index: int = 1,
    show_progress: bool = True,
) -> BacktestResults:
    """Replay the engine's candle window through ``strategy``."""
    if not engine.config.is_backtest:
        raise ValueError("run_backtest requires a backtest execution mode")
    if start_index < 0:
        raise ValueError("start_index must be >= 0")

    window = engine.window
    for index in tqdm(
        range(start_index, len(window)), desc="Backtesting", disable=not show_progress
    ):
        intent = strategy.next_intent(index, window, pricing, engine.open_trade)
        engine.step(index, pricing, intent)

    results = BacktestResults()
    results.trades_in = list(engine.trades_in)
    results.trades_out = list(engine.trades_out)
    results.open_trade = engine.open_trade
    results.orders = engine.ledger.orders
    results.total_bars = len(window)
    results.rejected_batches = engine.rejected_batches
    results.suppressed_exits = engine.suppressed_exits
    results.unfilled_exits = engine.unfilled_exits

    metrics = _compute_trade_metrics(results.trades_out)
    results.overall_metrics = metrics
    results.net_profit = metrics["net_profit"]
    results.win_rate = metrics["win_rate"]
    results.profit_factor = metrics["profit_factor"]
    results.max_run_up = metrics["max_run_up"]
    results.max_draw_down = metrics["max_draw_down"]
    results.max_win_streak = metrics["max_win_streak"]
    results.max_loss_streak = metrics["max_loss_streak"]

    logger.info(
        f"Backtest finished: {metrics['total_trades']} trade(s), "
        f"net profit {results.net_profit:+.5f}, win rate {results.win_rate:.1f}%"
    )
    return results
