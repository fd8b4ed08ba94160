"""
Container for backtest outputs: resolved trades, the final order ledger,
engine counters and aggregated trade metrics.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from algo_engine.core.order import Order
from algo_engine.core.trade import TradeIn, TradeOut


@dataclass
class BacktestResults:
    # Trade-level data
    trades_in: List[TradeIn] = field(default_factory=list)
    trades_out: List[TradeOut] = field(default_factory=list)
    open_trade: Optional[TradeIn] = None
    orders: List[Order] = field(default_factory=list)

    # Activity
    total_bars: int = 0
    rejected_batches: int = 0
    suppressed_exits: int = 0
    unfilled_exits: int = 0

    # Aggregated metrics
    overall_metrics: Dict[str, float] = field(default_factory=dict)

    net_profit: float = 0.0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    max_run_up: float = 0.0
    max_draw_down: float = 0.0
    max_win_streak: int = 0
    max_loss_streak: int = 0

    @property
    def total_trades(self) -> int:
        return len(self.trades_out)
