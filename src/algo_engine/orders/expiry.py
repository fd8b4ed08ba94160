"""
Order expiry and cancellation.

Backtest replays are deterministic, so expired or orphaned pending orders are
physically removed from the ledger. Live ledgers are an audit trail: the same
orders are marked Canceled with a timestamp and kept.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional, Union

from algo_engine.core.candles import CandleWindow, utc_now
from algo_engine.core.config import EngineConfig
from algo_engine.core.order import Order
from algo_engine.core.trade import TradeIn, TradeOut
from algo_engine.orders.ledger import OrderLedger

logger = logging.getLogger(__name__)


def cancel_expired(
    ledger: OrderLedger,
    index: int,
    window: CandleWindow,
    config: EngineConfig,
    now: Optional[dt.datetime] = None,
) -> List[Order]:
    """Drop (backtest) or cancel (live) pending orders past their deadline.

    Backtests measure expiry against the date of bar ``index``; live mode uses
    ``now`` (wall clock when omitted). Returns the affected orders.
    """
    if config.is_backtest:
        candle = window.get(index)
        if candle is None:
            logger.warning(f"No candle at index {index}; expiry skipped")
            return []
        current_date = candle.date
        removed = ledger.retain(
            lambda o: not (o.is_pending and not o.is_still_valid(current_date))
        )
        if removed:
            logger.info(f"Removed {len(removed)} expired order(s) at {current_date}")
        return removed

    current_date = now or utc_now()
    canceled = []
    for order in ledger:
        if order.is_pending and not order.is_still_valid(current_date):
            order.cancel(current_date)
            canceled.append(order)
            logger.info(f"Canceled expired order {order.id} (valid until {order.valid_until})")
    return canceled


def cancel_trade_pending(
    ledger: OrderLedger,
    trade: Union[TradeIn, TradeOut],
    config: EngineConfig,
) -> List[Order]:
    """Clear every pending order once a position is closed."""
    if config.is_backtest:
        return ledger.retain(lambda o: not o.is_pending)

    canceled = []
    for order in ledger:
        if order.is_pending:
            logger.info(f"Canceling pending order {order.id}")
            order.cancel(trade.date)
            canceled.append(order)
    return canceled


def extend_pending(
    ledger: OrderLedger, delta: dt.timedelta = dt.timedelta(days=365)
) -> List[Order]:
    """Push the deadline of pending orders out by ``delta`` (keeps a stop alive)."""
    extended = []
    for order in ledger:
        if order.is_pending and order.valid_until is not None:
            order.valid_until = order.valid_until + delta
            logger.info(f"Extending order {order.id} to {order.valid_until}")
            extended.append(order)
    return extended
