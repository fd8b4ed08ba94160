"""Links executed trades back to the pending order that triggered them."""

from __future__ import annotations

import logging
from typing import Optional, Union

from algo_engine.core.candles import CandleWindow
from algo_engine.core.order import Order
from algo_engine.core.trade import TradeIn, TradeOut
from algo_engine.orders.ledger import OrderLedger

logger = logging.getLogger(__name__)


def fulfill_trade_order(
    ledger: OrderLedger,
    index: int,
    trade: Union[TradeIn, TradeOut],
    order: Order,
) -> Optional[Order]:
    """Mark the first pending order of the same type as Fulfilled.

    Returns the fulfilled order, or None when nothing matches; a missing match
    never fails the surrounding trade resolution.
    """
    target = ledger.first_pending(order.order_type)
    if target is None:
        logger.warning(f"No pending {order.order_type} to fulfill for trade {trade.id}")
        return None

    target.fulfill(index, trade.date)
    logger.info(f"Order {target.id} fulfilled at index {index}")
    return target


def fulfill_bot_order(
    ledger: OrderLedger,
    trade: Union[TradeIn, TradeOut],
    order: Order,
    window: CandleWindow,
) -> Optional[Order]:
    """Live bot fills are recorded against the latest bar."""
    return fulfill_trade_order(ledger, window.last_index(), trade, order)
