"""
Activation detection: decides whether price action on the current bar triggers
any pending order.

Entries and exits activate on the price selected by the order engine and the
activation source; stop-losses always use the bar's high/low. An order can only
activate on a bar strictly after the one it was created on.

When several orders activate on the same step, one Position is returned with an
explicit priority: stop-loss, then exit/take-profit, then entry. Among orders of
the same priority the latest in ledger order wins. Exit gating (no open
position) drops exits and stops before this selection, so a gated exit never
hides an entry activated on the same bar.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from algo_engine.core.candles import Candle, CandleWindow
from algo_engine.core.config import ActivationSource, EngineConfig, OrderEngine
from algo_engine.core.order import Order, OrderDirection, OrderKind
from algo_engine.core.trade import Position
from algo_engine.orders.ledger import OrderLedger

logger = logging.getLogger(__name__)

PRIORITY_ENTRY = 0
PRIORITY_EXIT = 1
PRIORITY_STOP = 2


def activation_prices(
    candle: Candle, prev_candle: Candle, config: EngineConfig
) -> Tuple[float, float, float, float]:
    """(current over, current under, previous over, previous under) prices."""
    uses_close = (
        config.order_engine is OrderEngine.BOT
        and config.order_activation_source is ActivationSource.CLOSE
    )
    if uses_close:
        return candle.close, candle.close, prev_candle.close, prev_candle.close
    return candle.high, candle.low, prev_candle.high, prev_candle.low


def order_activated(
    index: int, order: Order, window: CandleWindow, config: EngineConfig
) -> bool:
    candle = window.get(index)
    if candle is None:
        return False
    prev_candle = window.get(max(index - 1, 0))

    is_next_bar = candle.ts_id > order.id
    if not is_next_bar:
        return False

    order_type = order.order_type
    target = order.target_price

    if order_type.kind is OrderKind.STOP_LOSS_LONG:
        return candle.low <= target
    if order_type.kind is OrderKind.STOP_LOSS_SHORT:
        return candle.high >= target

    source = config.order_activation_source
    if source is ActivationSource.CLOSE and not candle.is_closed:
        return False

    over, under, prev_over, prev_under = activation_prices(candle, prev_candle, config)
    strict_cross = source is ActivationSource.CROSS

    if order_type.direction is OrderDirection.UP:
        return over >= target and (not strict_cross or prev_over < target)
    return under <= target and (not strict_cross or prev_under > target)


def _priority(order: Order) -> int:
    if order.order_type.is_stop():
        return PRIORITY_STOP
    if order.order_type.is_exit():
        return PRIORITY_EXIT
    return PRIORITY_ENTRY


def resolve_active_orders(
    index: int,
    window: CandleWindow,
    ledger: OrderLedger,
    config: EngineConfig,
) -> Position:
    """Resolve at most one activated order for bar ``index``. Does not mutate the ledger.

    Exits and stops are only eligible while a position is open (a buy order has
    been consumed); otherwise they are ignored for this step.
    """
    can_exit = ledger.has_open_position()
    selected: Optional[Order] = None
    activated = 0

    for order in ledger.all_pending():
        if not order_activated(index, order, window, config):
            continue
        if not order.order_type.is_entry() and not can_exit:
            logger.debug(f"Exit {order!r} activated with no open position; ignored")
            continue
        activated += 1
        if selected is None or _priority(order) >= _priority(selected):
            selected = order

    if selected is None:
        return Position.none()

    if activated > 1:
        logger.debug(
            f"{activated} orders activated at index {index}; resolved {selected!r}"
        )

    if selected.order_type.is_entry():
        return Position.market_in_order(selected)
    return Position.market_out_order(selected)
