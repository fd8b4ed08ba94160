"""
Order creation and validation.

Turns a strategy's batch of OrderType intents into concrete Pending orders and
checks the batch before anything reaches the ledger:

- every priced order's target must not already be crossed by the current close;
- a stop-loss must sit on the loss side of the entry level;
- an exit/take-profit must sit on the profit side of the entry level.

Acceptance is all-or-nothing: any failure raises OrderRejected and no order of
the batch is returned.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from algo_engine.core.candles import Candle, CandleWindow, generate_ts_id
from algo_engine.core.config import EngineConfig
from algo_engine.core.errors import InvariantViolation, OrderRejected, RejectReason
from algo_engine.core.order import Order, OrderDirection, OrderType
from algo_engine.core.pricing import Pricing
from algo_engine.core.trade import TradeType

logger = logging.getLogger(__name__)


def validate_target_price(
    order_type: OrderType,
    close_price: float,
    strict: bool = False,
) -> bool:
    """Target must be strictly above the close for UP orders, strictly below for DOWN."""
    target_price = order_type.target_price
    if order_type.direction is OrderDirection.UP:
        valid = target_price > close_price
        relation = "not above"
    else:
        valid = target_price < close_price
        relation = "not below"

    if valid:
        return True

    message = (
        f"{order_type} not valid. Target price {target_price} is {relation} "
        f"close price {close_price}"
    )
    logger.error(message)
    if strict:
        raise InvariantViolation(message)
    return False


def _creation_candle(index: int, window: CandleWindow, config: EngineConfig) -> Optional[Candle]:
    if config.is_backtest:
        return window.get(index)
    return window.last()


def create_order(
    index: int,
    trade_id: int,
    window: CandleWindow,
    order_type: OrderType,
    target_price: float,
    size: float,
    config: EngineConfig,
) -> Order:
    candle = _creation_candle(index, window, config)
    if candle is None:
        raise ValueError(f"No candle at index {index}")

    valid_until = candle.date + config.time_frame.bar_duration(config.valid_until_bars)

    return Order(
        id=generate_ts_id(candle.date),
        trade_id=trade_id,
        index_created=index,
        order_type=order_type,
        origin_price=candle.close,
        target_price=target_price,
        size=size,
        created_at=candle.date,
        valid_until=valid_until,
    )


def create_stop_loss_order(
    index: int,
    trade_id: int,
    window: CandleWindow,
    pricing: Pricing,
    order_type: OrderType,
    entry_price: float,
    size: float,
    config: EngineConfig,
) -> Order:
    target_price = order_type.stop_loss.target_from(
        entry_price, order_type.direction, pricing.pip_size
    )
    return create_order(index, trade_id, window, order_type, target_price, size, config)


def prepare_orders(
    index: int,
    window: CandleWindow,
    pricing: Pricing,
    trade_type: TradeType,
    order_types: List[OrderType],
    config: EngineConfig,
) -> List[Order]:
    """Create and validate a batch of orders. Raises OrderRejected on any failure."""
    current_candle = window.get(index)
    next_candle = _creation_candle(index, window, config)
    if current_candle is None or next_candle is None:
        logger.error(f"No candle at index {index}; {len(order_types)} order(s) not prepared")
        return []

    close_price = current_candle.close
    trade_id = generate_ts_id(next_candle.date)
    spread = pricing.spread

    buy_order_target = 0.0
    sell_order_target = 0.0
    stop_order_target = 0.0
    stop_loss_direction: Optional[OrderDirection] = None
    orders: List[Order] = []

    for order_type in order_types:
        if order_type.is_stop():
            # Stops are derived from the batch's first order (the entry), else the bar open
            first = orders[0] if orders else None
            entry_price = first.target_price if first else next_candle.open
            size = first.size if first else config.order_size

            stop_loss = create_stop_loss_order(
                index,
                trade_id,
                window,
                pricing,
                order_type,
                entry_price,
                size,
                config,
            )
            stop_order_target = stop_loss.target_price
            stop_loss_direction = order_type.direction
            orders.append(stop_loss)
            continue

        if not validate_target_price(
            order_type, close_price, strict=config.strict_target_validation
        ):
            raise OrderRejected(
                RejectReason.TARGET_CROSSED,
                f"{order_type} against close {close_price}",
            )

        order = create_order(
            index,
            trade_id,
            window,
            order_type,
            order_type.target_price,
            order_type.size,
            config,
        )

        if order_type.is_entry():
            if order_type.is_long() and not config.order_with_spread:
                buy_order_target = order.target_price + spread
            else:
                buy_order_target = order.target_price
        else:
            if not order_type.is_long() and not config.order_with_spread:
                sell_order_target = order.target_price + spread
            else:
                sell_order_target = order.target_price

        orders.append(order)

    _check_stop_loss(buy_order_target, stop_order_target, stop_loss_direction)
    _check_exit(buy_order_target, sell_order_target, trade_type)

    logger.debug(f"Prepared {len(orders)} order(s) for trade {trade_id} at index {index}")
    return orders


def _check_stop_loss(
    buy_order_target: float,
    stop_order_target: float,
    stop_loss_direction: Optional[OrderDirection],
) -> None:
    if stop_loss_direction is None or buy_order_target <= 0:
        return

    if stop_loss_direction is OrderDirection.DOWN and stop_order_target >= buy_order_target:
        detail = (
            f"Stop loss can't be placed higher than buy level "
            f"{(buy_order_target, stop_order_target)}"
        )
    elif stop_loss_direction is OrderDirection.UP and stop_order_target <= buy_order_target:
        detail = (
            f"Stop loss can't be placed lower than buy level "
            f"{(buy_order_target, stop_order_target)}"
        )
    else:
        return

    logger.error(detail)
    raise OrderRejected(RejectReason.STOP_WRONG_SIDE, detail)


def _check_exit(
    buy_order_target: float,
    sell_order_target: float,
    trade_type: TradeType,
) -> None:
    if buy_order_target <= 0 or sell_order_target <= 0:
        return

    if trade_type.is_long() and sell_order_target <= buy_order_target:
        detail = (
            f"Sell order can't be placed lower than buy level "
            f"{(buy_order_target, sell_order_target)}"
        )
    elif not trade_type.is_long() and sell_order_target >= buy_order_target:
        detail = (
            f"Sell order can't be placed higher than buy level "
            f"{(buy_order_target, sell_order_target)}"
        )
    else:
        return

    logger.error(detail)
    raise OrderRejected(RejectReason.EXIT_WRONG_SIDE, detail)
