"""
Trade resolution: turns an activation (or a direct market request) into a
concrete TradeIn/TradeOut with spread-adjusted fills.

Backtests fill on the next bar's open (index + 1) and compute realized P&L,
run-up and drawdown immediately. Live fills use the current bar and leave the
aggregates at zero for later reconciliation against the broker.
"""

from __future__ import annotations

import logging
from typing import Optional

from algo_engine.core.candles import CandleWindow, generate_ts_id
from algo_engine.core.config import EngineConfig, ExecutionMode, OrderEngine
from algo_engine.core.errors import InvariantViolation
from algo_engine.core.order import Order
from algo_engine.core.pricing import Pricing
from algo_engine.core.trade import TradeIn, TradeOut, TradeType
from algo_engine.execution import calc
from algo_engine.sizers.sizers import NotionalSizer, PositionSizer

logger = logging.getLogger(__name__)


def calculate_trade_index(index: int, execution_mode: ExecutionMode) -> int:
    if execution_mode.is_backtest:
        return index + 1
    return index


def resolve_trade_in(
    index: int,
    trade_size: float,
    window: CandleWindow,
    pricing: Pricing,
    trade_type: TradeType,
    config: EngineConfig,
    sizer: Optional[PositionSizer] = None,
    order: Optional[Order] = None,
) -> Optional[TradeIn]:
    """Resolve an entry. Returns None for non-entry types or when the fill bar is missing."""
    if not trade_type.is_entry():
        return None

    fill_index = calculate_trade_index(index, config.execution_mode)
    candle = window.get(fill_index)
    if candle is None:
        logger.warning(f"No candle at index {fill_index}; {trade_type.value} not filled")
        return None

    if config.order_engine is OrderEngine.BROKER and order is not None:
        price = order.target_price
    else:
        price = candle.open

    spread = pricing.spread
    if trade_type.is_long():
        ask = price + spread
        price_in = ask
    else:
        ask = price
        price_in = price

    sizer = sizer or NotionalSizer()
    quantity = sizer.get_quantity(trade_size, price_in)
    trade_id = generate_ts_id(candle.date)

    return TradeIn(
        id=trade_id,
        index_in=fill_index if config.is_backtest else trade_id,
        quantity=quantity,
        origin_price=price,
        price_in=price_in,
        ask=ask,
        spread=spread,
        date_in=candle.date,
        trade_type=trade_type,
    )


def resolve_trade_out(
    index: int,
    window: CandleWindow,
    pricing: Pricing,
    trade_in: TradeIn,
    trade_type: TradeType,
    config: EngineConfig,
    order: Optional[Order] = None,
) -> Optional[TradeOut]:
    """Resolve an exit against an open entry.

    Returns None when the fill bar is missing, or when the exit is not profitable
    and ``non_profitable_outs`` is off (stop-loss exits are always let through).
    """
    fill_index = calculate_trade_index(index, config.execution_mode)
    candle = window.get(fill_index)
    if candle is None:
        logger.warning(f"No candle at index {fill_index}; {trade_type.value} not filled")
        return None

    trade_in_type = trade_in.trade_type
    spread = pricing.spread

    if trade_type.is_stop():
        if order is None:
            raise InvariantViolation(f"{trade_type.value} exit requires its stop order")
        close_trade_price = order.target_price
    else:
        close_trade_price = candle.open

    if config.order_engine is OrderEngine.BROKER and order is not None:
        price_out = order.target_price
    else:
        price_out = close_trade_price

    price_in = trade_in.price_in
    if config.is_backtest and not trade_in_type.is_long():
        price_out = price_out + spread

    bid = price_out + spread if trade_type.is_long() else price_out
    profit = calc.calculate_profit(price_in, price_out, trade_in_type)

    if trade_type.is_stop() and profit > 0:
        logger.error(
            f"Profitable stop loss! {fill_index} @ {(price_in, price_out)} {profit}"
        )

    if not config.non_profitable_outs and profit <= 0 and not trade_type.is_stop():
        logger.warning(f"Non profitable {trade_type.value} exit ({profit:.5f}) suppressed")
        return None

    run_up = draw_down = 0.0
    profit_per = run_up_per = draw_down_per = 0.0
    if config.is_backtest:
        index_in = trade_in.index_in
        profit_per = calc.calculate_profit_per(price_in, price_out, trade_in_type)
        run_up = calc.calculate_runup(window, price_in, index_in, fill_index, trade_in_type)
        run_up_per = calc.calculate_runup_per(run_up, price_in)
        draw_down = calc.calculate_drawdown(window, price_in, index_in, fill_index, trade_in_type)
        draw_down_per = calc.calculate_drawdown_per(draw_down, price_in)
    else:
        profit = 0.0

    return TradeOut(
        id=generate_ts_id(candle.date),
        trade_type=trade_type,
        index_in=trade_in.index_in,
        quantity=trade_in.quantity,
        price_in=price_in,
        ask=price_in,
        spread_in=trade_in.spread,
        date_in=trade_in.date_in,
        index_out=fill_index,
        price_origin=trade_in.price_in,
        price_out=price_out,
        bid=bid,
        spread_out=spread,
        date_out=candle.date,
        profit=profit,
        profit_per=profit_per,
        run_up=run_up,
        run_up_per=run_up_per,
        draw_down=draw_down,
        draw_down_per=draw_down_per,
    )
