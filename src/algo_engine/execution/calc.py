"""
Trade arithmetic: quantities, profit and path-dependent excursions.

Profit figures are per unit. Run-up and drawdown are non-negative magnitudes of
the best and worst close reached between the entry and exit bars, relative to
the entry price. Percentages are expressed in percent of ``price_in``.
"""

from __future__ import annotations

import numpy as np

from algo_engine.core.candles import CandleWindow
from algo_engine.core.trade import TradeType


def calculate_quantity(trade_size: float, price: float) -> float:
    if price <= 0:
        raise ValueError("price must be > 0")
    return trade_size / price


def calculate_profit(price_in: float, price_out: float, trade_type: TradeType) -> float:
    if trade_type.is_long():
        return price_out - price_in
    return price_in - price_out


def calculate_profit_per(price_in: float, price_out: float, trade_type: TradeType) -> float:
    if price_in == 0:
        return 0.0
    return calculate_profit(price_in, price_out, trade_type) / price_in * 100


def _path(window: CandleWindow, index_in: int, index_out: int) -> np.ndarray:
    start = max(min(index_in, index_out), 0)
    end = min(max(index_in, index_out), len(window) - 1)
    return window.closes(start, end)


def calculate_runup(
    window: CandleWindow,
    price_in: float,
    index_in: int,
    index_out: int,
    trade_type: TradeType,
) -> float:
    closes = _path(window, index_in, index_out)
    if closes.size == 0:
        return 0.0
    if trade_type.is_long():
        excursion = float(np.max(closes)) - price_in
    else:
        excursion = price_in - float(np.min(closes))
    return max(0.0, excursion)


def calculate_drawdown(
    window: CandleWindow,
    price_in: float,
    index_in: int,
    index_out: int,
    trade_type: TradeType,
) -> float:
    closes = _path(window, index_in, index_out)
    if closes.size == 0:
        return 0.0
    if trade_type.is_long():
        excursion = price_in - float(np.min(closes))
    else:
        excursion = float(np.max(closes)) - price_in
    return max(0.0, excursion)


def calculate_runup_per(run_up: float, price_in: float) -> float:
    return run_up / price_in * 100 if price_in else 0.0


def calculate_drawdown_per(draw_down: float, price_in: float) -> float:
    return draw_down / price_in * 100 if price_in else 0.0
