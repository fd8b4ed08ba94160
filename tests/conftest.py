"""Shared pytest fixtures: configs, pricing snapshots and candle/order builders."""

import datetime as dt
from typing import Optional, Sequence, Tuple, Union

import pytest

from algo_engine.core.candles import Candle, CandleWindow, generate_ts_id
from algo_engine.core.config import EngineConfig, ExecutionMode
from algo_engine.core.order import Order, OrderType
from algo_engine.core.pricing import Pricing

START = dt.datetime(2024, 1, 1)

Bar = Union[float, Tuple[float, float, float, float]]


def build_window(
    bars: Sequence[Bar],
    start: dt.datetime = START,
    step: dt.timedelta = dt.timedelta(hours=1),
) -> CandleWindow:
    """Hourly window from (open, high, low, close) tuples; a bare float is a flat bar."""
    candles = []
    for i, bar in enumerate(bars):
        if isinstance(bar, (int, float)):
            o = h = l = c = float(bar)
        else:
            o, h, l, c = bar
        candles.append(Candle(date=start + i * step, open=o, high=h, low=l, close=c))
    return CandleWindow.from_candles(candles)


def build_order(
    order_type: OrderType,
    target_price: Optional[float] = None,
    created_at: dt.datetime = START,
    index: int = 0,
    valid_until: Optional[dt.datetime] = None,
) -> Order:
    target = order_type.target_price if target_price is None else target_price
    ts_id = generate_ts_id(created_at)
    return Order(
        id=ts_id,
        trade_id=ts_id,
        index_created=index,
        order_type=order_type,
        origin_price=100.0,
        target_price=target,
        size=order_type.size or 1.0,
        created_at=created_at,
        valid_until=valid_until,
    )


@pytest.fixture
def config() -> EngineConfig:
    """Default backtest config: bot engine, highs/lows activation, 1/1/1/3 limits."""
    return EngineConfig()


@pytest.fixture
def live_config() -> EngineConfig:
    return EngineConfig(execution_mode=ExecutionMode.LIVE)


@pytest.fixture
def pricing() -> Pricing:
    """Snapshot with a 0.2 spread and a 0.01 pip."""
    return Pricing(symbol="XYZUSD", ask=100.2, bid=100.0, spread=0.2, pip_size=0.01)


@pytest.fixture
def make_window():
    return build_window


@pytest.fixture
def make_order():
    return build_order


@pytest.fixture
def flat_window() -> CandleWindow:
    """Twenty flat hourly bars at 100."""
    return build_window([100.0] * 20)
