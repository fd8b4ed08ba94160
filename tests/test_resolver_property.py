"""Property-based tests for realized trade P&L using hypothesis."""

import datetime as dt

import pytest
from hypothesis import given, strategies as st

from algo_engine.core.candles import Candle, CandleWindow
from algo_engine.core.config import EngineConfig
from algo_engine.core.pricing import Pricing
from algo_engine.core.trade import TradeType
from algo_engine.execution.resolver import resolve_trade_in, resolve_trade_out

CONFIG = EngineConfig()
T0 = dt.datetime(2024, 1, 1)

prices = st.floats(min_value=0.01, max_value=1e5)
closes = st.lists(prices, min_size=3, max_size=3)


def _window(open_in, open_out, bar_closes):
    opens = [bar_closes[0], open_in, open_out]
    candles = [
        Candle(
            date=T0 + dt.timedelta(hours=i),
            open=o,
            high=max(o, c),
            low=min(o, c),
            close=c,
        )
        for i, (o, c) in enumerate(zip(opens, bar_closes))
    ]
    return CandleWindow.from_candles(candles)


@given(
    side=st.sampled_from(["long", "short"]),
    open_in=prices,
    open_out=prices,
    spread=st.floats(min_value=0.0, max_value=10.0),
    bar_closes=closes,
)
def test_profit_matches_spread_adjusted_fills(side, open_in, open_out, spread, bar_closes):
    window = _window(open_in, open_out, bar_closes)
    pricing = Pricing(spread=spread)
    if side == "long":
        entry, exit_ = TradeType.MARKET_IN_LONG, TradeType.MARKET_OUT_LONG
        expected = open_out - (open_in + spread)
    else:
        entry, exit_ = TradeType.MARKET_IN_SHORT, TradeType.MARKET_OUT_SHORT
        expected = open_in - (open_out + spread)

    trade_in = resolve_trade_in(0, 1.0, window, pricing, entry, CONFIG)
    trade_out = resolve_trade_out(1, window, pricing, trade_in, exit_, CONFIG)

    assert trade_out.profit == pytest.approx(expected, rel=1e-9, abs=1e-9)
    assert (trade_out.profit > 0) == (trade_out.profit_per > 0)
    assert trade_out.run_up >= 0
    assert trade_out.draw_down >= 0
