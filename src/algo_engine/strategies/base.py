"""Abstract base class for trading strategies.

A strategy is pure signal logic: given the candle window, pricing and the open
trade (if any) it returns a Position intent for the current bar. Order
validation, capacity limits, activation and fills are handled by the engine.

Concrete strategies implement ``entry`` (no open trade) and ``exit`` (a trade
is open).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from algo_engine.core.candles import CandleWindow
from algo_engine.core.pricing import Pricing
from algo_engine.core.trade import Position, TradeIn, TradeType


class Strategy(ABC):
    """Base class for all strategies; extend and implement entry/exit logic."""

    def __init__(self, name: str, long_only: bool = True) -> None:
        if not name.strip():
            raise ValueError("Strategy name must be non-empty.")
        self.name = name
        self.long_only = long_only

    @property
    def entry_type(self) -> TradeType:
        return TradeType.MARKET_IN_LONG if self.long_only else TradeType.MARKET_IN_SHORT

    @property
    def exit_type(self) -> TradeType:
        return TradeType.MARKET_OUT_LONG if self.long_only else TradeType.MARKET_OUT_SHORT

    @abstractmethod
    def entry(self, index: int, window: CandleWindow, pricing: Pricing) -> Position:
        """Intent while flat: market entry, an order batch, or Position.none()."""
        return Position.none()

    @abstractmethod
    def exit(
        self,
        index: int,
        window: CandleWindow,
        pricing: Pricing,
        trade_in: TradeIn,
    ) -> Position:
        """Intent while a trade is open: market exit, an order batch, or Position.none()."""
        return Position.none()

    def next_intent(
        self,
        index: int,
        window: CandleWindow,
        pricing: Pricing,
        open_trade: Optional[TradeIn],
    ) -> Position:
        if open_trade is None:
            return self.entry(index, window, pricing)
        return self.exit(index, window, pricing, open_trade)

    def __repr__(self) -> str:
        return f"<Strategy {self.name}>"
