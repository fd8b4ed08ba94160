"""Position sizing: converts a requested trade size and fill price into a quantity.

All sizers inherit from PositionSizer. The default NotionalSizer treats the trade
size as a notional amount in quote currency; FixedQuantitySizer treats it as a
unit count; LotSizer rounds to broker lot steps. Every sizer supports an
optional per-trade notional cap.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Optional

from algo_engine.execution.calc import calculate_quantity


class PositionSizer(ABC):
    """Abstract base class for all position sizers."""

    def __init__(self, trade_size_cap: Optional[float] = None) -> None:
        """
        Args:
            trade_size_cap: Maximum notional exposure per individual trade.
                            None for unlimited.
        """
        if trade_size_cap is not None and trade_size_cap <= 0:
            raise ValueError("trade_size_cap must be > 0")
        self.trade_size_cap = trade_size_cap

    @abstractmethod
    def get_quantity(self, trade_size: float, price: float) -> float:
        """Return the quantity to trade at ``price``."""
        raise NotImplementedError

    def _apply_cap(self, quantity: float, price: float) -> float:
        """Apply the optional per-trade notional cap."""
        if self.trade_size_cap is None:
            return quantity
        return min(quantity, self.trade_size_cap / price)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} cap={self.trade_size_cap}>"


class NotionalSizer(PositionSizer):
    """Trade size is a notional amount: quantity = size / price."""

    def get_quantity(self, trade_size: float, price: float) -> float:
        return self._apply_cap(calculate_quantity(trade_size, price), price)


class FixedQuantitySizer(PositionSizer):
    """Trade size is already a unit count."""

    def get_quantity(self, trade_size: float, price: float) -> float:
        if price <= 0:
            raise ValueError("price must be > 0")
        return self._apply_cap(trade_size, price)


class LotSizer(PositionSizer):
    """Notional sizing expressed in lots, floored to a lot step, never below the minimum lot."""

    def __init__(
        self,
        lot_step: float = 0.01,
        min_lot: float = 0.01,
        lot_size: float = 1.0,
        trade_size_cap: Optional[float] = None,
    ) -> None:
        super().__init__(trade_size_cap=trade_size_cap)
        if lot_step <= 0 or min_lot <= 0 or lot_size <= 0:
            raise ValueError("lot_step, min_lot and lot_size must be > 0")
        self.lot_step = lot_step
        self.min_lot = min_lot
        self.lot_size = lot_size  # units per lot

    def get_quantity(self, trade_size: float, price: float) -> float:
        units = self._apply_cap(calculate_quantity(trade_size, price), price)
        lots = units / self.lot_size
        # Small epsilon so 0.3 / 0.1 does not floor to 2
        steps = math.floor(lots / self.lot_step + 1e-9)
        return max(self.min_lot, steps * self.lot_step)
