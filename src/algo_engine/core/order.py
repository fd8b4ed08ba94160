"""
Order data model: order types, directions, statuses and the Order record.

OrderType carries its data in named fields (direction, size, target price, stop
derivation) instead of positional slots. Orders move Pending -> Fulfilled or
Pending -> Canceled exactly once; any other transition raises InvariantViolation.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from algo_engine.core.errors import InvariantViolation
from algo_engine.core.trade import TradeType


class OrderDirection(Enum):
    UP = "Up"  # activates when price rises to or through the target
    DOWN = "Down"  # activates when price falls to or through the target


class OrderStatus(Enum):
    PENDING = "Pending"
    FULFILLED = "Fulfilled"
    CANCELED = "Canceled"


class OrderKind(Enum):
    BUY_ORDER_LONG = "BuyOrderLong"
    BUY_ORDER_SHORT = "BuyOrderShort"
    SELL_ORDER_LONG = "SellOrderLong"
    SELL_ORDER_SHORT = "SellOrderShort"
    TAKE_PROFIT_LONG = "TakeProfitLong"
    TAKE_PROFIT_SHORT = "TakeProfitShort"
    STOP_LOSS_LONG = "StopLossLong"
    STOP_LOSS_SHORT = "StopLossShort"


_LONG_KINDS = {
    OrderKind.BUY_ORDER_LONG,
    OrderKind.SELL_ORDER_LONG,
    OrderKind.TAKE_PROFIT_LONG,
    OrderKind.STOP_LOSS_LONG,
}
_ENTRY_KINDS = {OrderKind.BUY_ORDER_LONG, OrderKind.BUY_ORDER_SHORT}
_EXIT_KINDS = {
    OrderKind.SELL_ORDER_LONG,
    OrderKind.SELL_ORDER_SHORT,
    OrderKind.TAKE_PROFIT_LONG,
    OrderKind.TAKE_PROFIT_SHORT,
}
_STOP_KINDS = {OrderKind.STOP_LOSS_LONG, OrderKind.STOP_LOSS_SHORT}

_TRADE_TYPES = {
    OrderKind.BUY_ORDER_LONG: TradeType.MARKET_IN_LONG,
    OrderKind.SELL_ORDER_LONG: TradeType.MARKET_OUT_LONG,
    OrderKind.TAKE_PROFIT_LONG: TradeType.MARKET_OUT_LONG,
    OrderKind.STOP_LOSS_LONG: TradeType.STOP_LOSS_LONG,
    OrderKind.BUY_ORDER_SHORT: TradeType.MARKET_IN_SHORT,
    OrderKind.SELL_ORDER_SHORT: TradeType.MARKET_OUT_SHORT,
    OrderKind.TAKE_PROFIT_SHORT: TradeType.MARKET_OUT_SHORT,
    OrderKind.STOP_LOSS_SHORT: TradeType.STOP_LOSS_SHORT,
}


class StopLossKind(Enum):
    PRICE = "Price"  # absolute level
    PIPS = "Pips"  # value * pip_size away from the entry
    PERCENTAGE = "Percentage"  # value % of the entry away from the entry
    ATR = "Atr"  # caller-supplied ATR distance away from the entry


@dataclass(frozen=True)
class StopLossType:
    kind: StopLossKind
    value: float

    def target_from(
        self, entry_price: float, direction: OrderDirection, pip_size: float
    ) -> float:
        """Stop level derived from the entry; DOWN stops sit below, UP stops above."""
        if self.kind is StopLossKind.PRICE:
            return self.value

        if self.kind is StopLossKind.PIPS:
            distance = self.value * pip_size
        elif self.kind is StopLossKind.PERCENTAGE:
            distance = entry_price * self.value / 100
        else:
            distance = self.value

        if direction is OrderDirection.DOWN:
            return entry_price - distance
        return entry_price + distance


@dataclass(frozen=True)
class OrderType:
    kind: OrderKind
    direction: OrderDirection
    size: Optional[float] = None
    target_price: Optional[float] = None
    stop_loss: Optional[StopLossType] = None

    def __post_init__(self) -> None:
        if self.kind in _STOP_KINDS:
            if self.stop_loss is None:
                raise ValueError(f"{self.kind.value} requires a stop_loss")
        else:
            if self.size is None or self.target_price is None:
                raise ValueError(f"{self.kind.value} requires size and target_price")
            if self.size <= 0:
                raise ValueError("size must be > 0")

    # -- constructors ---------------------------------------------------------

    @classmethod
    def buy_order_long(cls, direction: OrderDirection, size: float, target_price: float) -> "OrderType":
        return cls(OrderKind.BUY_ORDER_LONG, direction, size, target_price)

    @classmethod
    def buy_order_short(cls, direction: OrderDirection, size: float, target_price: float) -> "OrderType":
        return cls(OrderKind.BUY_ORDER_SHORT, direction, size, target_price)

    @classmethod
    def sell_order_long(cls, direction: OrderDirection, size: float, target_price: float) -> "OrderType":
        return cls(OrderKind.SELL_ORDER_LONG, direction, size, target_price)

    @classmethod
    def sell_order_short(cls, direction: OrderDirection, size: float, target_price: float) -> "OrderType":
        return cls(OrderKind.SELL_ORDER_SHORT, direction, size, target_price)

    @classmethod
    def take_profit_long(cls, direction: OrderDirection, size: float, target_price: float) -> "OrderType":
        return cls(OrderKind.TAKE_PROFIT_LONG, direction, size, target_price)

    @classmethod
    def take_profit_short(cls, direction: OrderDirection, size: float, target_price: float) -> "OrderType":
        return cls(OrderKind.TAKE_PROFIT_SHORT, direction, size, target_price)

    @classmethod
    def stop_loss_long(cls, direction: OrderDirection, stop_loss: StopLossType) -> "OrderType":
        return cls(OrderKind.STOP_LOSS_LONG, direction, stop_loss=stop_loss)

    @classmethod
    def stop_loss_short(cls, direction: OrderDirection, stop_loss: StopLossType) -> "OrderType":
        return cls(OrderKind.STOP_LOSS_SHORT, direction, stop_loss=stop_loss)

    # -- predicates -----------------------------------------------------------

    def is_long(self) -> bool:
        return self.kind in _LONG_KINDS

    def is_entry(self) -> bool:
        return self.kind in _ENTRY_KINDS

    def is_exit(self) -> bool:
        return self.kind in _EXIT_KINDS

    def is_stop(self) -> bool:
        return self.kind in _STOP_KINDS

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind.value,
            "direction": self.direction.value,
        }
        if self.is_stop():
            data["stop_loss"] = {
                "kind": self.stop_loss.kind.value,
                "value": self.stop_loss.value,
            }
        else:
            data["size"] = self.size
            data["target_price"] = self.target_price
        return data

    def __str__(self) -> str:
        if self.is_stop():
            return f"{self.kind.value}({self.direction.value}, {self.stop_loss.kind.value}={self.stop_loss.value})"
        return f"{self.kind.value}({self.direction.value}, size={self.size}, target={self.target_price})"


def _iso(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class Order:
    id: int
    trade_id: int
    index_created: int
    order_type: OrderType
    origin_price: float
    target_price: float
    size: float
    created_at: dt.datetime
    valid_until: Optional[dt.datetime] = None
    index_fulfilled: int = 0
    status: OrderStatus = OrderStatus.PENDING
    updated_at: Optional[dt.datetime] = None
    full_filled_at: Optional[dt.datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status is OrderStatus.PENDING

    @property
    def is_full_filled(self) -> bool:
        return self.full_filled_at is not None

    def _require_pending(self, action: str) -> None:
        if self.status is not OrderStatus.PENDING:
            raise InvariantViolation(
                f"Cannot {action} order {self.id} in status {self.status.value}"
            )

    def fulfill(self, index: int, date: dt.datetime) -> None:
        self._require_pending("fulfill")
        self.index_fulfilled = index
        self.status = OrderStatus.FULFILLED
        self.updated_at = date
        self.full_filled_at = date

    def cancel(self, date: dt.datetime) -> None:
        self._require_pending("cancel")
        self.status = OrderStatus.CANCELED
        self.updated_at = date

    def update_pricing(self, origin_price: float, target_price: float) -> None:
        self.origin_price = origin_price
        self.target_price = target_price

    def is_still_valid(self, date: dt.datetime) -> bool:
        """Pending and before its deadline. Orders without a deadline never expire."""
        if self.status is not OrderStatus.PENDING:
            return False
        if self.valid_until is None:
            return True
        return date < self.valid_until

    def to_trade_type(self) -> TradeType:
        return _TRADE_TYPES[self.order_type.kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "trade_id": self.trade_id,
            "index_created": self.index_created,
            "index_fulfilled": self.index_fulfilled,
            "order_type": self.order_type.to_dict(),
            "status": self.status.value,
            "origin_price": self.origin_price,
            "target_price": self.target_price,
            "size": self.size,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "full_filled_at": _iso(self.full_filled_at),
            "valid_until": _iso(self.valid_until),
        }

    def __repr__(self) -> str:
        return (
            f"<Order {self.id} {self.order_type.kind.value} {self.order_type.direction.value} "
            f"target={self.target_price:.5f} status={self.status.value}>"
        )
