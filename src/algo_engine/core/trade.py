"""
Realized trades and scan-step outcomes.

TradeIn is a filled entry; TradeOut a filled exit with P&L, run-up and drawdown.
Position is the resolved intent of a scan step: a direct market entry/exit, an
activated pending order, a batch of new order intents, or nothing.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from algo_engine.core.order import Order, OrderType


class TradeDirection(Enum):
    LONG = "Long"
    SHORT = "Short"
    NONE = "None"


class TradeType(Enum):
    MARKET_IN_LONG = "MarketInLong"
    MARKET_OUT_LONG = "MarketOutLong"
    MARKET_IN_SHORT = "MarketInShort"
    MARKET_OUT_SHORT = "MarketOutShort"
    ORDER_IN_LONG = "OrderInLong"
    ORDER_OUT_LONG = "OrderOutLong"
    ORDER_IN_SHORT = "OrderInShort"
    ORDER_OUT_SHORT = "OrderOutShort"
    STOP_LOSS_LONG = "StopLossLong"
    STOP_LOSS_SHORT = "StopLossShort"
    NONE = "None"

    @classmethod
    def from_str(cls, value: str) -> "TradeType":
        try:
            return cls(value)
        except ValueError:
            return cls.NONE

    def is_entry(self) -> bool:
        return self in (
            TradeType.MARKET_IN_LONG,
            TradeType.MARKET_IN_SHORT,
            TradeType.ORDER_IN_LONG,
            TradeType.ORDER_IN_SHORT,
        )

    def is_exit(self) -> bool:
        return self in (
            TradeType.MARKET_OUT_LONG,
            TradeType.MARKET_OUT_SHORT,
            TradeType.ORDER_OUT_LONG,
            TradeType.ORDER_OUT_SHORT,
            TradeType.STOP_LOSS_LONG,
            TradeType.STOP_LOSS_SHORT,
        )

    def is_long(self) -> bool:
        return self in (
            TradeType.MARKET_IN_LONG,
            TradeType.MARKET_OUT_LONG,
            TradeType.ORDER_IN_LONG,
            TradeType.ORDER_OUT_LONG,
            TradeType.STOP_LOSS_LONG,
        )

    def is_short(self) -> bool:
        return self in (
            TradeType.MARKET_IN_SHORT,
            TradeType.MARKET_OUT_SHORT,
            TradeType.ORDER_IN_SHORT,
            TradeType.ORDER_OUT_SHORT,
            TradeType.STOP_LOSS_SHORT,
        )

    def is_stop(self) -> bool:
        return self in (TradeType.STOP_LOSS_LONG, TradeType.STOP_LOSS_SHORT)

    def is_order(self) -> bool:
        return self in (
            TradeType.ORDER_IN_LONG,
            TradeType.ORDER_OUT_LONG,
            TradeType.ORDER_IN_SHORT,
            TradeType.ORDER_OUT_SHORT,
            TradeType.STOP_LOSS_LONG,
            TradeType.STOP_LOSS_SHORT,
        )

    @property
    def direction(self) -> TradeDirection:
        if self.is_long():
            return TradeDirection.LONG
        if self.is_short():
            return TradeDirection.SHORT
        return TradeDirection.NONE


def _serialize(data: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in data.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, dt.datetime):
            value = value.isoformat()
        out[key] = value
    return out


@dataclass(frozen=True)
class TradeIn:
    id: int
    index_in: int
    quantity: float
    origin_price: float
    price_in: float
    ask: float
    spread: float
    date_in: dt.datetime
    trade_type: TradeType

    @property
    def date(self) -> dt.datetime:
        return self.date_in

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


@dataclass(frozen=True)
class TradeOut:
    id: int
    trade_type: TradeType
    index_in: int
    quantity: float
    price_in: float
    ask: float
    spread_in: float
    date_in: dt.datetime
    index_out: int
    price_origin: float
    price_out: float
    bid: float
    spread_out: float
    date_out: dt.datetime
    profit: float = 0.0
    profit_per: float = 0.0
    run_up: float = 0.0
    run_up_per: float = 0.0
    draw_down: float = 0.0
    draw_down_per: float = 0.0

    @property
    def date(self) -> dt.datetime:
        return self.date_out

    @property
    def total_profit(self) -> float:
        """Per-unit profit scaled by the traded quantity."""
        return self.profit * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))

    def __repr__(self) -> str:
        return (
            f"<TradeOut {self.trade_type.value} {self.price_in:.5f} -> {self.price_out:.5f} "
            f"profit={self.profit:+.5f}>"
        )


class PositionKind(Enum):
    MARKET_IN = "MarketIn"
    MARKET_OUT = "MarketOut"
    MARKET_IN_ORDER = "MarketInOrder"
    MARKET_OUT_ORDER = "MarketOutOrder"
    ORDER = "Order"
    NONE = "None"


@dataclass(frozen=True)
class Position:
    """Outcome of a scan step or a strategy intent.

    ``trade_type`` qualifies strategy intents (MARKET_IN, MARKET_OUT, ORDER) with
    the side being traded; activations carry the triggering ``order`` instead.
    """

    kind: PositionKind = PositionKind.NONE
    order: Optional["Order"] = None
    order_types: Optional[List["OrderType"]] = None
    trade_type: TradeType = TradeType.NONE

    @classmethod
    def none(cls) -> "Position":
        return cls(PositionKind.NONE)

    @classmethod
    def market_in(
        cls, trade_type: TradeType, order_types: Optional[List["OrderType"]] = None
    ) -> "Position":
        return cls(PositionKind.MARKET_IN, order_types=order_types, trade_type=trade_type)

    @classmethod
    def market_out(
        cls, trade_type: TradeType, order_types: Optional[List["OrderType"]] = None
    ) -> "Position":
        return cls(PositionKind.MARKET_OUT, order_types=order_types, trade_type=trade_type)

    @classmethod
    def market_in_order(cls, order: "Order") -> "Position":
        return cls(PositionKind.MARKET_IN_ORDER, order=order)

    @classmethod
    def market_out_order(cls, order: "Order") -> "Position":
        return cls(PositionKind.MARKET_OUT_ORDER, order=order)

    @classmethod
    def orders(cls, trade_type: TradeType, order_types: List["OrderType"]) -> "Position":
        return cls(PositionKind.ORDER, order_types=order_types, trade_type=trade_type)

    @property
    def is_none(self) -> bool:
        return self.kind is PositionKind.NONE

    @property
    def is_activation(self) -> bool:
        return self.kind in (PositionKind.MARKET_IN_ORDER, PositionKind.MARKET_OUT_ORDER)
