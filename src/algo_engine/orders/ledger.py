"""
Order ledger: the single owner of an instrument's orders.

Insertion order is chronological and authoritative. The ledger is only appended
to or mutated in place (status/field updates) or filtered with ``retain``; it is
never reordered, so replaying identical inputs yields identical ledgers.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from algo_engine.core.config import EngineConfig
from algo_engine.core.errors import OrderRejected, RejectReason
from algo_engine.core.order import Order, OrderType

logger = logging.getLogger(__name__)


class OrderLedger:
    def __init__(self, config: EngineConfig, orders: Optional[List[Order]] = None) -> None:
        self.config = config
        self._orders: List[Order] = list(orders) if orders else []

    @property
    def orders(self) -> List[Order]:
        """Copy of the chronological order list."""
        return list(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(self._orders)

    def __getitem__(self, index: int) -> Order:
        return self._orders[index]

    def _recent(self) -> List[Order]:
        window = self.config.max_pending_orders
        if window <= 0:
            return []
        return self._orders[-window:]

    def pending(self) -> List[Order]:
        """Pending orders among the most recent ``max_pending_orders``, oldest first."""
        return [o for o in self._recent() if o.is_pending]

    def all_pending(self) -> List[Order]:
        return [o for o in self._orders if o.is_pending]

    def category_counts(self) -> Tuple[int, int, int]:
        """(buy, sell/take-profit, stop) pending counts over the recency window."""
        buy_orders = sell_orders = stop_losses = 0
        for order in self.pending():
            order_type = order.order_type
            if order_type.is_entry():
                buy_orders += 1
            elif order_type.is_exit():
                sell_orders += 1
            elif order_type.is_stop():
                stop_losses += 1
        return buy_orders, sell_orders, stop_losses

    def has_open_position(self) -> bool:
        """True once a buy order has been consumed, i.e. a position exists to exit."""
        buy_orders, _, _ = self.category_counts()
        return buy_orders < self.config.max_buy_orders

    def _admissible(self, order: Order, counts: Tuple[int, int, int]) -> bool:
        buy_orders, sell_orders, stop_losses = counts
        cfg = self.config
        order_type = order.order_type
        if order_type.is_entry():
            return buy_orders < cfg.max_buy_orders and stop_losses < cfg.max_stop_losses
        if order_type.is_exit():
            return sell_orders < cfg.max_sell_orders
        return stop_losses < cfg.max_stop_losses

    @staticmethod
    def _count(order: Order, counts: Tuple[int, int, int]) -> Tuple[int, int, int]:
        buy_orders, sell_orders, stop_losses = counts
        if order.order_type.is_entry():
            return buy_orders + 1, sell_orders, stop_losses
        if order.order_type.is_exit():
            return buy_orders, sell_orders + 1, stop_losses
        return buy_orders, sell_orders, stop_losses + 1

    def insert_batch(self, proposed: List[Order]) -> List[Order]:
        """Append the admissible part of a batch, or nothing at all.

        Orders are checked in batch order against their category ceiling, counting
        what is already pending plus the orders admitted earlier in the same batch.
        If the admitted orders plus those already pending would exceed
        ``max_pending_orders`` the whole batch is rejected with
        OrderRejected(CAPACITY) and the ledger is left unchanged.
        """
        counts = self.category_counts()
        tally = counts
        admitted: List[Order] = []
        for order in proposed:
            if order.is_pending and self._admissible(order, tally):
                admitted.append(order)
                tally = self._count(order, tally)

        dropped = len(proposed) - len(admitted)
        if dropped:
            logger.info(
                f"{dropped} order(s) over category limits (buy/sell/stop pending={counts})"
            )

        pending_now = sum(counts)
        if pending_now + len(admitted) > self.config.max_pending_orders:
            detail = (
                f"{len(admitted)} new + {pending_now} pending > "
                f"max_pending_orders={self.config.max_pending_orders}"
            )
            logger.error(f"Order batch rejected: {detail}")
            raise OrderRejected(RejectReason.CAPACITY, detail)

        self._orders.extend(admitted)
        return admitted

    def first_pending(self, order_type: OrderType) -> Optional[Order]:
        for order in self._orders:
            if order.is_pending and order.order_type == order_type:
                return order
        return None

    def retain(self, keep: Callable[[Order], bool]) -> List[Order]:
        """Keep orders matching ``keep``; return the removed ones."""
        kept: List[Order] = []
        removed: List[Order] = []
        for order in self._orders:
            (kept if keep(order) else removed).append(order)
        self._orders = kept
        return removed

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [o.to_dict() for o in self._orders]

    def __repr__(self) -> str:
        return f"<OrderLedger orders={len(self._orders)} pending={len(self.all_pending())}>"
