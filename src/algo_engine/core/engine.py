"""Scan-step orchestrator for a single traded instrument.

One ``step`` per new bar or tick, in a fixed order:

1. expire pending orders past their deadline;
2. detect which pending order (if any) the current bar activates;
3. resolve the activation into a TradeIn/TradeOut and link it back to its order;
4. apply the strategy's intent for this step (direct market entry/exit and/or a
   new batch of orders through validation into the ledger).

The engine owns the instrument's ledger and open trade; candle and pricing data
are borrowed read-only. Recoverable rejections are logged and reported on the
StepResult; InvariantViolation propagates to the caller.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from algo_engine.core.candles import CandleWindow
from algo_engine.core.config import EngineConfig
from algo_engine.core.errors import OrderRejected
from algo_engine.core.order import Order, OrderType
from algo_engine.core.pricing import Pricing
from algo_engine.core.trade import Position, PositionKind, TradeIn, TradeOut, TradeType
from algo_engine.execution.resolver import (
    calculate_trade_index,
    resolve_trade_in,
    resolve_trade_out,
)
from algo_engine.orders.activation import resolve_active_orders
from algo_engine.orders.expiry import cancel_expired, cancel_trade_pending, extend_pending
from algo_engine.orders.fulfillment import fulfill_trade_order
from algo_engine.orders.ledger import OrderLedger
from algo_engine.orders.validator import prepare_orders
from algo_engine.sizers.sizers import NotionalSizer, PositionSizer

# INFO by default; callers can reconfigure
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class StepResult:
    index: int
    position: Position = field(default_factory=Position.none)
    trade_in: Optional[TradeIn] = None
    trade_out: Optional[TradeOut] = None
    new_orders: List[Order] = field(default_factory=list)
    expired_orders: List[Order] = field(default_factory=list)
    rejection: Optional[OrderRejected] = None

    @property
    def traded(self) -> bool:
        return self.trade_in is not None or self.trade_out is not None


class TradingEngine:
    """Order lifecycle and trade resolution for one instrument."""

    def __init__(
        self,
        config: EngineConfig,
        window: CandleWindow,
        sizer: Optional[PositionSizer] = None,
        ledger: Optional[OrderLedger] = None,
    ) -> None:
        self.config = config
        self.window = window
        self.sizer = sizer or NotionalSizer()
        self.ledger = ledger or OrderLedger(config)

        self.open_trade: Optional[TradeIn] = None
        self.trades_in: List[TradeIn] = []
        self.trades_out: List[TradeOut] = []

        # Rejection / suppression counters
        self.rejected_batches = 0
        self.suppressed_exits = 0
        self.unfilled_exits = 0  # exit requested with no bar to fill on

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def step(
        self,
        index: int,
        pricing: Pricing,
        intent: Optional[Position] = None,
        now: Optional[dt.datetime] = None,
    ) -> StepResult:
        result = StepResult(index=index)

        result.expired_orders = cancel_expired(
            self.ledger, index, self.window, self.config, now=now
        )

        position = resolve_active_orders(index, self.window, self.ledger, self.config)
        result.position = position

        if position.kind is PositionKind.MARKET_IN_ORDER:
            result.trade_in = self._enter_from_order(index, pricing, position.order)
        elif position.kind is PositionKind.MARKET_OUT_ORDER:
            result.trade_out = self._exit_from_order(index, pricing, position.order)

        if intent is not None and not intent.is_none:
            self._apply_intent(index, pricing, intent, result)

        return result

    def place_orders(
        self,
        index: int,
        pricing: Pricing,
        trade_type: TradeType,
        order_types: List[OrderType],
    ) -> List[Order]:
        """Validate a batch and insert it into the ledger. Raises OrderRejected."""
        orders = prepare_orders(
            index, self.window, pricing, trade_type, order_types, self.config
        )
        if not orders:
            return []
        return self.ledger.insert_batch(orders)

    # ------------------------------------------------------------------ #
    # Activations
    # ------------------------------------------------------------------ #

    def _enter_from_order(
        self, index: int, pricing: Pricing, order: Order
    ) -> Optional[TradeIn]:
        if self.open_trade is not None:
            logger.debug(f"Entry {order!r} activated while a trade is open; ignored")
            return None

        trade_in = resolve_trade_in(
            index,
            order.size,
            self.window,
            pricing,
            order.to_trade_type(),
            self.config,
            sizer=self.sizer,
            order=order,
        )
        if trade_in is None:
            return None

        fill_index = calculate_trade_index(index, self.config.execution_mode)
        fulfill_trade_order(self.ledger, fill_index, trade_in, order)
        self._open(trade_in)
        return trade_in

    def _exit_from_order(
        self, index: int, pricing: Pricing, order: Order
    ) -> Optional[TradeOut]:
        if self.open_trade is None:
            logger.debug(f"Exit {order!r} activated with no open trade; ignored")
            return None

        trade_out = resolve_trade_out(
            index,
            self.window,
            pricing,
            self.open_trade,
            order.to_trade_type(),
            self.config,
            order=order,
        )
        if trade_out is None:
            # Order stays pending and is re-evaluated on a later step
            self._record_blocked_exit(index)
            return None

        fill_index = calculate_trade_index(index, self.config.execution_mode)
        fulfill_trade_order(self.ledger, fill_index, trade_out, order)
        self._close(trade_out)
        return trade_out

    # ------------------------------------------------------------------ #
    # Strategy intents
    # ------------------------------------------------------------------ #

    def _apply_intent(
        self, index: int, pricing: Pricing, intent: Position, result: StepResult
    ) -> None:
        if intent.kind is PositionKind.MARKET_IN:
            if self.open_trade is not None or result.trade_in is not None:
                logger.debug(f"Market entry at {index} skipped: trade already open")
                return
            trade_in = resolve_trade_in(
                index,
                self.config.order_size,
                self.window,
                pricing,
                intent.trade_type,
                self.config,
                sizer=self.sizer,
            )
            if trade_in is None:
                return
            self._open(trade_in)
            result.trade_in = trade_in

        elif intent.kind is PositionKind.MARKET_OUT:
            if self.open_trade is None:
                logger.debug(f"Market exit at {index} skipped: no open trade")
                return
            trade_out = resolve_trade_out(
                index,
                self.window,
                pricing,
                self.open_trade,
                intent.trade_type,
                self.config,
            )
            if trade_out is None:
                self._record_blocked_exit(index)
                return
            self._close(trade_out)
            result.trade_out = trade_out

        elif intent.kind is not PositionKind.ORDER:
            logger.warning(f"Unsupported strategy intent {intent.kind.value}; ignored")
            return

        if intent.order_types:
            try:
                result.new_orders = self.place_orders(
                    index, pricing, intent.trade_type, intent.order_types
                )
            except OrderRejected as exc:
                self.rejected_batches += 1
                result.rejection = exc
                logger.error(f"Order batch at index {index} rejected: {exc}")

    # ------------------------------------------------------------------ #
    # Trade bookkeeping
    # ------------------------------------------------------------------ #

    def _open(self, trade_in: TradeIn) -> None:
        self.open_trade = trade_in
        self.trades_in.append(trade_in)
        # Protective orders of an open position must not expire under it
        extend_pending(self.ledger)
        logger.info(
            f"{trade_in.trade_type.value} filled @ {trade_in.price_in:.5f} "
            f"qty={trade_in.quantity:.4f} ({trade_in.date_in})"
        )

    def _record_blocked_exit(self, index: int) -> None:
        fill_index = calculate_trade_index(index, self.config.execution_mode)
        if self.window.get(fill_index) is None:
            self.unfilled_exits += 1
        else:
            self.suppressed_exits += 1

    def _close(self, trade_out: TradeOut) -> None:
        self.open_trade = None
        self.trades_out.append(trade_out)
        cancel_trade_pending(self.ledger, trade_out, self.config)
        logger.info(
            f"{trade_out.trade_type.value} filled @ {trade_out.price_out:.5f} "
            f"profit={trade_out.profit:+.5f} ({trade_out.date_out})"
        )

    def __repr__(self) -> str:
        return (
            f"<TradingEngine mode={self.config.execution_mode.value} "
            f"open={self.open_trade is not None} ledger={self.ledger!r}>"
        )
