"""Tests for order creation and batch validation."""

import datetime as dt

import pytest
from hypothesis import given, strategies as st

from algo_engine.core.candles import generate_ts_id
from algo_engine.core.config import EngineConfig
from algo_engine.core.errors import InvariantViolation, OrderRejected, RejectReason
from algo_engine.core.order import OrderDirection, OrderStatus, OrderType, StopLossKind, StopLossType
from algo_engine.core.trade import TradeType
from algo_engine.orders.validator import create_order, prepare_orders, validate_target_price

UP = OrderDirection.UP
DOWN = OrderDirection.DOWN


def _price_stop(price):
    return StopLossType(StopLossKind.PRICE, price)


# =============================================================================
# validate_target_price
# =============================================================================


@given(
    close=st.floats(min_value=0.01, max_value=1e6),
    target=st.floats(min_value=0.01, max_value=1e6),
    direction=st.sampled_from(OrderDirection),
)
def test_validate_target_price_matches_direction(close, target, direction):
    order_type = OrderType.buy_order_long(direction, 1.0, target)
    expected = target > close if direction is UP else target < close
    assert validate_target_price(order_type, close) is expected


def test_validate_target_price_strict_raises():
    order_type = OrderType.buy_order_long(UP, 1.0, 100.0)
    with pytest.raises(InvariantViolation):
        validate_target_price(order_type, 100.0, strict=True)


# =============================================================================
# create_order
# =============================================================================


def test_create_order_fields(flat_window, config):
    order_type = OrderType.buy_order_long(UP, 2.0, 110.0)
    order = create_order(4, 123, flat_window, order_type, 110.0, 2.0, config)

    bar_date = dt.datetime(2024, 1, 1, 4)
    assert order.id == generate_ts_id(bar_date)
    assert order.trade_id == 123
    assert order.index_created == 4
    assert order.origin_price == pytest.approx(100.0)
    assert order.created_at == bar_date
    assert order.valid_until == bar_date + dt.timedelta(hours=10)
    assert order.status is OrderStatus.PENDING


def test_create_order_live_uses_latest_bar(flat_window, live_config):
    order_type = OrderType.buy_order_long(UP, 1.0, 110.0)
    order = create_order(4, 1, flat_window, order_type, 110.0, 1.0, live_config)
    assert order.created_at == flat_window.last().date


def test_create_order_missing_candle_raises(flat_window, config):
    order_type = OrderType.buy_order_long(UP, 1.0, 110.0)
    with pytest.raises(ValueError):
        create_order(99, 1, flat_window, order_type, 110.0, 1.0, config)


# =============================================================================
# prepare_orders
# =============================================================================


def test_prepare_bracket_batch(flat_window, pricing, config):
    order_types = [
        OrderType.buy_order_long(UP, 1.0, 110.0),
        OrderType.stop_loss_long(DOWN, StopLossType(StopLossKind.PIPS, 50)),
        OrderType.take_profit_long(UP, 1.0, 120.0),
    ]
    orders = prepare_orders(10, flat_window, pricing, TradeType.MARKET_IN_LONG, order_types, config)

    assert [o.order_type for o in orders] == order_types
    # Stop is derived from the entry's target: 110 - 50 * 0.01
    assert orders[1].target_price == pytest.approx(109.5)
    assert orders[1].size == pytest.approx(1.0)
    assert len({o.trade_id for o in orders}) == 1
    assert all(o.is_pending for o in orders)


def test_stop_alone_uses_bar_open_and_default_size(make_window, pricing):
    window = make_window([(100, 101, 99, 100)] * 3 + [(102, 103, 101, 102)])
    cfg = EngineConfig(order_size=5.0)
    stop = OrderType.stop_loss_long(DOWN, StopLossType(StopLossKind.PERCENTAGE, 1.0))

    orders = prepare_orders(3, window, pricing, TradeType.MARKET_OUT_LONG, [stop], cfg)
    assert orders[0].target_price == pytest.approx(102 * 0.99)
    assert orders[0].size == pytest.approx(5.0)


def test_stop_above_long_entry_rejected(flat_window, pricing, config):
    order_types = [
        OrderType.buy_order_long(UP, 1.0, 110.0),
        OrderType.stop_loss_long(DOWN, _price_stop(115.0)),
    ]
    with pytest.raises(OrderRejected) as exc_info:
        prepare_orders(10, flat_window, pricing, TradeType.MARKET_IN_LONG, order_types, config)
    assert exc_info.value.reason is RejectReason.STOP_WRONG_SIDE


def test_stop_below_short_entry_rejected(flat_window, pricing, config):
    order_types = [
        OrderType.buy_order_short(DOWN, 1.0, 90.0),
        OrderType.stop_loss_short(UP, _price_stop(85.0)),
    ]
    with pytest.raises(OrderRejected) as exc_info:
        prepare_orders(10, flat_window, pricing, TradeType.MARKET_IN_SHORT, order_types, config)
    assert exc_info.value.reason is RejectReason.STOP_WRONG_SIDE


def test_crossed_target_rejects_whole_batch(flat_window, pricing, config):
    order_types = [
        OrderType.buy_order_long(UP, 1.0, 110.0),
        OrderType.take_profit_long(UP, 1.0, 95.0),  # already below the close
    ]
    with pytest.raises(OrderRejected) as exc_info:
        prepare_orders(10, flat_window, pricing, TradeType.MARKET_IN_LONG, order_types, config)
    assert exc_info.value.reason is RejectReason.TARGET_CROSSED


def test_crossed_target_strict_mode(flat_window, pricing):
    cfg = EngineConfig(strict_target_validation=True)
    order_types = [OrderType.buy_order_long(UP, 1.0, 100.0)]
    with pytest.raises(InvariantViolation):
        prepare_orders(10, flat_window, pricing, TradeType.MARKET_IN_LONG, order_types, cfg)


def test_long_exit_below_entry_rejected(flat_window, pricing, config):
    order_types = [
        OrderType.buy_order_long(UP, 1.0, 110.0),
        OrderType.take_profit_long(UP, 1.0, 105.0),
    ]
    with pytest.raises(OrderRejected) as exc_info:
        prepare_orders(10, flat_window, pricing, TradeType.MARKET_IN_LONG, order_types, config)
    assert exc_info.value.reason is RejectReason.EXIT_WRONG_SIDE


def test_long_exit_inside_spread_rejected(flat_window, pricing, config):
    # The long entry level includes the spread: 110 + 0.2
    order_types = [
        OrderType.buy_order_long(UP, 1.0, 110.0),
        OrderType.sell_order_long(UP, 1.0, 110.1),
    ]
    with pytest.raises(OrderRejected):
        prepare_orders(10, flat_window, pricing, TradeType.MARKET_IN_LONG, order_types, config)

    cfg = config.with_overrides(order_with_spread=True)
    orders = prepare_orders(10, flat_window, pricing, TradeType.MARKET_IN_LONG, order_types, cfg)
    assert len(orders) == 2


def test_short_exit_above_entry_rejected(flat_window, pricing, config):
    order_types = [
        OrderType.buy_order_short(DOWN, 1.0, 95.0),
        OrderType.take_profit_short(DOWN, 1.0, 94.9),  # 94.9 + spread >= 95
    ]
    with pytest.raises(OrderRejected) as exc_info:
        prepare_orders(10, flat_window, pricing, TradeType.MARKET_IN_SHORT, order_types, config)
    assert exc_info.value.reason is RejectReason.EXIT_WRONG_SIDE


def test_exit_only_short_batch_accepted(flat_window, pricing, config):
    order_types = [OrderType.take_profit_short(DOWN, 1.0, 95.0)]
    orders = prepare_orders(10, flat_window, pricing, TradeType.MARKET_OUT_SHORT, order_types, config)
    assert len(orders) == 1


def test_missing_candle_returns_empty(flat_window, pricing, config):
    order_types = [OrderType.buy_order_long(UP, 1.0, 110.0)]
    assert prepare_orders(50, flat_window, pricing, TradeType.MARKET_IN_LONG, order_types, config) == []
