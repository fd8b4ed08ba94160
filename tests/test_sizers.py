"""Tests for all PositionSizer implementations.

Tests cover:
- Core functionality (quantity from trade size and fill price)
- Trade size cap enforcement
- Lot rounding and minimum lot
- Invalid arguments
"""

import pytest

from algo_engine.sizers.sizers import (
    FixedQuantitySizer,
    LotSizer,
    NotionalSizer,
    PositionSizer,
)


# =============================================================================
# NotionalSizer
# =============================================================================


def test_notional_basic():
    assert NotionalSizer().get_quantity(1000.0, 100.0) == pytest.approx(10.0)


def test_notional_cap():
    sizer = NotionalSizer(trade_size_cap=500.0)
    assert sizer.get_quantity(1000.0, 100.0) == pytest.approx(5.0)
    assert sizer.get_quantity(200.0, 100.0) == pytest.approx(2.0)


def test_notional_rejects_zero_price():
    with pytest.raises(ValueError):
        NotionalSizer().get_quantity(1000.0, 0.0)


# =============================================================================
# FixedQuantitySizer
# =============================================================================


def test_fixed_quantity_passthrough():
    assert FixedQuantitySizer().get_quantity(3.0, 250.0) == pytest.approx(3.0)


def test_fixed_quantity_cap():
    sizer = FixedQuantitySizer(trade_size_cap=500.0)
    assert sizer.get_quantity(3.0, 250.0) == pytest.approx(2.0)


def test_fixed_quantity_rejects_bad_price():
    with pytest.raises(ValueError):
        FixedQuantitySizer().get_quantity(3.0, -1.0)


# =============================================================================
# LotSizer
# =============================================================================


@pytest.mark.parametrize(
    "trade_size, price, expected",
    [
        (30.0, 100.0, 0.3),  # exact step despite float error
        (30.5, 100.0, 0.3),  # floored to the step
        (1.0, 100.0, 0.1),  # never below the minimum lot
    ],
)
def test_lot_rounding(trade_size, price, expected):
    sizer = LotSizer(lot_step=0.1, min_lot=0.1)
    assert sizer.get_quantity(trade_size, price) == pytest.approx(expected)


def test_lot_size_scales_units():
    sizer = LotSizer(lot_step=0.01, min_lot=0.01, lot_size=1000.0)
    # 150_000 / 1.5 = 100_000 units = 100 lots
    assert sizer.get_quantity(150_000.0, 1.5) == pytest.approx(100.0)


@pytest.mark.parametrize(
    "kwargs",
    [{"lot_step": 0.0}, {"min_lot": -0.1}, {"lot_size": 0.0}, {"trade_size_cap": 0.0}],
)
def test_lot_invalid_args(kwargs):
    with pytest.raises(ValueError):
        LotSizer(**kwargs)


def test_base_class_is_abstract():
    with pytest.raises(TypeError):
        PositionSizer()
