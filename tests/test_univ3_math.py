from __future__ import annotations

from decimal import Decimal

import pytest

from lp_valuation.domain.services.univ3_math import (
    Q96,
    STATUS_ABOVE_RANGE,
    STATUS_BELOW_RANGE,
    STATUS_IN_RANGE,
    amounts_for_liquidity,
    position_status,
    sqrt_price_x96_to_price,
    tick_to_sqrt_price_x96,
)


def test_tick_zero_maps_to_q96():
    assert tick_to_sqrt_price_x96(0) == Q96


def test_sqrt_price_grows_with_tick():
    assert tick_to_sqrt_price_x96(-100) < tick_to_sqrt_price_x96(0) < tick_to_sqrt_price_x96(100)


def test_tick_outside_bounds_is_rejected():
    with pytest.raises(ValueError):
        tick_to_sqrt_price_x96(887273)


def test_sqrt_price_x96_to_price_applies_decimals():
    assert sqrt_price_x96_to_price(Q96, 18, 6) == Decimal(10) ** 12
    assert sqrt_price_x96_to_price(2 * Q96, 6, 6) == Decimal("4")


def test_amounts_below_range_are_all_token0():
    amounts = amounts_for_liquidity(
        liquidity=10**18,
        sqrt_price_x96=tick_to_sqrt_price_x96(-500),
        tick_lower=-100,
        tick_upper=100,
    )
    assert amounts.amount0 > 0
    assert amounts.amount1 == 0


def test_amounts_above_range_are_all_token1():
    amounts = amounts_for_liquidity(
        liquidity=10**18,
        sqrt_price_x96=tick_to_sqrt_price_x96(500),
        tick_lower=-100,
        tick_upper=100,
    )
    assert amounts.amount0 == 0
    assert amounts.amount1 > 0


def test_amounts_in_symmetric_range_at_parity_are_balanced():
    amounts = amounts_for_liquidity(
        liquidity=10**18,
        sqrt_price_x96=Q96,
        tick_lower=-100,
        tick_upper=100,
    )
    assert amounts.amount0 > 0
    assert amounts.amount1 > 0
    assert abs(amounts.amount0 - amounts.amount1) <= 10


def test_zero_liquidity_holds_nothing():
    amounts = amounts_for_liquidity(liquidity=0, sqrt_price_x96=Q96, tick_lower=-100, tick_upper=100)
    assert (amounts.amount0, amounts.amount1) == (0, 0)


@pytest.mark.parametrize(
    ("tick", "expected"),
    [
        (-101, STATUS_BELOW_RANGE),
        (-100, STATUS_IN_RANGE),
        (99, STATUS_IN_RANGE),
        (100, STATUS_ABOVE_RANGE),
    ],
)
def test_position_status(tick: int, expected: str):
    assert position_status(current_tick=tick, tick_lower=-100, tick_upper=100) == expected
