from __future__ import annotations

from decimal import Decimal

import pytest

from lp_valuation.domain.entities.position import PoolFeeState, TickBoundaryState
from lp_valuation.domain.exceptions import InconsistentTickError, InvalidRangeError
from lp_valuation.domain.services.univ3_fee_growth import (
    MAX_TICK,
    MIN_TICK,
    Q128,
    UINT256_MOD,
    delta_uint256,
    fee_growth_inside,
    mul_shift_128,
    parse_uint128,
    parse_uint256,
    resolve_fee_growth_inside,
    sub_uint256,
)


def _pool(global0: int, global1: int = 0, *, tick: int = 0) -> PoolFeeState:
    return PoolFeeState(
        fee_growth_global0_x128=global0,
        fee_growth_global1_x128=global1,
        current_tick=tick,
    )


def _boundary(outside0: int = 0, outside1: int = 0, *, initialized: bool = True) -> TickBoundaryState:
    return TickBoundaryState(
        fee_growth_outside0_x128=outside0,
        fee_growth_outside1_x128=outside1,
        initialized=initialized,
    )


class TestUniv3FeeGrowth:
    def test_fee_growth_inside_when_tick_is_inside_range(self):
        inside = fee_growth_inside(
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=200,
            tick_current=0,
            tick_lower=-10,
            tick_upper=10,
        )
        assert inside == 700

    def test_fee_growth_inside_when_tick_is_below_range(self):
        inside = fee_growth_inside(
            fee_growth_global=1000,
            fee_growth_outside_lower=300,
            fee_growth_outside_upper=100,
            tick_current=-20,
            tick_lower=-10,
            tick_upper=10,
        )
        assert inside == 200

    def test_fee_growth_inside_when_tick_is_above_range(self):
        inside = fee_growth_inside(
            fee_growth_global=1000,
            fee_growth_outside_lower=300,
            fee_growth_outside_upper=600,
            tick_current=20,
            tick_lower=-10,
            tick_upper=10,
        )
        assert inside == 300

    def test_tick_equal_to_lower_counts_as_inside(self):
        inside = fee_growth_inside(
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=200,
            tick_current=-10,
            tick_lower=-10,
            tick_upper=10,
        )
        assert inside == 700

    def test_tick_equal_to_upper_counts_as_above(self):
        inside = fee_growth_inside(
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=600,
            tick_current=10,
            tick_lower=-10,
            tick_upper=10,
        )
        # below = 100, above = 1000 - 600
        assert inside == 500

    def test_sub_uint256_wraps_instead_of_going_negative(self):
        assert sub_uint256(2, UINT256_MOD - 3) == 5
        assert delta_uint256(5, 10) == UINT256_MOD - 5

    def test_fee_growth_below_uses_global_minus_outside_with_wrap(self):
        # current < tick_lower and upper outside = 0 => inside == outside_lower (mod 2^256)
        inside = fee_growth_inside(
            fee_growth_global=2,
            fee_growth_outside_lower=UINT256_MOD - 3,
            fee_growth_outside_upper=0,
            tick_current=-50,
            tick_lower=-10,
            tick_upper=10,
        )
        assert inside == UINT256_MOD - 3
        assert 0 <= inside < UINT256_MOD

    def test_fee_growth_inside_handles_uint256_wrap(self):
        inside = fee_growth_inside(
            fee_growth_global=10,
            fee_growth_outside_lower=20,
            fee_growth_outside_upper=5,
            tick_current=-20,
            tick_lower=-10,
            tick_upper=10,
        )
        assert 0 <= inside < UINT256_MOD

    def test_parse_uint256_accepts_int_string_hex_and_decimal(self):
        assert parse_uint256(123) == 123
        assert parse_uint256("456") == 456
        assert parse_uint256(" 0x10 ") == 16
        assert parse_uint256(Decimal("789")) == 789

    def test_parse_uint256_rejects_invalid_values(self):
        with pytest.raises(ValueError):
            parse_uint256(None)
        with pytest.raises(ValueError):
            parse_uint256("")
        with pytest.raises(ValueError):
            parse_uint256(-1)
        with pytest.raises(ValueError):
            parse_uint256(UINT256_MOD)
        with pytest.raises(ValueError):
            parse_uint256(Decimal("1.5"))
        with pytest.raises(ValueError):
            parse_uint256(True)

    def test_parse_uint128_enforces_width(self):
        assert parse_uint128(2**128 - 1) == 2**128 - 1
        with pytest.raises(ValueError):
            parse_uint128(2**128)

    def test_mul_shift_128_multiplies_before_shifting(self):
        # (2^100 * 2^30) >> 128 == 4, shifting delta first would give 0
        assert mul_shift_128(2**100, 2**30) == 4
        assert mul_shift_128(1_000_000, Q128) == 1_000_000

    def test_mul_shift_128_rejects_out_of_width_operands(self):
        with pytest.raises(ValueError):
            mul_shift_128(2**128, 1)
        with pytest.raises(ValueError):
            mul_shift_128(1, UINT256_MOD)


class TestResolveFeeGrowthInside:
    def test_in_range_subtracts_both_outsides_per_token(self):
        inside = resolve_fee_growth_inside(
            pool=_pool(1000, 5000, tick=0),
            lower=_boundary(100, 1000),
            upper=_boundary(200, 1500),
            tick_lower=-60,
            tick_upper=60,
        )
        assert inside.fee_growth_inside0_x128 == 700
        assert inside.fee_growth_inside1_x128 == 2500

    def test_uninitialized_boundaries_contribute_zero(self):
        inside = resolve_fee_growth_inside(
            pool=_pool(1000, 2000, tick=0),
            lower=_boundary(999, 999, initialized=False),
            upper=_boundary(500, 500, initialized=False),
            tick_lower=-60,
            tick_upper=60,
        )
        assert inside.fee_growth_inside0_x128 == 1000
        assert inside.fee_growth_inside1_x128 == 2000

    def test_position_above_current_price(self):
        inside = resolve_fee_growth_inside(
            pool=_pool(1000, tick=-100),
            lower=_boundary(300),
            upper=_boundary(100),
            tick_lower=-60,
            tick_upper=60,
        )
        # below = 1000 - 300, above = 100
        assert inside.fee_growth_inside0_x128 == 200

    def test_position_below_current_price(self):
        inside = resolve_fee_growth_inside(
            pool=_pool(1000, tick=60),
            lower=_boundary(300),
            upper=_boundary(600),
            tick_lower=-60,
            tick_upper=60,
        )
        # below = 300, above = 1000 - 600
        assert inside.fee_growth_inside0_x128 == 300

    def test_equal_ticks_raise_invalid_range(self):
        with pytest.raises(InvalidRangeError):
            resolve_fee_growth_inside(
                pool=_pool(1000),
                lower=_boundary(),
                upper=_boundary(),
                tick_lower=100,
                tick_upper=100,
            )

    def test_inverted_ticks_raise_invalid_range(self):
        with pytest.raises(InvalidRangeError):
            resolve_fee_growth_inside(
                pool=_pool(1000),
                lower=_boundary(),
                upper=_boundary(),
                tick_lower=120,
                tick_upper=60,
            )

    def test_ticks_outside_bounds_raise_invalid_range(self):
        with pytest.raises(InvalidRangeError):
            resolve_fee_growth_inside(
                pool=_pool(1000),
                lower=_boundary(),
                upper=_boundary(),
                tick_lower=MIN_TICK - 1,
                tick_upper=0,
            )

    def test_current_tick_outside_bounds_raises_inconsistent_tick(self):
        with pytest.raises(InconsistentTickError):
            resolve_fee_growth_inside(
                pool=_pool(1000, tick=MAX_TICK + 1),
                lower=_boundary(),
                upper=_boundary(),
                tick_lower=-60,
                tick_upper=60,
            )

    def test_out_of_range_accumulator_is_rejected(self):
        with pytest.raises(ValueError):
            resolve_fee_growth_inside(
                pool=_pool(UINT256_MOD),
                lower=_boundary(),
                upper=_boundary(),
                tick_lower=-60,
                tick_upper=60,
            )
