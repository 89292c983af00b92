from __future__ import annotations

from decimal import Decimal

from lp_valuation.domain.entities.position import (
    FeeGrowthInside,
    PoolFeeState,
    TickBoundaryState,
)
from lp_valuation.domain.exceptions import InconsistentTickError, InvalidRangeError


Q128 = 2**128
UINT128_MOD = 2**128
UINT256_MOD = 2**256
MIN_TICK = -887272
MAX_TICK = 887272


def sub_uint256(a: int, b: int) -> int:
    return (a - b) % UINT256_MOD


def delta_uint256(new_value: int, old_value: int) -> int:
    return (new_value - old_value) % UINT256_MOD


def add_uint128(a: int, b: int) -> int:
    return (a + b) % UINT128_MOD


def mul_shift_128(liquidity: int, delta_x128: int) -> int:
    """Multiply a uint128 by a uint256 at full width, then drop 128 fractional bits.

    The product can reach 384 bits; shifting before multiplying would lose the
    low bits of small deltas.
    """
    if not 0 <= liquidity < UINT128_MOD:
        raise ValueError("liquidity must fit in uint128.")
    if not 0 <= delta_x128 < UINT256_MOD:
        raise ValueError("delta must fit in uint256.")
    return (liquidity * delta_x128) >> 128


def parse_uint(value: int | str | Decimal | None, *, bits: int = 256) -> int:
    if value is None:
        raise ValueError(f"Missing uint{bits} value.")
    if isinstance(value, bool):
        raise ValueError(f"Unsupported uint{bits} value type.")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise ValueError(f"Empty uint{bits} string.")
        parsed = int(raw, 16) if raw.lower().startswith("0x") else int(raw)
    elif isinstance(value, Decimal):
        if value != value.to_integral_value():
            raise ValueError(f"Decimal uint{bits} value must be integral.")
        parsed = int(value)
    else:
        raise ValueError(f"Unsupported uint{bits} value type.")

    if parsed < 0:
        raise ValueError(f"uint{bits} value must be non-negative.")
    if parsed >= 2**bits:
        raise ValueError(f"uint{bits} value out of range.")
    return parsed


def parse_uint256(value: int | str | Decimal | None) -> int:
    return parse_uint(value, bits=256)


def parse_uint128(value: int | str | Decimal | None) -> int:
    return parse_uint(value, bits=128)


def validate_tick_range(*, tick_lower: int, tick_upper: int) -> None:
    if tick_lower >= tick_upper:
        raise InvalidRangeError(
            f"tick_lower must be lower than tick_upper (got {tick_lower} >= {tick_upper})."
        )
    if tick_lower < MIN_TICK or tick_upper > MAX_TICK:
        raise InvalidRangeError(
            f"Position ticks must be within [{MIN_TICK}, {MAX_TICK}] "
            f"(got {tick_lower}, {tick_upper})."
        )


def validate_current_tick(current_tick: int) -> None:
    if not MIN_TICK <= current_tick <= MAX_TICK:
        raise InconsistentTickError(
            f"current_tick {current_tick} is outside [{MIN_TICK}, {MAX_TICK}]."
        )


def fee_growth_inside(
    *,
    fee_growth_global: int,
    fee_growth_outside_lower: int,
    fee_growth_outside_upper: int,
    tick_current: int,
    tick_lower: int,
    tick_upper: int,
) -> int:
    fee_growth_below = (
        fee_growth_outside_lower
        if tick_current >= tick_lower
        else sub_uint256(fee_growth_global, fee_growth_outside_lower)
    )
    fee_growth_above = (
        fee_growth_outside_upper
        if tick_current < tick_upper
        else sub_uint256(fee_growth_global, fee_growth_outside_upper)
    )
    return sub_uint256(
        sub_uint256(fee_growth_global, fee_growth_below),
        fee_growth_above,
    )


def _outside(boundary: TickBoundaryState) -> tuple[int, int]:
    # Ticks never crossed carry no outside growth.
    if not boundary.initialized:
        return 0, 0
    return (
        parse_uint256(boundary.fee_growth_outside0_x128),
        parse_uint256(boundary.fee_growth_outside1_x128),
    )


def resolve_fee_growth_inside(
    *,
    pool: PoolFeeState,
    lower: TickBoundaryState,
    upper: TickBoundaryState,
    tick_lower: int,
    tick_upper: int,
) -> FeeGrowthInside:
    validate_tick_range(tick_lower=tick_lower, tick_upper=tick_upper)
    validate_current_tick(pool.current_tick)

    global0 = parse_uint256(pool.fee_growth_global0_x128)
    global1 = parse_uint256(pool.fee_growth_global1_x128)
    lower0, lower1 = _outside(lower)
    upper0, upper1 = _outside(upper)

    return FeeGrowthInside(
        fee_growth_inside0_x128=fee_growth_inside(
            fee_growth_global=global0,
            fee_growth_outside_lower=lower0,
            fee_growth_outside_upper=upper0,
            tick_current=pool.current_tick,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
        ),
        fee_growth_inside1_x128=fee_growth_inside(
            fee_growth_global=global1,
            fee_growth_outside_lower=lower1,
            fee_growth_outside_upper=upper1,
            tick_current=pool.current_tick,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
        ),
    )
