from __future__ import annotations

from decimal import Decimal, localcontext

from lp_valuation.domain.entities.position import TokenAmounts
from lp_valuation.domain.services.univ3_fee_growth import MAX_TICK, MIN_TICK


Q96 = 2**96
TICK_BASE = Decimal("1.0001")

STATUS_IN_RANGE = "in_range"
STATUS_BELOW_RANGE = "below_range"
STATUS_ABOVE_RANGE = "above_range"


def tick_to_sqrt_price_x96(tick: int) -> int:
    if not MIN_TICK <= tick <= MAX_TICK:
        raise ValueError(f"tick {tick} is outside [{MIN_TICK}, {MAX_TICK}].")
    with localcontext() as ctx:
        ctx.prec = 80
        sqrt_price = TICK_BASE ** (Decimal(tick) / Decimal(2))
        return int((sqrt_price * Decimal(Q96)).to_integral_value())


def sqrt_price_x96_to_sqrt_price(sqrt_price_x96: int) -> Decimal:
    if sqrt_price_x96 <= 0:
        raise ValueError("Invalid sqrt_price_x96.")
    with localcontext() as ctx:
        ctx.prec = 80
        return Decimal(sqrt_price_x96) / Decimal(Q96)


def sqrt_price_x96_to_price(
    sqrt_price_x96: int,
    token0_decimals: int,
    token1_decimals: int,
) -> Decimal:
    """Human price of token0 quoted in token1."""
    sqrt_price = sqrt_price_x96_to_sqrt_price(sqrt_price_x96)
    with localcontext() as ctx:
        ctx.prec = 80
        raw_price = sqrt_price * sqrt_price
        decimal_adjust = Decimal(10) ** Decimal(token0_decimals - token1_decimals)
        return raw_price * decimal_adjust


def amount0_for_liquidity(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    if sqrt_ratio_a_x96 <= 0:
        raise ValueError("sqrt ratio must be positive.")
    numerator = (liquidity << 96) * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96)
    return numerator // sqrt_ratio_b_x96 // sqrt_ratio_a_x96


def amount1_for_liquidity(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    return liquidity * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96) // Q96


def amounts_for_liquidity(
    *,
    liquidity: int,
    sqrt_price_x96: int,
    tick_lower: int,
    tick_upper: int,
) -> TokenAmounts:
    """Token amounts currently backing `liquidity` in [tick_lower, tick_upper)."""
    if liquidity == 0:
        return TokenAmounts(amount0=0, amount1=0)

    sqrt_a = tick_to_sqrt_price_x96(tick_lower)
    sqrt_b = tick_to_sqrt_price_x96(tick_upper)

    if sqrt_price_x96 <= sqrt_a:
        return TokenAmounts(
            amount0=amount0_for_liquidity(sqrt_a, sqrt_b, liquidity),
            amount1=0,
        )
    if sqrt_price_x96 < sqrt_b:
        return TokenAmounts(
            amount0=amount0_for_liquidity(sqrt_price_x96, sqrt_b, liquidity),
            amount1=amount1_for_liquidity(sqrt_a, sqrt_price_x96, liquidity),
        )
    return TokenAmounts(
        amount0=0,
        amount1=amount1_for_liquidity(sqrt_a, sqrt_b, liquidity),
    )


def position_status(*, current_tick: int, tick_lower: int, tick_upper: int) -> str:
    if current_tick < tick_lower:
        return STATUS_BELOW_RANGE
    if current_tick >= tick_upper:
        return STATUS_ABOVE_RANGE
    return STATUS_IN_RANGE
