from __future__ import annotations

from decimal import Decimal, localcontext

from lp_valuation.domain.entities.position import (
    PoolFeeState,
    PositionSnapshot,
    PositionValuation,
    TickBoundaryState,
    TokenAmounts,
    TokenValuation,
    UncollectedFeeResult,
)
from lp_valuation.domain.exceptions import PriceUnavailableError
from lp_valuation.domain.services.uncollected_fees import calculate_uncollected_fees
from lp_valuation.domain.services.univ3_fee_growth import resolve_fee_growth_inside


# Enough digits for a uint256 amount times a price without rounding.
VALUATION_PRECISION = 120


def to_decimal_amount(raw_amount: int, decimals: int) -> Decimal:
    if decimals < 0:
        raise ValueError("decimals must be non-negative.")
    with localcontext() as ctx:
        ctx.prec = VALUATION_PRECISION
        return Decimal(raw_amount) / (Decimal(10) ** decimals)


def _require_price(price: Decimal | None, *, side: str) -> Decimal:
    if price is None:
        raise PriceUnavailableError(f"USD price for {side} is unavailable.", side=side)
    if not isinstance(price, Decimal):
        raise TypeError(f"USD price for {side} must be a Decimal.")
    if not price.is_finite() or price <= 0:
        raise PriceUnavailableError(f"USD price for {side} must be positive (got {price}).", side=side)
    return price


def _token_valuation(*, principal_raw: int, fee_raw: int, decimals: int, price: Decimal) -> TokenValuation:
    principal_amount = to_decimal_amount(principal_raw, decimals)
    fee_amount = to_decimal_amount(fee_raw, decimals)
    with localcontext() as ctx:
        ctx.prec = VALUATION_PRECISION
        principal_value = principal_amount * price
        fee_value = fee_amount * price
    return TokenValuation(
        principal_raw=principal_raw,
        fee_raw=fee_raw,
        decimals=decimals,
        principal_amount=principal_amount,
        fee_amount=fee_amount,
        price_usd=price,
        principal_value_usd=principal_value,
        fee_value_usd=fee_value,
    )


def value_amounts(
    *,
    fees: UncollectedFeeResult,
    principal_amounts: TokenAmounts,
    decimals: tuple[int, int],
    unit_prices_usd: tuple[Decimal | None, Decimal | None],
) -> PositionValuation:
    price0 = _require_price(unit_prices_usd[0], side="token0")
    price1 = _require_price(unit_prices_usd[1], side="token1")
    if principal_amounts.amount0 < 0 or principal_amounts.amount1 < 0:
        raise ValueError("principal amounts must be non-negative.")

    token0 = _token_valuation(
        principal_raw=principal_amounts.amount0,
        fee_raw=fees.amount0,
        decimals=decimals[0],
        price=price0,
    )
    token1 = _token_valuation(
        principal_raw=principal_amounts.amount1,
        fee_raw=fees.amount1,
        decimals=decimals[1],
        price=price1,
    )

    with localcontext() as ctx:
        ctx.prec = VALUATION_PRECISION
        principal_value = token0.principal_value_usd + token1.principal_value_usd
        fee_value = token0.fee_value_usd + token1.fee_value_usd
        total_value = principal_value + fee_value

    return PositionValuation(
        principal_value_usd=principal_value,
        fee_value_usd=fee_value,
        total_value_usd=total_value,
        token0=token0,
        token1=token1,
        fees=fees,
    )


def valuate_position(
    *,
    snapshot: PositionSnapshot,
    pool: PoolFeeState,
    lower: TickBoundaryState,
    upper: TickBoundaryState,
    principal_amounts: TokenAmounts,
    decimals: tuple[int, int],
    unit_prices_usd: tuple[Decimal | None, Decimal | None],
) -> PositionValuation:
    """Value a concentrated-liquidity position at one block.

    Runs fee growth resolution, the uncollected fee calculation and the USD
    valuation in sequence. Either every step succeeds or a DomainError is
    raised; no zeroed side is ever returned.
    """
    inside = resolve_fee_growth_inside(
        pool=pool,
        lower=lower,
        upper=upper,
        tick_lower=snapshot.tick_lower,
        tick_upper=snapshot.tick_upper,
    )
    fees = calculate_uncollected_fees(snapshot=snapshot, fee_growth_inside=inside)
    return value_amounts(
        fees=fees,
        principal_amounts=principal_amounts,
        decimals=decimals,
        unit_prices_usd=unit_prices_usd,
    )
