from __future__ import annotations

from lp_valuation.domain.entities.position import (
    FeeGrowthInside,
    PositionSnapshot,
    UncollectedFeeResult,
)
from lp_valuation.domain.services.univ3_fee_growth import (
    UINT128_MOD,
    add_uint128,
    delta_uint256,
    mul_shift_128,
    parse_uint128,
    parse_uint256,
)


def accrued_fees(*, liquidity: int, fee_growth_inside: int, fee_growth_inside_last: int) -> int:
    if liquidity == 0:
        return 0
    delta = delta_uint256(fee_growth_inside, fee_growth_inside_last)
    if delta == 0:
        return 0
    # uint128 cast, as Position.update does on-chain.
    return mul_shift_128(liquidity, delta) % UINT128_MOD


def calculate_uncollected_fees(
    *,
    snapshot: PositionSnapshot,
    fee_growth_inside: FeeGrowthInside,
) -> UncollectedFeeResult:
    """Fees a collect() would return: checkpointed tokens owed plus growth since the checkpoint.

    Owed amounts are uint128 on-chain and wrap at that width.
    """
    liquidity = parse_uint128(snapshot.liquidity)
    accrued0 = accrued_fees(
        liquidity=liquidity,
        fee_growth_inside=parse_uint256(fee_growth_inside.fee_growth_inside0_x128),
        fee_growth_inside_last=parse_uint256(snapshot.fee_growth_inside0_last_x128),
    )
    accrued1 = accrued_fees(
        liquidity=liquidity,
        fee_growth_inside=parse_uint256(fee_growth_inside.fee_growth_inside1_x128),
        fee_growth_inside_last=parse_uint256(snapshot.fee_growth_inside1_last_x128),
    )

    return UncollectedFeeResult(
        amount0=add_uint128(parse_uint128(snapshot.tokens_owed0), accrued0),
        amount1=add_uint128(parse_uint128(snapshot.tokens_owed1), accrued1),
        accrued0=accrued0,
        accrued1=accrued1,
    )
