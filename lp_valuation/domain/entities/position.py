from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PositionSnapshot:
    tick_lower: int
    tick_upper: int
    liquidity: int
    fee_growth_inside0_last_x128: int
    fee_growth_inside1_last_x128: int
    tokens_owed0: int = 0
    tokens_owed1: int = 0


@dataclass(frozen=True)
class PoolFeeState:
    fee_growth_global0_x128: int
    fee_growth_global1_x128: int
    current_tick: int


@dataclass(frozen=True)
class TickBoundaryState:
    fee_growth_outside0_x128: int = 0
    fee_growth_outside1_x128: int = 0
    initialized: bool = True


@dataclass(frozen=True)
class FeeGrowthInside:
    fee_growth_inside0_x128: int
    fee_growth_inside1_x128: int


@dataclass(frozen=True)
class UncollectedFeeResult:
    amount0: int
    amount1: int
    accrued0: int
    accrued1: int


@dataclass(frozen=True)
class TokenAmounts:
    amount0: int
    amount1: int


@dataclass(frozen=True)
class TokenValuation:
    principal_raw: int
    fee_raw: int
    decimals: int
    principal_amount: Decimal
    fee_amount: Decimal
    price_usd: Decimal
    principal_value_usd: Decimal
    fee_value_usd: Decimal


@dataclass(frozen=True)
class PositionValuation:
    principal_value_usd: Decimal
    fee_value_usd: Decimal
    total_value_usd: Decimal
    token0: TokenValuation
    token1: TokenValuation
    fees: UncollectedFeeResult


@dataclass(frozen=True)
class OnChainPosition:
    position_id: int
    token0_address: str
    token1_address: str
    fee_tier: int
    snapshot: PositionSnapshot


@dataclass(frozen=True)
class PoolSlot0:
    sqrt_price_x96: int
    tick: int
