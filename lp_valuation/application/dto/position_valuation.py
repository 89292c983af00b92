from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from lp_valuation.domain.entities.position import (
    PoolFeeState,
    PositionSnapshot,
    PositionValuation,
    TickBoundaryState,
    TokenAmounts,
)


@dataclass(frozen=True)
class ValuateSnapshotInput:
    snapshot: PositionSnapshot
    pool: PoolFeeState
    lower: TickBoundaryState
    upper: TickBoundaryState
    principal_amounts: TokenAmounts
    token0_decimals: int
    token1_decimals: int
    price_token0_usd: Decimal | None
    price_token1_usd: Decimal | None


@dataclass(frozen=True)
class ValuatePositionInput:
    chain_id: int
    position_id: int


@dataclass(frozen=True)
class ValuatePositionOutput:
    chain_id: int
    position_id: int
    pool_address: str
    token0_address: str
    token1_address: str
    fee_tier: int
    tick_lower: int
    tick_upper: int
    current_tick: int
    status: str
    liquidity: int
    current_price: Decimal
    valuation: PositionValuation


@dataclass(frozen=True)
class ListWalletPositionsInput:
    chain_id: int
    owner: str
    include_closed: bool = False


@dataclass(frozen=True)
class WalletPositionError:
    kind: str
    detail: str


@dataclass(frozen=True)
class WalletPositionRow:
    position_id: int
    position: ValuatePositionOutput | None = None
    error: WalletPositionError | None = None


@dataclass(frozen=True)
class ListWalletPositionsOutput:
    chain_id: int
    owner: str
    total_value_usd: Decimal
    positions: list[WalletPositionRow] = field(default_factory=list)
