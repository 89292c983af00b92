from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


UintValue = int | str


class PositionSnapshotRequest(BaseModel):
    tick_lower: int = Field(..., description="Lower tick of the position range.")
    tick_upper: int = Field(..., description="Upper tick of the position range.")
    liquidity: UintValue = Field(..., description="Position liquidity (uint128).")
    fee_growth_inside0_last_x128: UintValue = Field(..., description="Checkpointed fee growth inside, token0 (uint256).")
    fee_growth_inside1_last_x128: UintValue = Field(..., description="Checkpointed fee growth inside, token1 (uint256).")
    tokens_owed0: UintValue = Field("0", description="Checkpointed owed token0 (uint128).")
    tokens_owed1: UintValue = Field("0", description="Checkpointed owed token1 (uint128).")


class PoolFeeStateRequest(BaseModel):
    fee_growth_global0_x128: UintValue = Field(..., description="Pool fee growth global, token0 (uint256).")
    fee_growth_global1_x128: UintValue = Field(..., description="Pool fee growth global, token1 (uint256).")
    current_tick: int = Field(..., description="Pool current tick.")


class TickBoundaryRequest(BaseModel):
    fee_growth_outside0_x128: UintValue = Field("0", description="Fee growth outside, token0 (uint256).")
    fee_growth_outside1_x128: UintValue = Field("0", description="Fee growth outside, token1 (uint256).")
    initialized: bool = Field(True, description="False for ticks never crossed.")


class PositionValuationRequest(BaseModel):
    position: PositionSnapshotRequest
    pool: PoolFeeStateRequest
    lower_tick: TickBoundaryRequest = Field(default_factory=TickBoundaryRequest)
    upper_tick: TickBoundaryRequest = Field(default_factory=TickBoundaryRequest)
    principal_amount0: UintValue = Field("0", description="Raw principal amount of token0.")
    principal_amount1: UintValue = Field("0", description="Raw principal amount of token1.")
    token0_decimals: int = Field(..., ge=0, le=255)
    token1_decimals: int = Field(..., ge=0, le=255)
    price_token0_usd: Decimal | None = Field(None, description="Unit USD price of token0.")
    price_token1_usd: Decimal | None = Field(None, description="Unit USD price of token1.")


class UncollectedFeesResponse(BaseModel):
    amount0: str
    amount1: str
    accrued0: str
    accrued1: str


class TokenValuationResponse(BaseModel):
    principal_raw: str
    fee_raw: str
    decimals: int
    principal_amount: Decimal
    fee_amount: Decimal
    price_usd: Decimal
    principal_value_usd: Decimal
    fee_value_usd: Decimal


class PositionValuationResponse(BaseModel):
    principal_value_usd: Decimal
    fee_value_usd: Decimal
    total_value_usd: Decimal
    token0: TokenValuationResponse
    token1: TokenValuationResponse
    uncollected_fees: UncollectedFeesResponse


class OnChainPositionValuationResponse(BaseModel):
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
    liquidity: str
    current_price: Decimal
    valuation: PositionValuationResponse


class WalletPositionErrorResponse(BaseModel):
    kind: str
    detail: str


class WalletPositionResponse(BaseModel):
    position_id: int
    position: OnChainPositionValuationResponse | None = None
    error: WalletPositionErrorResponse | None = None


class WalletPositionsResponse(BaseModel):
    chain_id: int
    owner: str
    total_value_usd: Decimal
    positions: list[WalletPositionResponse]
