from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path

from lp_valuation.api.deps import get_valuate_onchain_position_use_case, get_valuate_snapshot_use_case
from lp_valuation.api.schemas.position_valuation import (
    OnChainPositionValuationResponse,
    PositionValuationRequest,
    PositionValuationResponse,
    TokenValuationResponse,
    UncollectedFeesResponse,
)
from lp_valuation.application.dto.position_valuation import (
    ValuatePositionInput,
    ValuatePositionOutput,
    ValuateSnapshotInput,
)
from lp_valuation.application.use_cases.valuate_position import (
    ValuateOnChainPositionUseCase,
    ValuateSnapshotUseCase,
)
from lp_valuation.domain.entities.position import (
    PoolFeeState,
    PositionSnapshot,
    PositionValuation,
    TickBoundaryState,
    TokenAmounts,
    TokenValuation,
)
from lp_valuation.domain.exceptions import (
    InconsistentTickError,
    InvalidRangeError,
    PositionInputError,
    PositionNotFoundError,
    PositionStateUnavailableError,
    PriceUnavailableError,
)
from lp_valuation.domain.services.univ3_fee_growth import parse_uint128, parse_uint256

router = APIRouter()


def _token_response(token: TokenValuation) -> TokenValuationResponse:
    return TokenValuationResponse(
        principal_raw=str(token.principal_raw),
        fee_raw=str(token.fee_raw),
        decimals=token.decimals,
        principal_amount=token.principal_amount,
        fee_amount=token.fee_amount,
        price_usd=token.price_usd,
        principal_value_usd=token.principal_value_usd,
        fee_value_usd=token.fee_value_usd,
    )


def valuation_response(valuation: PositionValuation) -> PositionValuationResponse:
    return PositionValuationResponse(
        principal_value_usd=valuation.principal_value_usd,
        fee_value_usd=valuation.fee_value_usd,
        total_value_usd=valuation.total_value_usd,
        token0=_token_response(valuation.token0),
        token1=_token_response(valuation.token1),
        uncollected_fees=UncollectedFeesResponse(
            amount0=str(valuation.fees.amount0),
            amount1=str(valuation.fees.amount1),
            accrued0=str(valuation.fees.accrued0),
            accrued1=str(valuation.fees.accrued1),
        ),
    )


def onchain_position_response(result: ValuatePositionOutput) -> OnChainPositionValuationResponse:
    return OnChainPositionValuationResponse(
        chain_id=result.chain_id,
        position_id=result.position_id,
        pool_address=result.pool_address,
        token0_address=result.token0_address,
        token1_address=result.token1_address,
        fee_tier=result.fee_tier,
        tick_lower=result.tick_lower,
        tick_upper=result.tick_upper,
        current_tick=result.current_tick,
        status=result.status,
        liquidity=str(result.liquidity),
        current_price=result.current_price,
        valuation=valuation_response(result.valuation),
    )


def _to_command(req: PositionValuationRequest) -> ValuateSnapshotInput:
    return ValuateSnapshotInput(
        snapshot=PositionSnapshot(
            tick_lower=req.position.tick_lower,
            tick_upper=req.position.tick_upper,
            liquidity=parse_uint128(req.position.liquidity),
            fee_growth_inside0_last_x128=parse_uint256(req.position.fee_growth_inside0_last_x128),
            fee_growth_inside1_last_x128=parse_uint256(req.position.fee_growth_inside1_last_x128),
            tokens_owed0=parse_uint128(req.position.tokens_owed0),
            tokens_owed1=parse_uint128(req.position.tokens_owed1),
        ),
        pool=PoolFeeState(
            fee_growth_global0_x128=parse_uint256(req.pool.fee_growth_global0_x128),
            fee_growth_global1_x128=parse_uint256(req.pool.fee_growth_global1_x128),
            current_tick=req.pool.current_tick,
        ),
        lower=TickBoundaryState(
            fee_growth_outside0_x128=parse_uint256(req.lower_tick.fee_growth_outside0_x128),
            fee_growth_outside1_x128=parse_uint256(req.lower_tick.fee_growth_outside1_x128),
            initialized=req.lower_tick.initialized,
        ),
        upper=TickBoundaryState(
            fee_growth_outside0_x128=parse_uint256(req.upper_tick.fee_growth_outside0_x128),
            fee_growth_outside1_x128=parse_uint256(req.upper_tick.fee_growth_outside1_x128),
            initialized=req.upper_tick.initialized,
        ),
        principal_amounts=TokenAmounts(
            amount0=parse_uint256(req.principal_amount0),
            amount1=parse_uint256(req.principal_amount1),
        ),
        token0_decimals=req.token0_decimals,
        token1_decimals=req.token1_decimals,
        price_token0_usd=req.price_token0_usd,
        price_token1_usd=req.price_token1_usd,
    )


@router.post("/v1/positions/valuation", response_model=PositionValuationResponse)
def valuate_snapshot(
    req: PositionValuationRequest,
    use_case: ValuateSnapshotUseCase = Depends(get_valuate_snapshot_use_case),
):
    try:
        command = _to_command(req)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        result = use_case.execute(command)
    except (InvalidRangeError, InconsistentTickError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PriceUnavailableError as exc:
        raise HTTPException(status_code=424, detail=str(exc)) from exc

    return valuation_response(result)


@router.get(
    "/v1/chains/{chain_id}/positions/{position_id}/valuation",
    response_model=OnChainPositionValuationResponse,
)
def valuate_onchain_position(
    chain_id: int = Path(..., ge=1),
    position_id: int = Path(..., ge=0),
    use_case: ValuateOnChainPositionUseCase = Depends(get_valuate_onchain_position_use_case),
):
    try:
        result = use_case.execute(ValuatePositionInput(chain_id=chain_id, position_id=position_id))
    except PositionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PositionInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except (InvalidRangeError, InconsistentTickError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PriceUnavailableError as exc:
        raise HTTPException(status_code=424, detail=str(exc)) from exc
    except PositionStateUnavailableError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return onchain_position_response(result)
