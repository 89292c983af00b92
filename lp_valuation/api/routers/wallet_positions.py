from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from lp_valuation.api.deps import get_list_wallet_positions_use_case
from lp_valuation.api.routers.position_valuation import onchain_position_response
from lp_valuation.api.schemas.position_valuation import (
    WalletPositionErrorResponse,
    WalletPositionResponse,
    WalletPositionsResponse,
)
from lp_valuation.application.dto.position_valuation import ListWalletPositionsInput
from lp_valuation.application.use_cases.list_wallet_positions import ListWalletPositionsUseCase
from lp_valuation.domain.exceptions import PositionStateUnavailableError

router = APIRouter()


@router.get("/v1/chains/{chain_id}/wallets/{owner}/positions", response_model=WalletPositionsResponse)
def list_wallet_positions(
    chain_id: int = Path(..., ge=1),
    owner: str = Path(..., pattern=r"^0x[0-9a-fA-F]{40}$"),
    include_closed: bool = Query(False),
    use_case: ListWalletPositionsUseCase = Depends(get_list_wallet_positions_use_case),
):
    try:
        result = use_case.execute(
            ListWalletPositionsInput(
                chain_id=chain_id,
                owner=owner.lower(),
                include_closed=include_closed,
            )
        )
    except PositionStateUnavailableError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    return WalletPositionsResponse(
        chain_id=result.chain_id,
        owner=result.owner,
        total_value_usd=result.total_value_usd,
        positions=[
            WalletPositionResponse(
                position_id=row.position_id,
                position=onchain_position_response(row.position) if row.position is not None else None,
                error=(
                    WalletPositionErrorResponse(kind=row.error.kind, detail=row.error.detail)
                    if row.error is not None
                    else None
                ),
            )
            for row in result.positions
        ],
    )
