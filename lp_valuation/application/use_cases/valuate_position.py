from __future__ import annotations

import logging

from lp_valuation.application.dto.position_valuation import (
    ValuatePositionInput,
    ValuatePositionOutput,
    ValuateSnapshotInput,
)
from lp_valuation.application.ports.position_state_port import PositionStatePort
from lp_valuation.application.ports.token_price_port import TokenPricePort
from lp_valuation.domain.entities.position import PoolFeeState, PositionValuation
from lp_valuation.domain.exceptions import PositionInputError
from lp_valuation.domain.services.position_valuation import valuate_position
from lp_valuation.domain.services.univ3_fee_growth import validate_tick_range
from lp_valuation.domain.services.univ3_math import (
    amounts_for_liquidity,
    position_status,
    sqrt_price_x96_to_price,
)


logger = logging.getLogger(__name__)


class ValuateSnapshotUseCase:
    def execute(self, command: ValuateSnapshotInput) -> PositionValuation:
        return valuate_position(
            snapshot=command.snapshot,
            pool=command.pool,
            lower=command.lower,
            upper=command.upper,
            principal_amounts=command.principal_amounts,
            decimals=(command.token0_decimals, command.token1_decimals),
            unit_prices_usd=(command.price_token0_usd, command.price_token1_usd),
        )


class ValuateOnChainPositionUseCase:
    def __init__(self, *, position_state_port: PositionStatePort, price_port: TokenPricePort):
        self._position_state_port = position_state_port
        self._price_port = price_port

    def execute(self, command: ValuatePositionInput) -> ValuatePositionOutput:
        if command.position_id < 0:
            raise PositionInputError("position_id must be non-negative.")

        position = self._position_state_port.get_position(
            chain_id=command.chain_id,
            position_id=command.position_id,
        )
        snapshot = position.snapshot
        validate_tick_range(tick_lower=snapshot.tick_lower, tick_upper=snapshot.tick_upper)

        pool_address = self._position_state_port.get_pool_address(
            chain_id=command.chain_id,
            token0_address=position.token0_address,
            token1_address=position.token1_address,
            fee_tier=position.fee_tier,
        )

        # All pool reads below should come from the same block; the reader does
        # not pin one, so values are best-effort consistent.
        global0, global1 = self._position_state_port.get_pool_fee_growth(
            chain_id=command.chain_id,
            pool_address=pool_address,
        )
        slot0 = self._position_state_port.get_current_tick(
            chain_id=command.chain_id,
            pool_address=pool_address,
        )
        lower = self._position_state_port.get_tick_boundary(
            chain_id=command.chain_id,
            pool_address=pool_address,
            tick=snapshot.tick_lower,
        )
        upper = self._position_state_port.get_tick_boundary(
            chain_id=command.chain_id,
            pool_address=pool_address,
            tick=snapshot.tick_upper,
        )
        token0_decimals = self._position_state_port.get_token_decimals(
            chain_id=command.chain_id,
            token_address=position.token0_address,
        )
        token1_decimals = self._position_state_port.get_token_decimals(
            chain_id=command.chain_id,
            token_address=position.token1_address,
        )
        price0, price1 = self._price_port.get_pair_prices(
            token0_address=position.token0_address,
            token1_address=position.token1_address,
            chain_id=command.chain_id,
        )

        pool = PoolFeeState(
            fee_growth_global0_x128=global0,
            fee_growth_global1_x128=global1,
            current_tick=slot0.tick,
        )
        principal = amounts_for_liquidity(
            liquidity=snapshot.liquidity,
            sqrt_price_x96=slot0.sqrt_price_x96,
            tick_lower=snapshot.tick_lower,
            tick_upper=snapshot.tick_upper,
        )
        valuation = valuate_position(
            snapshot=snapshot,
            pool=pool,
            lower=lower,
            upper=upper,
            principal_amounts=principal,
            decimals=(token0_decimals, token1_decimals),
            unit_prices_usd=(price0, price1),
        )

        logger.info(
            "valuate_position: done chain_id=%s position_id=%s pool=%s tick=%s principal_usd=%s fee_usd=%s",
            command.chain_id,
            command.position_id,
            pool_address,
            slot0.tick,
            valuation.principal_value_usd,
            valuation.fee_value_usd,
        )

        return ValuatePositionOutput(
            chain_id=command.chain_id,
            position_id=command.position_id,
            pool_address=pool_address,
            token0_address=position.token0_address,
            token1_address=position.token1_address,
            fee_tier=position.fee_tier,
            tick_lower=snapshot.tick_lower,
            tick_upper=snapshot.tick_upper,
            current_tick=slot0.tick,
            status=position_status(
                current_tick=slot0.tick,
                tick_lower=snapshot.tick_lower,
                tick_upper=snapshot.tick_upper,
            ),
            liquidity=snapshot.liquidity,
            current_price=sqrt_price_x96_to_price(
                slot0.sqrt_price_x96,
                token0_decimals,
                token1_decimals,
            ),
            valuation=valuation,
        )
