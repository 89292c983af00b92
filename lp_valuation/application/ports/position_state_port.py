from __future__ import annotations

from typing import Protocol

from lp_valuation.domain.entities.position import OnChainPosition, PoolSlot0, TickBoundaryState


class PositionStatePort(Protocol):
    def get_position(self, *, chain_id: int, position_id: int) -> OnChainPosition:
        ...

    def get_pool_address(
        self,
        *,
        chain_id: int,
        token0_address: str,
        token1_address: str,
        fee_tier: int,
    ) -> str:
        ...

    def get_pool_fee_growth(self, *, chain_id: int, pool_address: str) -> tuple[int, int]:
        ...

    def get_current_tick(self, *, chain_id: int, pool_address: str) -> PoolSlot0:
        ...

    def get_tick_boundary(self, *, chain_id: int, pool_address: str, tick: int) -> TickBoundaryState:
        ...

    def get_token_decimals(self, *, chain_id: int, token_address: str) -> int:
        ...

    def list_position_ids(self, *, chain_id: int, owner: str) -> list[int]:
        ...
