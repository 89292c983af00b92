from __future__ import annotations

from decimal import Decimal
import unittest

from lp_valuation.application.dto.position_valuation import ValuatePositionInput, ValuateSnapshotInput
from lp_valuation.application.use_cases.valuate_position import (
    ValuateOnChainPositionUseCase,
    ValuateSnapshotUseCase,
)
from lp_valuation.domain.entities.position import (
    OnChainPosition,
    PoolFeeState,
    PoolSlot0,
    PositionSnapshot,
    TickBoundaryState,
    TokenAmounts,
)
from lp_valuation.domain.exceptions import (
    InvalidRangeError,
    PositionInputError,
    PriceUnavailableError,
)
from lp_valuation.domain.services.univ3_fee_growth import Q128
from lp_valuation.domain.services.univ3_math import Q96, STATUS_IN_RANGE


TOKEN0 = "0x" + "a" * 40
TOKEN1 = "0x" + "b" * 40
POOL = "0x" + "c" * 40


class FakePositionStatePort:
    def __init__(self, *, snapshot: PositionSnapshot | None = None):
        self.snapshot = snapshot or PositionSnapshot(
            tick_lower=-100,
            tick_upper=100,
            liquidity=10**18,
            fee_growth_inside0_last_x128=0,
            fee_growth_inside1_last_x128=0,
            tokens_owed0=0,
            tokens_owed1=10**18,
        )
        self.requested_ticks: list[int] = []

    def get_position(self, *, chain_id: int, position_id: int) -> OnChainPosition:
        _ = chain_id
        return OnChainPosition(
            position_id=position_id,
            token0_address=TOKEN0,
            token1_address=TOKEN1,
            fee_tier=3000,
            snapshot=self.snapshot,
        )

    def get_pool_address(self, *, chain_id: int, token0_address: str, token1_address: str, fee_tier: int) -> str:
        _ = (chain_id, token0_address, token1_address, fee_tier)
        return POOL

    def get_pool_fee_growth(self, *, chain_id: int, pool_address: str) -> tuple[int, int]:
        _ = (chain_id, pool_address)
        return 2 * Q128, 0

    def get_current_tick(self, *, chain_id: int, pool_address: str) -> PoolSlot0:
        _ = (chain_id, pool_address)
        return PoolSlot0(sqrt_price_x96=Q96, tick=0)

    def get_tick_boundary(self, *, chain_id: int, pool_address: str, tick: int) -> TickBoundaryState:
        _ = (chain_id, pool_address)
        self.requested_ticks.append(tick)
        return TickBoundaryState(fee_growth_outside0_x128=0, fee_growth_outside1_x128=0, initialized=True)

    def get_token_decimals(self, *, chain_id: int, token_address: str) -> int:
        _ = (chain_id, token_address)
        return 18

    def list_position_ids(self, *, chain_id: int, owner: str) -> list[int]:
        _ = (chain_id, owner)
        return []


class FakePricePort:
    def __init__(self, prices: tuple[Decimal | None, Decimal | None] = (Decimal("2"), Decimal("1"))):
        self.prices = prices

    def get_pair_prices(self, *, token0_address: str, token1_address: str, chain_id: int):
        _ = (token0_address, token1_address, chain_id)
        return self.prices


class ValuateOnChainPositionUseCaseTests(unittest.TestCase):
    def test_values_fees_and_principal_from_onchain_state(self):
        port = FakePositionStatePort()
        use_case = ValuateOnChainPositionUseCase(position_state_port=port, price_port=FakePricePort())

        result = use_case.execute(ValuatePositionInput(chain_id=1, position_id=7))

        self.assertEqual(result.pool_address, POOL)
        self.assertEqual(result.status, STATUS_IN_RANGE)
        self.assertEqual(result.current_price, Decimal("1"))
        self.assertEqual(port.requested_ticks, [-100, 100])
        # 2 token0 accrued at $2, 1 token1 already owed at $1
        self.assertEqual(result.valuation.fees.amount0, 2 * 10**18)
        self.assertEqual(result.valuation.fees.amount1, 10**18)
        self.assertEqual(result.valuation.fee_value_usd, Decimal("5"))
        token0 = result.valuation.token0
        token1 = result.valuation.token1
        self.assertGreater(token0.principal_raw, 0)
        self.assertGreater(token1.principal_raw, 0)
        self.assertEqual(
            result.valuation.principal_value_usd,
            token0.principal_amount * Decimal("2") + token1.principal_amount,
        )

    def test_missing_price_is_reported_not_zeroed(self):
        use_case = ValuateOnChainPositionUseCase(
            position_state_port=FakePositionStatePort(),
            price_port=FakePricePort((None, Decimal("1"))),
        )
        with self.assertRaises(PriceUnavailableError):
            use_case.execute(ValuatePositionInput(chain_id=1, position_id=7))

    def test_invalid_onchain_range_is_rejected_before_pool_reads(self):
        port = FakePositionStatePort(
            snapshot=PositionSnapshot(
                tick_lower=100,
                tick_upper=100,
                liquidity=1,
                fee_growth_inside0_last_x128=0,
                fee_growth_inside1_last_x128=0,
            )
        )
        use_case = ValuateOnChainPositionUseCase(position_state_port=port, price_port=FakePricePort())
        with self.assertRaises(InvalidRangeError):
            use_case.execute(ValuatePositionInput(chain_id=1, position_id=7))
        self.assertEqual(port.requested_ticks, [])

    def test_negative_position_id_is_rejected(self):
        use_case = ValuateOnChainPositionUseCase(
            position_state_port=FakePositionStatePort(),
            price_port=FakePricePort(),
        )
        with self.assertRaises(PositionInputError):
            use_case.execute(ValuatePositionInput(chain_id=1, position_id=-1))


class ValuateSnapshotUseCaseTests(unittest.TestCase):
    def test_snapshot_valuation_matches_reference_scenario(self):
        result = ValuateSnapshotUseCase().execute(
            ValuateSnapshotInput(
                snapshot=PositionSnapshot(
                    tick_lower=-100,
                    tick_upper=100,
                    liquidity=0,
                    fee_growth_inside0_last_x128=0,
                    fee_growth_inside1_last_x128=0,
                ),
                pool=PoolFeeState(fee_growth_global0_x128=0, fee_growth_global1_x128=0, current_tick=0),
                lower=TickBoundaryState(initialized=False),
                upper=TickBoundaryState(initialized=False),
                principal_amounts=TokenAmounts(amount0=15 * 10**17, amount1=3_000 * 10**6),
                token0_decimals=18,
                token1_decimals=6,
                price_token0_usd=Decimal("2000"),
                price_token1_usd=Decimal("1"),
            )
        )
        self.assertEqual(result.principal_value_usd, Decimal("6000"))
        self.assertEqual(result.total_value_usd, Decimal("6000"))


if __name__ == "__main__":
    unittest.main()
