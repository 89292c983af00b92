from __future__ import annotations

import logging
from threading import Lock

from lp_valuation.application.ports.position_state_port import PositionStatePort
from lp_valuation.domain.entities.position import (
    OnChainPosition,
    PoolSlot0,
    PositionSnapshot,
    TickBoundaryState,
)
from lp_valuation.domain.exceptions import (
    DomainError,
    PositionNotFoundError,
    PositionStateUnavailableError,
)
from lp_valuation.infrastructure.clients.abi import (
    decode_words,
    encode_address,
    encode_call,
    encode_int,
    encode_uint,
    to_signed,
    word_to_address,
)
from lp_valuation.infrastructure.clients.evm_rpc_client import (
    CHAIN_ID_TO_KEY,
    EvmRpcClient,
    RpcCallError,
    RpcRevertError,
)


logger = logging.getLogger(__name__)


SELECTOR_POSITIONS = "0x99fbab88"
SELECTOR_GET_POOL = "0x1698ee82"
SELECTOR_FEE_GROWTH_GLOBAL0 = "0xf3058399"
SELECTOR_FEE_GROWTH_GLOBAL1 = "0x46141319"
SELECTOR_SLOT0 = "0x3850c7bd"
SELECTOR_TICKS = "0xf30dba93"
SELECTOR_DECIMALS = "0x313ce567"
SELECTOR_BALANCE_OF = "0x70a08231"
SELECTOR_TOKEN_OF_OWNER_BY_INDEX = "0x2f745c59"

ZERO_ADDRESS = "0x" + "0" * 40

DEFAULT_POSITION_MANAGERS = {
    "ethereum": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
    "arbitrum": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
    "optimism": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
    "polygon": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
    "base": "0x03a520b32C04BF3bEEf7BEb72E919cf822Ed34f1",
    "bsc": "0x7b8A01B39D58278b5DE7e48c8449c9f4F5170613",
}

DEFAULT_FACTORIES = {
    "ethereum": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
    "arbitrum": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
    "optimism": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
    "polygon": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
    "base": "0x33128a8fC17869897dcE68Ed026d694621f6FDfD",
    "bsc": "0xdB1d10011AD0Ff90774D0C6Bb92e5C5c8b4461F7",
}


def _require_words(words: list[int], count: int, *, what: str) -> list[int]:
    if len(words) < count:
        raise PositionStateUnavailableError(
            f"{what}: expected {count} ABI words, got {len(words)}."
        )
    return words


class Univ3OnChainReader(PositionStatePort):
    def __init__(
        self,
        rpc_client: EvmRpcClient,
        *,
        position_managers: dict | None = None,
        factories: dict | None = None,
    ):
        self._rpc = rpc_client
        self._position_managers = {**DEFAULT_POSITION_MANAGERS, **(position_managers or {})}
        self._factories = {**DEFAULT_FACTORIES, **(factories or {})}
        self._decimals_cache: dict[tuple[int, str], int] = {}
        self._lock = Lock()

    def get_position(self, *, chain_id: int, position_id: int) -> OnChainPosition:
        manager = self._position_manager(chain_id)
        words = self._call(
            chain_id=chain_id,
            to=manager,
            data=encode_call(SELECTOR_POSITIONS, encode_uint(position_id)),
            what="positions",
            revert_error=PositionNotFoundError,
        )

        words = _require_words(words, 12, what="positions")
        # (nonce, operator, token0, token1, fee, tickLower, tickUpper, liquidity,
        #  feeGrowthInside0LastX128, feeGrowthInside1LastX128, tokensOwed0, tokensOwed1)
        return OnChainPosition(
            position_id=position_id,
            token0_address=word_to_address(words[2]),
            token1_address=word_to_address(words[3]),
            fee_tier=words[4],
            snapshot=PositionSnapshot(
                tick_lower=to_signed(words[5], 24),
                tick_upper=to_signed(words[6], 24),
                liquidity=words[7],
                fee_growth_inside0_last_x128=words[8],
                fee_growth_inside1_last_x128=words[9],
                tokens_owed0=words[10],
                tokens_owed1=words[11],
            ),
        )

    def get_pool_address(
        self,
        *,
        chain_id: int,
        token0_address: str,
        token1_address: str,
        fee_tier: int,
    ) -> str:
        factory = self._factory(chain_id)
        words = self._call(
            chain_id=chain_id,
            to=factory,
            data=encode_call(
                SELECTOR_GET_POOL,
                encode_address(token0_address),
                encode_address(token1_address),
                encode_uint(fee_tier),
            ),
            what="getPool",
        )
        pool_address = word_to_address(_require_words(words, 1, what="getPool")[0])
        if pool_address == ZERO_ADDRESS:
            raise PositionStateUnavailableError(
                f"No pool for {token0_address}/{token1_address} fee={fee_tier} on chain {chain_id}."
            )
        return pool_address

    def get_pool_fee_growth(self, *, chain_id: int, pool_address: str) -> tuple[int, int]:
        global0 = self._call(
            chain_id=chain_id,
            to=pool_address,
            data=encode_call(SELECTOR_FEE_GROWTH_GLOBAL0),
            what="feeGrowthGlobal0X128",
        )
        global1 = self._call(
            chain_id=chain_id,
            to=pool_address,
            data=encode_call(SELECTOR_FEE_GROWTH_GLOBAL1),
            what="feeGrowthGlobal1X128",
        )
        return (
            _require_words(global0, 1, what="feeGrowthGlobal0X128")[0],
            _require_words(global1, 1, what="feeGrowthGlobal1X128")[0],
        )

    def get_current_tick(self, *, chain_id: int, pool_address: str) -> PoolSlot0:
        words = self._call(
            chain_id=chain_id,
            to=pool_address,
            data=encode_call(SELECTOR_SLOT0),
            what="slot0",
        )
        words = _require_words(words, 2, what="slot0")
        return PoolSlot0(sqrt_price_x96=words[0], tick=to_signed(words[1], 24))

    def get_tick_boundary(self, *, chain_id: int, pool_address: str, tick: int) -> TickBoundaryState:
        words = self._call(
            chain_id=chain_id,
            to=pool_address,
            data=encode_call(SELECTOR_TICKS, encode_int(tick)),
            what="ticks",
        )
        # (liquidityGross, liquidityNet, feeGrowthOutside0X128, feeGrowthOutside1X128,
        #  tickCumulativeOutside, secondsPerLiquidityOutsideX128, secondsOutside, initialized)
        words = _require_words(words, 8, what="ticks")
        return TickBoundaryState(
            fee_growth_outside0_x128=words[2],
            fee_growth_outside1_x128=words[3],
            initialized=bool(words[7]),
        )

    def get_token_decimals(self, *, chain_id: int, token_address: str) -> int:
        key = (chain_id, token_address.lower())
        with self._lock:
            cached = self._decimals_cache.get(key)
        if cached is not None:
            return cached

        words = self._call(
            chain_id=chain_id,
            to=token_address,
            data=encode_call(SELECTOR_DECIMALS),
            what="decimals",
        )
        decimals = _require_words(words, 1, what="decimals")[0]
        if decimals > 255:
            raise PositionStateUnavailableError(f"Invalid decimals for token {token_address}.")
        with self._lock:
            self._decimals_cache[key] = decimals
        return decimals

    def list_position_ids(self, *, chain_id: int, owner: str) -> list[int]:
        manager = self._position_manager(chain_id)
        words = self._call(
            chain_id=chain_id,
            to=manager,
            data=encode_call(SELECTOR_BALANCE_OF, encode_address(owner)),
            what="balanceOf",
        )
        balance = _require_words(words, 1, what="balanceOf")[0]

        position_ids: list[int] = []
        for index in range(balance):
            words = self._call(
                chain_id=chain_id,
                to=manager,
                data=encode_call(
                    SELECTOR_TOKEN_OF_OWNER_BY_INDEX,
                    encode_address(owner),
                    encode_uint(index),
                ),
                what="tokenOfOwnerByIndex",
            )
            position_ids.append(_require_words(words, 1, what="tokenOfOwnerByIndex")[0])

        logger.info(
            "univ3_onchain_reader: listed_positions owner=%s chain_id=%s count=%s",
            owner.lower(),
            chain_id,
            len(position_ids),
        )
        return position_ids

    def _call(
        self,
        *,
        chain_id: int,
        to: str,
        data: str,
        what: str,
        revert_error: type[DomainError] = PositionStateUnavailableError,
    ) -> list[int]:
        try:
            result = self._rpc.eth_call(chain_id=chain_id, to=to, data=data)
        except RpcRevertError as exc:
            raise revert_error(f"{what} reverted: {exc}") from exc
        except RpcCallError as exc:
            logger.warning(
                "univ3_onchain_reader: call_failed call=%s to=%s chain_id=%s error=%s",
                what,
                to,
                chain_id,
                exc,
            )
            raise PositionStateUnavailableError(f"{what} call failed: {exc}") from exc
        try:
            return decode_words(result)
        except ValueError as exc:
            raise PositionStateUnavailableError(f"{what} returned malformed data.") from exc

    def _position_manager(self, chain_id: int) -> str:
        return self._chain_address(self._position_managers, chain_id, "position manager")

    def _factory(self, chain_id: int) -> str:
        return self._chain_address(self._factories, chain_id, "factory")

    @staticmethod
    def _chain_address(addresses: dict, chain_id: int, what: str) -> str:
        chain_key = CHAIN_ID_TO_KEY.get(chain_id)
        address = addresses.get(chain_key) if chain_key else None
        if not address:
            raise PositionStateUnavailableError(f"No {what} configured for chain_id={chain_id}.")
        return address
