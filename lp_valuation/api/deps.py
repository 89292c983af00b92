from __future__ import annotations

from functools import lru_cache

from lp_valuation.application.use_cases.list_wallet_positions import ListWalletPositionsUseCase
from lp_valuation.application.use_cases.valuate_position import (
    ValuateOnChainPositionUseCase,
    ValuateSnapshotUseCase,
)
from lp_valuation.infrastructure.clients.evm_rpc_client import EvmRpcClient, EvmRpcClientSettings
from lp_valuation.infrastructure.clients.pricing import (
    CoingeckoPriceProvider,
    PriceOverrides,
    PriceService,
)
from lp_valuation.infrastructure.clients.token_price_provider import PriceServiceAdapter
from lp_valuation.infrastructure.clients.univ3_onchain_reader import Univ3OnChainReader
from lp_valuation.shared.config import get_settings


@lru_cache(maxsize=1)
def _get_price_service() -> PriceService:
    settings = get_settings()
    overrides = PriceOverrides(settings.price_overrides)
    coingecko = CoingeckoPriceProvider(
        api_base=settings.coingecko_api_base,
        timeout_seconds=settings.coingecko_timeout_seconds,
        cache_ttl_seconds=settings.coingecko_cache_ttl_seconds,
    )
    return PriceService(overrides=overrides, coingecko=coingecko)


@lru_cache(maxsize=1)
def _get_onchain_reader() -> Univ3OnChainReader:
    settings = get_settings()
    rpc_client = EvmRpcClient(
        EvmRpcClientSettings(
            rpc_urls=settings.rpc_urls,
            timeout_seconds=settings.rpc_timeout_seconds,
            max_retries=settings.rpc_max_retries,
            min_interval_ms=settings.rpc_min_interval_ms,
        )
    )
    return Univ3OnChainReader(
        rpc_client,
        position_managers=settings.position_manager_addresses,
        factories=settings.factory_addresses,
    )


def get_valuate_snapshot_use_case() -> ValuateSnapshotUseCase:
    return ValuateSnapshotUseCase()


def get_valuate_onchain_position_use_case() -> ValuateOnChainPositionUseCase:
    return ValuateOnChainPositionUseCase(
        position_state_port=_get_onchain_reader(),
        price_port=PriceServiceAdapter(_get_price_service()),
    )


def get_list_wallet_positions_use_case() -> ListWalletPositionsUseCase:
    return ListWalletPositionsUseCase(
        position_state_port=_get_onchain_reader(),
        valuate_position_use_case=get_valuate_onchain_position_use_case(),
    )
