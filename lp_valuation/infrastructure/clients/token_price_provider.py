from __future__ import annotations

from decimal import Decimal
import logging

from lp_valuation.application.ports.token_price_port import TokenPricePort
from lp_valuation.infrastructure.clients.evm_rpc_client import CHAIN_ID_TO_KEY
from lp_valuation.infrastructure.clients.pricing import PriceLookupError, PriceService


logger = logging.getLogger(__name__)


class PriceServiceAdapter(TokenPricePort):
    def __init__(self, price_service: PriceService):
        self._price_service = price_service

    def get_pair_prices(
        self,
        *,
        token0_address: str,
        token1_address: str,
        chain_id: int,
    ) -> tuple[Decimal | None, Decimal | None]:
        network = CHAIN_ID_TO_KEY.get(chain_id)
        if network is None:
            logger.warning("token_price_provider: unsupported_chain chain_id=%s", chain_id)
            return None, None
        try:
            prices = self._price_service.get_prices_usd(
                tokens=[token0_address, token1_address],
                network=network,
            )
        except PriceLookupError as exc:
            # The valuation engine turns a missing price into PriceUnavailableError.
            logger.warning(
                "token_price_provider: lookup_failed chain_id=%s token0=%s token1=%s error=%s",
                chain_id,
                token0_address,
                token1_address,
                exc,
            )
            return None, None
        return prices.get(token0_address.lower()), prices.get(token1_address.lower())
