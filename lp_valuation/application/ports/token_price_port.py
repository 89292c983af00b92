from __future__ import annotations

from decimal import Decimal
from typing import Protocol


class TokenPricePort(Protocol):
    def get_pair_prices(
        self,
        *,
        token0_address: str,
        token1_address: str,
        chain_id: int,
    ) -> tuple[Decimal | None, Decimal | None]:
        ...
