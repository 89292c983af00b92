from __future__ import annotations

import logging
from decimal import Decimal

from lp_valuation.application.dto.position_valuation import (
    ListWalletPositionsInput,
    ListWalletPositionsOutput,
    ValuatePositionInput,
    WalletPositionError,
    WalletPositionRow,
)
from lp_valuation.application.ports.position_state_port import PositionStatePort
from lp_valuation.application.use_cases.valuate_position import ValuateOnChainPositionUseCase
from lp_valuation.domain.exceptions import (
    DomainError,
    InconsistentTickError,
    InvalidRangeError,
    PositionNotFoundError,
    PositionStateUnavailableError,
    PriceUnavailableError,
)


logger = logging.getLogger(__name__)


ERROR_KINDS: dict[type[DomainError], str] = {
    InvalidRangeError: "invalid_range",
    InconsistentTickError: "inconsistent_tick",
    PriceUnavailableError: "price_unavailable",
    PositionNotFoundError: "position_not_found",
    PositionStateUnavailableError: "position_state_unavailable",
}


def error_kind(exc: DomainError) -> str:
    for exc_type, kind in ERROR_KINDS.items():
        if isinstance(exc, exc_type):
            return kind
    return "domain_error"


class ListWalletPositionsUseCase:
    def __init__(
        self,
        *,
        position_state_port: PositionStatePort,
        valuate_position_use_case: ValuateOnChainPositionUseCase,
    ):
        self._position_state_port = position_state_port
        self._valuate_position_use_case = valuate_position_use_case

    def execute(self, command: ListWalletPositionsInput) -> ListWalletPositionsOutput:
        position_ids = self._position_state_port.list_position_ids(
            chain_id=command.chain_id,
            owner=command.owner,
        )

        rows: list[WalletPositionRow] = []
        total = Decimal("0")
        skipped_closed = 0
        for position_id in position_ids:
            if not command.include_closed and self._is_closed(command.chain_id, position_id):
                skipped_closed += 1
                continue
            try:
                result = self._valuate_position_use_case.execute(
                    ValuatePositionInput(chain_id=command.chain_id, position_id=position_id)
                )
            except DomainError as exc:
                kind = error_kind(exc)
                logger.warning(
                    "list_wallet_positions: position_failed owner=%s chain_id=%s position_id=%s kind=%s error=%s",
                    command.owner,
                    command.chain_id,
                    position_id,
                    kind,
                    exc,
                )
                rows.append(
                    WalletPositionRow(
                        position_id=position_id,
                        error=WalletPositionError(kind=kind, detail=str(exc)),
                    )
                )
                continue

            total += result.valuation.total_value_usd
            rows.append(WalletPositionRow(position_id=position_id, position=result))

        logger.info(
            "list_wallet_positions: done owner=%s chain_id=%s found=%s valued=%s failed=%s skipped_closed=%s",
            command.owner,
            command.chain_id,
            len(position_ids),
            sum(1 for row in rows if row.position is not None),
            sum(1 for row in rows if row.error is not None),
            skipped_closed,
        )

        return ListWalletPositionsOutput(
            chain_id=command.chain_id,
            owner=command.owner,
            total_value_usd=total,
            positions=rows,
        )

    def _is_closed(self, chain_id: int, position_id: int) -> bool:
        try:
            position = self._position_state_port.get_position(
                chain_id=chain_id,
                position_id=position_id,
            )
        except DomainError:
            # Let the valuation path report the failure on the row.
            return False
        snapshot = position.snapshot
        return snapshot.liquidity == 0 and snapshot.tokens_owed0 == 0 and snapshot.tokens_owed1 == 0
