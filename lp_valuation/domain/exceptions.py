from __future__ import annotations


class DomainError(Exception):
    """Base for domain errors."""


class InvalidRangeError(DomainError):
    """Position tick range is not canonical (tick_lower must be < tick_upper)."""


class InconsistentTickError(DomainError):
    """Pool current tick is outside the representable tick bounds."""


class PriceUnavailableError(DomainError):
    """A unit USD price is missing or non-positive."""

    def __init__(self, message: str, *, side: str):
        super().__init__(message)
        self.side = side


class PositionInputError(DomainError):
    """Invalid parameters for a position lookup."""


class PositionNotFoundError(DomainError):
    """Position does not exist on-chain."""


class PositionStateUnavailableError(DomainError):
    """On-chain state for the position could not be read."""
