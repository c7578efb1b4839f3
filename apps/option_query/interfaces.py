"""Collaborator interfaces consumed by the query layer.

Every call is a blocking, read-only query.  Implementations signal failure by
raising :class:`apps.option_query.errors.OracleError` (or its
``InvalidNotionalError`` subclass for positions below the minimum notional).
"""

from __future__ import annotations

from typing import Protocol, Sequence

from .positions import Position, TokenPair
from .tick_math import MarginData

__all__ = ["MarginOracle", "OptionPool", "ExerciseMath", "PositionBalance"]

# (position size, pool utilizations at mint) as stored by the fee accounting
PositionBalance = tuple[int, int]


class MarginOracle(Protocol):
    """Per-token collateral tracker."""

    def account_margin_details(
        self,
        account: str,
        tick: int,
        position_balances: Sequence[PositionBalance],
        premium: int,
    ) -> MarginData: ...

    def required_collateral_at_tick(
        self, position: Position, size: int, tick: int, utilization: int
    ) -> int: ...

    def pool_utilization(self) -> tuple[int, int, int]: ...

    def total_assets(self) -> int: ...


class OptionPool(Protocol):
    tick_spacing: int

    def current_tick(self) -> int: ...

    def collateral_tracker(self, token: int) -> MarginOracle: ...

    def accumulated_fees_batch(
        self, account: str, positions: Sequence[Position]
    ) -> tuple[int, int, list[PositionBalance]]: ...


class ExerciseMath(Protocol):
    def exercised_amounts(
        self, position: Position, size: int, tick_spacing: int
    ) -> tuple[TokenPair, TokenPair]:
        """Return ``(long_amounts, short_amounts)`` moved by the position."""
        ...

    def net_itm_amounts(
        self, position: Position, size: int, tick_spacing: int, tick: int
    ) -> TokenPair: ...
