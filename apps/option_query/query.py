"""Caller-facing query object.

    q = OptionQuery(pool, exercise_math)
    sizes = q.max_position_size("0xabc", open_positions, candidate, tick, token_type=0)
    down, up = q.liquidation_prices("0xabc", open_positions)

Every call is a read-only snapshot query; nothing is cached between calls.
"""

from __future__ import annotations

from typing import Sequence

from . import collateral, liquidation, max_size, requirement
from .config import QuerySettings, get_settings
from .interfaces import ExerciseMath, OptionPool
from .positions import Position, TokenPair
from .tick_math import MarginData

__all__ = ["OptionQuery"]


class OptionQuery:
    def __init__(self, pool: OptionPool, math: ExerciseMath, settings: QuerySettings | None = None) -> None:
        self.pool = pool
        self.math = math
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Collateral
    # ------------------------------------------------------------------

    def check_collateral(
        self, account: str, tick: int, token_type: int, positions: Sequence[Position]
    ) -> MarginData:
        return collateral.check_collateral(self.pool, account, tick, token_type, positions)

    def net_equity(self, account: str, tick: int, positions: Sequence[Position]) -> int:
        return collateral.net_equity(self.pool, account, tick, positions)

    def headroom(
        self,
        account: str,
        tick: int,
        token_type: int,
        positions: Sequence[Position],
        mmr_bps: int | None = None,
    ) -> int:
        if mmr_bps is None:
            mmr_bps = self.settings.MAINTENANCE_MARGIN_BPS
        return collateral.headroom(self.pool, account, tick, token_type, positions, mmr_bps)

    def collateral_requirement(self, position: Position, size: int, tick: int) -> TokenPair:
        return requirement.collateral_requirement(self.pool, self.math, position, size, tick)

    def collateral_requirement_itm(self, position: Position, size: int, tick: int) -> tuple[int, int, int]:
        return requirement.collateral_requirement_itm(self.pool, self.math, position, size, tick)

    # ------------------------------------------------------------------
    # Solvers
    # ------------------------------------------------------------------

    def max_position_size(
        self,
        account: str,
        positions: Sequence[Position],
        candidate: Position,
        tick: int,
        token_type: int,
        mmr_bps: int | None = None,
    ) -> tuple[int, ...]:
        if mmr_bps is None:
            mmr_bps = self.settings.MAINTENANCE_MARGIN_BPS
        return max_size.max_position_size(
            self.pool, self.math, account, positions, candidate, tick, token_type, mmr_bps, self.settings
        )

    def liquidation_price_down(self, account: str, positions: Sequence[Position]) -> int:
        return liquidation.liquidation_price_down(self.pool, account, positions, self.settings)

    def liquidation_price_up(self, account: str, positions: Sequence[Position]) -> int:
        return liquidation.liquidation_price_up(self.pool, account, positions, self.settings)

    def liquidation_prices(self, account: str, positions: Sequence[Position]) -> tuple[int, int]:
        return (
            self.liquidation_price_down(account, positions),
            self.liquidation_price_up(account, positions),
        )
