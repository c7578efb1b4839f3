"""Liquidation price search.

Net equity (balance - requirement, in token0) is a function of the reference
tick.  The secant method walks from a point ``SEARCH_OFFSET`` ticks away from
the current tick until it lands on a tick where equity changes sign between
its two neighbours.  Iterates further than ``TOLERANCE_TICKS`` from the
current tick mean there is no liquidation price the solver can trust, and the
direction's extreme tick is returned instead.  The same holds for trial
ticks whose neighbours fall outside ``[MIN_V3POOL_TICK, MAX_V3POOL_TICK]``,
where net equity cannot be evaluated.

The stopping test is ``(eq(x + 1) >= 0) == (eq(x - 1) <= 0)``: both true or
both false.  Both false catches equity that falls through zero at ``x``.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Callable, Sequence

from .collateral import net_equity
from .config import QuerySettings, get_settings
from .constants import MAX_V3POOL_TICK, MIN_V3POOL_TICK
from .errors import NonConvergentError
from .interfaces import OptionPool
from .positions import Position
from .tick_math import div_trunc

__all__ = ["Direction", "find_liquidation_tick", "liquidation_price_down", "liquidation_price_up"]

log = logging.getLogger(__name__)


class Direction(StrEnum):
    DOWN = "down"
    UP = "up"


_SENTINEL = {Direction.DOWN: MIN_V3POOL_TICK, Direction.UP: MAX_V3POOL_TICK}


def _evaluable(tick: int) -> bool:
    return MIN_V3POOL_TICK <= tick - 1 and tick + 1 <= MAX_V3POOL_TICK


def _give_up(direction: Direction, current_tick: int, reason: str) -> int:
    log.warning(
        "No %s liquidation price from tick %d (%s); returning %d",
        direction.value, current_tick, reason, _SENTINEL[direction],
    )
    return _SENTINEL[direction]


def find_liquidation_tick(
    equity: Callable[[int], int],
    current_tick: int,
    direction: Direction,
    settings: QuerySettings | None = None,
) -> int:
    """Secant search for the zero of *equity* on one side of *current_tick*."""
    settings = settings or get_settings()
    direction = Direction(direction)
    sign = -1 if direction is Direction.DOWN else 1

    x0 = current_tick + sign * settings.SEARCH_OFFSET
    x1 = current_tick + sign * (settings.SEARCH_OFFSET + 1)
    if not _evaluable(x1):
        return _give_up(direction, current_tick, "start point outside the tick range")
    e0 = equity(x0)

    for step in range(settings.MAX_SECANT_STEPS):
        e1 = equity(x1)
        if e1 == e0:
            raise NonConvergentError(
                f"flat net equity between ticks {x0} and {x1}", direction=direction.value
            )
        x0, x1 = x1, x1 - div_trunc(e1 * (x1 - x0), e1 - e0)
        e0 = e1
        log.debug("secant %s step=%d x0=%d x1=%d", direction.value, step, x0, x1)

        if abs(x1 - current_tick) > settings.TOLERANCE_TICKS:
            return _give_up(direction, current_tick, f"beyond {settings.TOLERANCE_TICKS} ticks")
        if not _evaluable(x1):
            return _give_up(direction, current_tick, f"tick {x1} outside the tick range")

        if (equity(x1 + 1) >= 0) == (equity(x1 - 1) <= 0):
            return x1

    raise NonConvergentError(
        f"secant search did not converge in {settings.MAX_SECANT_STEPS} steps",
        direction=direction.value,
    )


def _search(
    pool: OptionPool,
    account: str,
    positions: Sequence[Position],
    direction: Direction,
    settings: QuerySettings | None,
) -> int:
    current_tick = pool.current_tick()
    tick = find_liquidation_tick(
        lambda t: net_equity(pool, account, t, positions), current_tick, direction, settings
    )
    log.info("Liquidation %s account=%s current=%d -> %d", direction.value, account, current_tick, tick)
    return tick


def liquidation_price_down(
    pool: OptionPool,
    account: str,
    positions: Sequence[Position],
    settings: QuerySettings | None = None,
) -> int:
    return _search(pool, account, positions, Direction.DOWN, settings)


def liquidation_price_up(
    pool: OptionPool,
    account: str,
    positions: Sequence[Position],
    settings: QuerySettings | None = None,
) -> int:
    return _search(pool, account, positions, Direction.UP, settings)
