"""Largest position size a free-collateral budget can support.

For each entry of :data:`SIZING_LADDER` the solver finds the size where

    f(size) = headroom * pct / 100 - requirement(size)

changes sign.  It first brackets the root, starting from ``[1, INT64_MAX]``:

* an invalid notional anywhere in the bracket shrinks ``high`` by
  ``SHRINK_PCT`` and retries;
* ``f(low)`` and ``f(high)`` on the same side grows ``high`` by
  ``GROW_PCT``; passing :data:`MAX_POSITION_SIZE` is fatal.

Shrink and grow steps are capped separately, each by the number of steps
needed to cross its whole range plus ``BRACKET_SLACK_STEPS``, so an
invalid-notional cap far below ``INT64_MAX`` is still reached.

It then bisects until ``high - low < EPSILON`` and reports the last midpoint.
Signs are compared directly, never by multiplying the two values.

Results are only guaranteed non-decreasing along the ladder when the
requirement is non-decreasing in size.  That is not verified up front; a
non-monotone ladder is logged as a warning after the fact.
"""

from __future__ import annotations

import logging
from math import ceil, log as _log
from typing import Callable, Sequence

from .collateral import headroom
from .config import QuerySettings, get_settings
from .constants import INT64_MAX, MAX_POSITION_SIZE, SIZING_LADDER
from .errors import (
    EvalResult,
    ExceedsMaximumSizeError,
    InvalidNotional,
    InvalidPositionError,
    NonConvergentError,
    Ok,
)
from .interfaces import ExerciseMath, OptionPool
from .positions import Position
from .requirement import evaluate_in_token
from .tick_math import div_trunc, mul_div, sqrt_price_at_tick

__all__ = ["bracket_step_caps", "solve_ladder_entry", "max_position_size"]

log = logging.getLogger(__name__)

RequirementFn = Callable[[int], EvalResult]


def _same_side(a: int, b: int) -> bool:
    return (a < 0) == (b < 0)


def _objective(requirement: RequirementFn, budget: int, size: int, ladder_index: int | None) -> int | None:
    """``budget - requirement(size)``; ``None`` on an invalid notional."""
    result = requirement(size)
    if isinstance(result, Ok):
        return budget - result.amount
    if isinstance(result, InvalidNotional):
        return None
    raise InvalidPositionError(
        f"cannot evaluate requirement at size {size}: {result.reason}", ladder_index=ladder_index
    ) from result.error


def bracket_step_caps(settings: QuerySettings) -> tuple[int, int]:
    """Return ``(shrink_cap, grow_cap)`` for the bracket phase."""
    shrink = ceil(_log(INT64_MAX) / _log(100 / (100 - settings.SHRINK_PCT)))
    grow = ceil(_log(MAX_POSITION_SIZE / INT64_MAX) / _log((100 + settings.GROW_PCT) / 100))
    return shrink + settings.BRACKET_SLACK_STEPS, grow + settings.BRACKET_SLACK_STEPS


def _bracket(
    requirement: RequirementFn,
    budget: int,
    settings: QuerySettings,
    ladder_index: int | None,
) -> tuple[int, int, int]:
    """Return ``(low, high, f(low))`` with f changing sign over the bracket."""
    shrink_cap, grow_cap = bracket_step_caps(settings)
    shrinks = grows = 0
    low, high = 1, INT64_MAX
    for _ in range(shrink_cap + grow_cap):
        f_low = _objective(requirement, budget, low, ladder_index)
        f_high = _objective(requirement, budget, high, ladder_index)

        if f_low is None or f_high is None:
            shrinks += 1
            if shrinks > shrink_cap:
                break
            high = div_trunc(high * (100 - settings.SHRINK_PCT), 100)
            if high <= low:
                raise InvalidPositionError(
                    "no size above the minimum evaluates to a valid notional",
                    ladder_index=ladder_index,
                )
            log.debug("invalid notional, shrinking high to %d", high)
            continue

        if not _same_side(f_low, f_high) or f_high == 0:
            return low, high, f_low

        grows += 1
        if grows > grow_cap:
            break
        high = div_trunc(high * (100 + settings.GROW_PCT), 100)
        if high > MAX_POSITION_SIZE:
            raise ExceedsMaximumSizeError(
                f"no sign change below the maximum position size {MAX_POSITION_SIZE}",
                ladder_index=ladder_index,
            )
        log.debug("no sign change, growing high to %d", high)

    raise NonConvergentError(
        f"bracket not found after {shrinks} shrink and {grows} grow steps",
        ladder_index=ladder_index,
    )



def solve_ladder_entry(
    requirement: RequirementFn,
    budget: int,
    settings: QuerySettings | None = None,
    *,
    ladder_index: int | None = None,
) -> int:
    """Largest size whose requirement fits *budget*, to within ``EPSILON``."""
    settings = settings or get_settings()
    low, high, f_low = _bracket(requirement, budget, settings, ladder_index)

    mid = (low + high) // 2
    for step in range(settings.MAX_BISECTION_STEPS):
        if high - low < settings.EPSILON:
            break
        mid = (low + high) // 2
        f_mid = _objective(requirement, budget, mid, ladder_index)
        if f_mid is None:
            raise InvalidPositionError(
                f"invalid notional inside the bracket at size {mid}", ladder_index=ladder_index
            )
        log.debug("bisect step=%d low=%d high=%d mid=%d f(mid)=%d", step, low, high, mid, f_mid)
        if f_mid == 0:
            break
        if _same_side(f_low, f_mid):
            low, f_low = mid, f_mid
        else:
            high = mid
    else:
        if high - low >= settings.EPSILON:
            raise NonConvergentError(
                f"bisection did not converge in {settings.MAX_BISECTION_STEPS} steps",
                ladder_index=ladder_index,
            )
    return mid


def _warn_if_not_monotone(sizes: Sequence[int]) -> None:
    for i in range(1, len(sizes)):
        if sizes[i] < sizes[i - 1]:
            log.warning(
                "Sizing ladder not monotone at %d%% (%d) < %d%% (%d); requirement may decrease with size",
                SIZING_LADDER[i], sizes[i], SIZING_LADDER[i - 1], sizes[i - 1],
            )


def max_position_size(
    pool: OptionPool,
    math: ExerciseMath,
    account: str,
    positions: Sequence[Position],
    candidate: Position,
    tick: int,
    token_type: int,
    mmr_bps: int,
    settings: QuerySettings | None = None,
) -> tuple[int, ...]:
    """Return one size per :data:`SIZING_LADDER` percentage."""
    settings = settings or get_settings()
    spare = headroom(pool, account, tick, token_type, positions, mmr_bps)
    sqrt_price = sqrt_price_at_tick(tick)

    def requirement(size: int) -> EvalResult:
        return evaluate_in_token(pool, math, candidate, size, tick, token_type, sqrt_price)

    sizes = tuple(
        solve_ladder_entry(requirement, mul_div(spare, pct, 100), settings, ladder_index=i)
        for i, pct in enumerate(SIZING_LADDER)
    )
    _warn_if_not_monotone(sizes)
    log.info("Max size account=%s tick=%d token=%d headroom=%d -> %s", account, tick, token_type, spare, sizes)
    return sizes
