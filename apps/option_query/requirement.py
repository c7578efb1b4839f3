"""Collateral requirement of a single candidate position.

The requirement in one token is computed in four steps:

1. exercised long/short amounts of the position at *size*;
2. a projected pool utilization that includes the candidate's own effect,
   ``current + (short - long) * 10_000 / total_assets`` (truncating);
3. the margin oracle's requirement at that utilization;
4. minus the net in-the-money amount at the reference tick.

Step 4 can leave a small negative number because of rounding in the ITM
estimate.  That means "no capital needed", not an error.
"""

from __future__ import annotations

import logging

from .constants import DECIMALS
from .errors import EvalResult, InvalidNotional, InvalidNotionalError, Ok, OracleError, OtherFailure
from .interfaces import ExerciseMath, OptionPool
from .positions import Position, TokenPair
from .tick_math import convert0to1, convert1to0, mul_div, sqrt_price_at_tick

__all__ = [
    "projected_utilization",
    "required_in_token",
    "evaluate_requirement",
    "evaluate_in_token",
    "collateral_requirement",
    "collateral_requirement_itm",
]

log = logging.getLogger(__name__)


def projected_utilization(current: int, long_amount: int, short_amount: int, total_assets: int) -> int:
    return current + mul_div(short_amount - long_amount, DECIMALS, total_assets)


def required_in_token(
    pool: OptionPool,
    math: ExerciseMath,
    position: Position,
    token: int,
    size: int,
    tick: int,
    *,
    net_itm: bool = True,
) -> int:
    """Requirement of *position* at *size* in *token*; raises collaborator errors as-is."""
    long_amounts, short_amounts = math.exercised_amounts(position, size, pool.tick_spacing)
    tracker = pool.collateral_tracker(token)
    _, _, utilization = tracker.pool_utilization()
    utilization = projected_utilization(
        utilization, long_amounts.slot(token), short_amounts.slot(token), tracker.total_assets()
    )
    required = tracker.required_collateral_at_tick(position, size, tick, utilization)
    if not net_itm:
        return required
    itm = math.net_itm_amounts(position, size, pool.tick_spacing, tick).slot(token)
    return required - itm


def evaluate_requirement(
    pool: OptionPool,
    math: ExerciseMath,
    position: Position,
    token: int,
    size: int,
    tick: int,
) -> EvalResult:
    """Tagged form of :func:`required_in_token` used by the solvers."""
    try:
        amount = required_in_token(pool, math, position, token, size, tick)
    except InvalidNotionalError as exc:
        return InvalidNotional(str(exc))
    except (OracleError, ArithmeticError, ValueError) as exc:
        return OtherFailure(f"{type(exc).__name__}: {exc}", exc)
    return Ok(amount)


def evaluate_in_token(
    pool: OptionPool,
    math: ExerciseMath,
    position: Position,
    size: int,
    tick: int,
    token_type: int,
    sqrt_price: int,
) -> EvalResult:
    """Sum both tokens' requirements, expressed in *token_type* at *sqrt_price*."""
    r0 = evaluate_requirement(pool, math, position, 0, size, tick)
    if not isinstance(r0, Ok):
        return r0
    r1 = evaluate_requirement(pool, math, position, 1, size, tick)
    if not isinstance(r1, Ok):
        return r1
    if token_type == 0:
        return Ok(r0.amount + convert1to0(r1.amount, sqrt_price))
    return Ok(r1.amount + convert0to1(r0.amount, sqrt_price))


def collateral_requirement(
    pool: OptionPool,
    math: ExerciseMath,
    position: Position,
    size: int,
    tick: int,
) -> TokenPair:
    """Return ``(required0, required1)`` before in-the-money netting."""
    return TokenPair(
        required_in_token(pool, math, position, 0, size, tick, net_itm=False),
        required_in_token(pool, math, position, 1, size, tick, net_itm=False),
    )


def collateral_requirement_itm(
    pool: OptionPool,
    math: ExerciseMath,
    position: Position,
    size: int,
    tick: int,
) -> tuple[int, int, int]:
    """Return ``(required0, required1, price_impact_bps)`` net of ITM amounts.

    The price impact estimate is the net ITM value (in token1) as a fraction
    of both collateral pools' assets (in token1), in basis points.
    """
    required0 = required_in_token(pool, math, position, 0, size, tick)
    required1 = required_in_token(pool, math, position, 1, size, tick)

    sqrt_price = sqrt_price_at_tick(tick)
    itm = math.net_itm_amounts(position, size, pool.tick_spacing, tick)
    itm_value = itm.token1 + convert0to1(itm.token0, sqrt_price)
    pool_value = pool.collateral_tracker(1).total_assets() + convert0to1(
        pool.collateral_tracker(0).total_assets(), sqrt_price
    )
    price_impact = mul_div(abs(itm_value), DECIMALS, pool_value)
    log.debug(
        "ITM requirement size=%d tick=%d -> (%d, %d), impact=%d bps",
        size, tick, required0, required1, price_impact,
    )
    return required0, required1, price_impact
