"""Tick / sqrt-price conversions and protocol integer arithmetic.

All amounts are integers in native token decimals.  Division follows the
protocol's accounting and truncates toward zero, which differs from Python's
floor division for negative operands; use :func:`div_trunc` / :func:`mul_div`
for any signed protocol arithmetic.
"""

from __future__ import annotations

from typing import NamedTuple

from .constants import MAX_V3POOL_TICK, MIN_V3POOL_TICK, Q96

__all__ = [
    "MarginData",
    "div_trunc",
    "mul_div",
    "sqrt_price_at_tick",
    "convert0to1",
    "convert1to0",
    "convert_collateral_data",
]

_Q192 = Q96 * Q96


class MarginData(NamedTuple):
    """Collateral balance and requirement of an account in one token."""

    balance: int
    required: int


def div_trunc(a: int, b: int) -> int:
    """Integer ``a / b`` rounded toward zero."""
    if b == 0:
        raise ZeroDivisionError("division by zero")
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def mul_div(a: int, b: int, denominator: int) -> int:
    return div_trunc(a * b, denominator)


def sqrt_price_at_tick(tick: int) -> int:
    """Return sqrt(1.0001^tick) in Q64.96 format."""
    if tick < MIN_V3POOL_TICK or tick > MAX_V3POOL_TICK:
        raise ValueError(f"Tick {tick} out of bounds [{MIN_V3POOL_TICK}, {MAX_V3POOL_TICK}]")
    return int(1.0001 ** (tick / 2.0) * Q96)


def convert0to1(amount: int, sqrt_price_x96: int) -> int:
    """Value of *amount* of token0 expressed in token1."""
    return mul_div(amount, sqrt_price_x96 * sqrt_price_x96, _Q192)


def convert1to0(amount: int, sqrt_price_x96: int) -> int:
    """Value of *amount* of token1 expressed in token0."""
    return mul_div(amount, _Q192, sqrt_price_x96 * sqrt_price_x96)


def convert_collateral_data(
    data0: MarginData,
    data1: MarginData,
    token_type: int,
    tick: int,
) -> MarginData:
    """Fold the two per-token margin details into *token_type* terms at *tick*."""
    sqrt_price = sqrt_price_at_tick(tick)
    if token_type == 0:
        return MarginData(
            data0.balance + convert1to0(data1.balance, sqrt_price),
            data0.required + convert1to0(data1.required, sqrt_price),
        )
    if token_type == 1:
        return MarginData(
            data1.balance + convert0to1(data0.balance, sqrt_price),
            data1.required + convert0to1(data0.required, sqrt_price),
        )
    raise ValueError(f"token_type must be 0 or 1, got {token_type!r}")
