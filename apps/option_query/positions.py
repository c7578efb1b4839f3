"""Decoded option positions.

The bit-level position identifier is decoded elsewhere; the solvers only need
its structured form, a :class:`Position` holding up to four :class:`Leg`
entries.  Risk-partner compatibility is enforced by the encoder and is not
re-checked here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

__all__ = ["Leg", "Position", "TokenPair", "MAX_LEGS"]

MAX_LEGS = 4


class TokenPair(NamedTuple):
    """Two amounts, one per pool token."""

    token0: int = 0
    token1: int = 0

    def slot(self, token: int) -> int:
        if token == 0:
            return self.token0
        if token == 1:
            return self.token1
        raise ValueError(f"token selector must be 0 or 1, got {token!r}")


@dataclass(frozen=True)
class Leg:
    asset: int
    option_ratio: int
    token_type: int
    is_long: bool
    strike: int
    width: int
    risk_partner: int | None = None


@dataclass(frozen=True)
class Position:
    pool_id: int
    legs: tuple[Leg, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.legs) > MAX_LEGS:
            raise ValueError(f"a position holds at most {MAX_LEGS} legs, got {len(self.legs)}")

    def count_legs(self) -> int:
        return len(self.legs)

    def leg(self, index: int) -> Leg:
        return self.legs[index]

    def has_long_leg(self) -> bool:
        return any(leg.is_long for leg in self.legs)

    def is_short_only(self) -> bool:
        return bool(self.legs) and not self.has_long_leg()
