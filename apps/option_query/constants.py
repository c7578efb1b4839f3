"""Protocol constants shared by the sizing and liquidation solvers."""
from __future__ import annotations

from typing import Final

# fixed-point percentage denominator, 10_000 = 100 %
DECIMALS: Final[int] = 10_000

MIN_V3POOL_TICK: Final[int] = -887_272
MAX_V3POOL_TICK: Final[int] = 887_272

Q96: Final[int] = 2**96

# initial upper bracket for the max-size search
INT64_MAX: Final[int] = 2**63 - 1
# largest leg size the position identifier can carry
MAX_POSITION_SIZE: Final[int] = 2**104 - 1

# Fractions of headroom (in %) targeted by ``max_position_size``.
SIZING_LADDER: Final[tuple[int, ...]] = (1, 5, 10, 25, 50, 75, 100)
