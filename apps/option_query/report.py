"""Tabular summaries of query results for notebooks and logs."""
from __future__ import annotations

from typing import Sequence

import pandas as pd

from .constants import MAX_V3POOL_TICK, MIN_V3POOL_TICK, SIZING_LADDER
from .tick_math import mul_div

__all__ = ["ladder_frame", "liquidation_frame"]


def ladder_frame(
    sizes: Sequence[int],
    headroom: int,
    ladder: Sequence[int] = SIZING_LADDER,
) -> pd.DataFrame:
    """One row per ladder percentage: ``pct``, ``budget``, ``size``."""
    if len(sizes) != len(ladder):
        raise ValueError(f"expected {len(ladder)} sizes, got {len(sizes)}")
    return pd.DataFrame(
        {
            "pct": list(ladder),
            "budget": [mul_div(headroom, pct, 100) for pct in ladder],
            "size": list(sizes),
        }
    )


def liquidation_frame(current_tick: int, down: int, up: int) -> pd.DataFrame:
    """Liquidation ticks with their distance from *current_tick*."""
    df = pd.DataFrame({"direction": ["down", "up"], "tick": [down, up]})
    df["distance"] = df["tick"] - current_tick
    df["sentinel"] = df["tick"].isin([MIN_V3POOL_TICK, MAX_V3POOL_TICK])
    return df
