"""Account-level collateral aggregation.

A pass-through composition over the collaborators: accumulated premium and
position balances from the fee accounting, per-token margin details from the
two collateral trackers, folded into one token at the reference tick.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .constants import DECIMALS
from .interfaces import OptionPool
from .positions import Position
from .tick_math import MarginData, convert_collateral_data, mul_div

__all__ = ["check_collateral", "net_equity", "headroom"]

log = logging.getLogger(__name__)


def check_collateral(
    pool: OptionPool,
    account: str,
    tick: int,
    token_type: int,
    positions: Sequence[Position],
) -> MarginData:
    """Return ``(balance, required)`` of *account* in *token_type* at *tick*."""
    premium0, premium1, balances = pool.accumulated_fees_batch(account, positions)
    data0 = pool.collateral_tracker(0).account_margin_details(account, tick, balances, premium0)
    data1 = pool.collateral_tracker(1).account_margin_details(account, tick, balances, premium1)
    return convert_collateral_data(MarginData(*data0), MarginData(*data1), token_type, tick)


def net_equity(pool: OptionPool, account: str, tick: int, positions: Sequence[Position]) -> int:
    balance, required = check_collateral(pool, account, tick, 0, positions)
    return balance - required


def headroom(
    pool: OptionPool,
    account: str,
    tick: int,
    token_type: int,
    positions: Sequence[Position],
    mmr_bps: int,
) -> int:
    """Spare collateral: ``balance - required * mmr_bps / 10_000``."""
    balance, required = check_collateral(pool, account, tick, token_type, positions)
    spare = balance - mul_div(required, mmr_bps, DECIMALS)
    log.debug(
        "headroom account=%s tick=%d token=%d balance=%d required=%d mmr=%d -> %d",
        account, tick, token_type, balance, required, mmr_bps, spare,
    )
    return spare
