import pytest

from apps.option_query.constants import MAX_V3POOL_TICK, MIN_V3POOL_TICK
from apps.option_query.report import ladder_frame, liquidation_frame


def test_ladder_frame():
    sizes = [5_000, 25_000, 50_000, 125_000, 250_000, 375_000, 500_000]
    df = ladder_frame(sizes, 1_000_000)
    assert list(df.columns) == ["pct", "budget", "size"]
    assert df["budget"].tolist() == [10_000, 50_000, 100_000, 250_000, 500_000, 750_000, 1_000_000]
    assert df["size"].is_monotonic_increasing


def test_ladder_frame_length_mismatch():
    with pytest.raises(ValueError):
        ladder_frame([1, 2, 3], 1_000)


def test_liquidation_frame_flags_sentinels():
    df = liquidation_frame(1_000, -29_000, MAX_V3POOL_TICK)
    assert df["distance"].tolist() == [-30_000, MAX_V3POOL_TICK - 1_000]
    assert df["sentinel"].tolist() == [False, True]
    assert liquidation_frame(0, MIN_V3POOL_TICK, 5)["sentinel"].tolist() == [True, False]
