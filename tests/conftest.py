import pytest

from apps.option_query.config import QuerySettings
from apps.option_query.positions import Leg, Position


@pytest.fixture
def settings():
    return QuerySettings(_env_file=None)


@pytest.fixture
def call_position():
    leg = Leg(asset=0, option_ratio=1, token_type=0, is_long=False, strike=1_000, width=2)
    return Position(pool_id=7, legs=(leg,))
