"""Position sizing and liquidation-price queries for a leveraged options pool."""

from .constants import SIZING_LADDER  # noqa: F401
from .errors import (  # noqa: F401
    ExceedsMaximumSizeError,
    InvalidNotionalError,
    InvalidPositionError,
    NonConvergentError,
    OracleError,
    QueryError,
)
from .positions import Leg, Position, TokenPair  # noqa: F401
from .query import OptionQuery  # noqa: F401
