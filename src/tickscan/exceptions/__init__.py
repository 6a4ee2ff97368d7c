from tickscan.exceptions.base import InvalidInput, TickscanError, TickscanValueError
from tickscan.exceptions.fetching import FetchingError, UpstreamLookupFailure, UpstreamUnavailable
from tickscan.exceptions.liquidity_pool import LiquidityPoolError

from . import fetching, liquidity_pool

__all__ = (
    "FetchingError",
    "InvalidInput",
    "LiquidityPoolError",
    "TickscanError",
    "TickscanValueError",
    "UpstreamLookupFailure",
    "UpstreamUnavailable",
    "fetching",
    "liquidity_pool",
)
