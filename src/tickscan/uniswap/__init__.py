from .v3_liquidity_curve import (
    calculate_liquidity_utilization,
    find_closest_tick_index,
    reconstruct_liquidity_curve,
)
from .v3_pool_reader import UniswapV3PoolReader
from .v3_tick_fetcher import BatchedTickFetcher, fetch_in_batches, retrieve_ticks_in_batches
from .v3_tick_scanner import TickBitmapScanner, get_all_ticks
from .v3_tick_service import UniswapV3TickService, is_common_quote_token, tick_prices
from .v3_types import (
    LiquidityCurve,
    TickRetrievalResult,
    TickWindow,
    UniswapV3PoolSnapshot,
    UniswapV3PoolStateSource,
    UniswapV3TickRecord,
)

__all__ = (
    "BatchedTickFetcher",
    "LiquidityCurve",
    "TickBitmapScanner",
    "TickRetrievalResult",
    "TickWindow",
    "UniswapV3PoolReader",
    "UniswapV3PoolSnapshot",
    "UniswapV3PoolStateSource",
    "UniswapV3TickRecord",
    "UniswapV3TickService",
    "calculate_liquidity_utilization",
    "fetch_in_batches",
    "find_closest_tick_index",
    "get_all_ticks",
    "is_common_quote_token",
    "reconstruct_liquidity_curve",
    "retrieve_ticks_in_batches",
    "tick_prices",
)
