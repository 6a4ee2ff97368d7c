from .config import settings
from .connection import async_connection_manager, get_async_web3, set_async_web3
from .version import __version__

# isort: split

from .exceptions import InvalidInput, TickscanError, UpstreamLookupFailure, UpstreamUnavailable
from .logging import logger
from .uniswap import (
    BatchedTickFetcher,
    TickBitmapScanner,
    TickRetrievalResult,
    UniswapV3PoolReader,
    UniswapV3PoolSnapshot,
    UniswapV3TickRecord,
    UniswapV3TickService,
    reconstruct_liquidity_curve,
)

__all__ = (
    "BatchedTickFetcher",
    "InvalidInput",
    "TickBitmapScanner",
    "TickRetrievalResult",
    "TickscanError",
    "UniswapV3PoolReader",
    "UniswapV3PoolSnapshot",
    "UniswapV3TickRecord",
    "UniswapV3TickService",
    "UpstreamLookupFailure",
    "UpstreamUnavailable",
    "__version__",
    "async_connection_manager",
    "get_async_web3",
    "logger",
    "reconstruct_liquidity_curve",
    "set_async_web3",
    "settings",
)
