from collections.abc import Sequence

from tickscan.config import settings
from tickscan.logging import logger
from tickscan.types.aliases import Tick
from tickscan.uniswap.v3_libraries.price_math import tick_to_price_in_quote_tokens
from tickscan.uniswap.v3_libraries.tick_bitmap import calculate_tick_indices
from tickscan.uniswap.v3_liquidity_curve import (
    find_closest_tick_index,
    reconstruct_liquidity_curve,
)
from tickscan.uniswap.v3_tick_fetcher import BatchedTickFetcher
from tickscan.uniswap.v3_tick_scanner import TickBitmapScanner
from tickscan.uniswap.v3_types import (
    TickRetrievalResult,
    TickWindow,
    UniswapV3PoolSnapshot,
    UniswapV3PoolStateSource,
    UniswapV3TickRecord,
)

COMMON_QUOTE_TOKEN_SYMBOLS = ("USDC", "USDT", "DAI", "USDE", "USDC.e")


def is_common_quote_token(symbol: str) -> bool:
    return symbol.lower() in {quote_symbol.lower() for quote_symbol in COMMON_QUOTE_TOKEN_SYMBOLS}


def tick_prices(
    ticks: Sequence[UniswapV3TickRecord],
    snapshot: UniswapV3PoolSnapshot,
    zero_is_quote: bool,
) -> tuple[float, ...]:
    """
    Price each tick in quote token units per base token unit.
    """

    return tuple(
        tick_to_price_in_quote_tokens(
            tick=record.tick,
            decimals0=snapshot.decimals0,
            decimals1=snapshot.decimals1,
            zero_is_quote=zero_is_quote,
        )
        for record in ticks
    )


class UniswapV3TickService:
    """
    Retrieves tick data and the liquidity distribution for a single pool.

    The snapshot is read first, and every result built by the service is derived from that one
    snapshot.
    """

    def __init__(
        self,
        source: UniswapV3PoolStateSource,
        fetcher: BatchedTickFetcher | None = None,
        *,
        show_progress: bool = False,
    ) -> None:
        self.source = source
        self.fetcher = fetcher if fetcher is not None else BatchedTickFetcher()
        self.show_progress = show_progress
        self.scanner = TickBitmapScanner(
            bitmap_lookup=source.get_tick_bitmap,
            tick_lookup=source.get_tick,
            fetcher=self.fetcher,
            show_progress=show_progress,
        )

    async def get_snapshot(self) -> UniswapV3PoolSnapshot:
        return await self.source.get_snapshot()

    async def get_all_ticks(self, snapshot: UniswapV3PoolSnapshot | None = None) -> TickWindow:
        """
        Retrieve the records of every initialized tick in the pool, found from the tick bitmap.
        """

        if snapshot is None:
            snapshot = await self.get_snapshot()
        return await self.scanner.get_all_ticks(tick_spacing=snapshot.tick_spacing)

    async def get_ticks_around_current_tick(
        self,
        tick_count: int | None = None,
        snapshot: UniswapV3PoolSnapshot | None = None,
    ) -> TickWindow:
        """
        Retrieve a contiguous window of `tick_count` aligned ticks centered on the current tick,
        including uninitialized ticks.
        """

        if tick_count is None:
            tick_count = settings.ticks_around
        if snapshot is None:
            snapshot = await self.get_snapshot()

        tick_indices: list[Tick] = calculate_tick_indices(
            current_tick=snapshot.tick,
            tick_spacing=snapshot.tick_spacing,
            tick_count=tick_count,
        )
        return await self.fetcher.retrieve(
            tick_indices,
            self.source.get_tick,
            show_progress=self.show_progress,
        )

    async def analyze(self, tick_count: int | None = None) -> TickRetrievalResult:
        """
        Read a snapshot, retrieve the tick window around the current tick, and reconstruct the
        liquidity curve across it.
        """

        snapshot = await self.get_snapshot()
        ticks = await self.get_ticks_around_current_tick(tick_count=tick_count, snapshot=snapshot)
        curve = reconstruct_liquidity_curve(
            ticks=ticks,
            current_tick=snapshot.tick,
            current_liquidity=snapshot.liquidity,
        )

        logger.info(
            f"Retrieved {len(ticks)} ticks around tick {snapshot.tick} for pool {snapshot.address}"
        )

        return TickRetrievalResult(
            snapshot=snapshot,
            ticks=ticks,
            liquidity_curve=curve,
            anchor_index=find_closest_tick_index(ticks, snapshot.tick) if ticks else None,
        )
