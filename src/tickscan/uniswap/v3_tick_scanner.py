from tickscan.constants import MAX_UINT256, MIN_UINT256
from tickscan.exceptions import UpstreamLookupFailure
from tickscan.logging import logger
from tickscan.types.aliases import BitmapWord, Tick, Word
from tickscan.uniswap.v3_libraries.price_math import MAX_TICK, MIN_TICK
from tickscan.uniswap.v3_libraries.tick_bitmap import decode_word, word_range, word_start_tick
from tickscan.uniswap.v3_tick_fetcher import BatchedTickFetcher
from tickscan.uniswap.v3_types import BitmapLookup, TickLookup, TickWindow


class TickBitmapScanner:
    """
    Find the initialized ticks of a V3 pool by reading its tick bitmap, then retrieve the tick
    records for each.

    Bitmap words and tick records are both read through the batched fetcher. A word that cannot be
    read, or that is not a valid uint256, is treated as empty.
    """

    def __init__(
        self,
        bitmap_lookup: BitmapLookup,
        tick_lookup: TickLookup,
        fetcher: BatchedTickFetcher | None = None,
        *,
        show_progress: bool = False,
    ) -> None:
        self._bitmap_lookup = bitmap_lookup
        self._tick_lookup = tick_lookup
        self.fetcher = fetcher if fetcher is not None else BatchedTickFetcher()
        self.show_progress = show_progress

    async def _get_checked_bitmap(self, word: Word) -> BitmapWord:
        bitmap = await self._bitmap_lookup(word)
        if not (MIN_UINT256 <= bitmap <= MAX_UINT256):
            raise UpstreamLookupFailure(key=word, reason=f"bitmap {bitmap} is not a valid uint256")
        return bitmap

    async def get_initialized_ticks(
        self,
        tick_spacing: int,
        min_tick: Tick = MIN_TICK,
        max_tick: Tick = MAX_TICK,
    ) -> tuple[Tick, ...]:
        """
        Get the ascending initialized ticks between `min_tick` and `max_tick`, inclusive.
        """

        min_word, max_word = word_range(min_tick, max_tick, tick_spacing)
        words = range(min_word, max_word + 1)

        bitmaps: list[BitmapWord] = await self.fetcher.fetch(
            keys=words,
            lookup=self._get_checked_bitmap,
            fallback=lambda _: 0,
            show_progress=self.show_progress,
            description="Fetching tick bitmap",
        )

        initialized_ticks: list[Tick] = []
        for word, bitmap in zip(words, bitmaps, strict=True):
            if bitmap == 0:
                continue
            initialized_ticks.extend(
                tick
                for tick in decode_word(
                    bitmap=bitmap,
                    word_start_tick=word_start_tick(word, tick_spacing),
                    tick_spacing=tick_spacing,
                )
                if min_tick <= tick <= max_tick
            )

        logger.info(
            f"Found {len(initialized_ticks)} initialized ticks in {len(words)} bitmap words "
            f"(words {min_word} to {max_word})"
        )
        return tuple(initialized_ticks)

    async def get_all_ticks(
        self,
        tick_spacing: int,
        min_tick: Tick = MIN_TICK,
        max_tick: Tick = MAX_TICK,
    ) -> TickWindow:
        """
        Retrieve the records for all initialized ticks between `min_tick` and `max_tick`.
        """

        initialized_ticks = await self.get_initialized_ticks(
            tick_spacing=tick_spacing,
            min_tick=min_tick,
            max_tick=max_tick,
        )
        if not initialized_ticks:
            return ()

        return await self.fetcher.retrieve(
            initialized_ticks,
            self._tick_lookup,
            show_progress=self.show_progress,
        )


async def get_all_ticks(
    bitmap_lookup: BitmapLookup,
    tick_lookup: TickLookup,
    tick_spacing: int,
    fetcher: BatchedTickFetcher | None = None,
) -> TickWindow:
    """
    Retrieve the records for every initialized tick of a pool across the full tick range.
    """

    return await TickBitmapScanner(
        bitmap_lookup=bitmap_lookup,
        tick_lookup=tick_lookup,
        fetcher=fetcher,
    ).get_all_ticks(tick_spacing=tick_spacing)
