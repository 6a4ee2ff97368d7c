import logging
from collections.abc import Callable, Iterable

import pytest

from tickscan.connection import async_connection_manager
from tickscan.exceptions import UpstreamLookupFailure
from tickscan.logging import logger
from tickscan.types.aliases import BitmapWord, Tick, Word
from tickscan.uniswap.v3_types import UniswapV3PoolSnapshot, UniswapV3TickRecord

POOL_ADDRESS = "0x88e6A0c2dDD26FEEb64F039a2c41296FcB3f5640"


class FakePoolSource:
    """
    An in-memory pool state source that records every lookup and fails on request.
    """

    def __init__(
        self,
        snapshot: UniswapV3PoolSnapshot,
        bitmaps: dict[Word, BitmapWord] | None = None,
        ticks: dict[Tick, UniswapV3TickRecord] | None = None,
        failing_ticks: Iterable[Tick] = (),
        failing_words: Iterable[Word] = (),
    ) -> None:
        self.snapshot = snapshot
        self.bitmaps = bitmaps if bitmaps is not None else {}
        self.ticks = ticks if ticks is not None else {}
        self.failing_ticks = set(failing_ticks)
        self.failing_words = set(failing_words)
        self.tick_calls: list[Tick] = []
        self.word_calls: list[Word] = []
        self.snapshot_calls = 0

    async def get_snapshot(self) -> UniswapV3PoolSnapshot:
        self.snapshot_calls += 1
        return self.snapshot

    async def get_tick(self, tick: Tick) -> UniswapV3TickRecord:
        self.tick_calls.append(tick)
        if tick in self.failing_ticks:
            raise UpstreamLookupFailure(key=tick, reason="execution reverted")
        return self.ticks.get(tick, UniswapV3TickRecord.empty(tick))

    async def get_tick_bitmap(self, word: Word) -> BitmapWord:
        self.word_calls.append(word)
        if word in self.failing_words:
            raise UpstreamLookupFailure(key=word, reason="execution reverted")
        return self.bitmaps.get(word, 0)


class RecordingSleep:
    """
    A replacement for `asyncio.sleep` that returns immediately and records each delay.
    """

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(autouse=True)
def _initialize_and_reset_after_each_test():
    """
    Before each test, clear/reset global values and singletons
    """
    async_connection_manager.connections.clear()
    async_connection_manager._default_chain_id = None


@pytest.fixture(scope="session", autouse=True)
def _set_tickscan_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_snapshot() -> Callable[..., UniswapV3PoolSnapshot]:
    def _make_snapshot(**overrides) -> UniswapV3PoolSnapshot:
        values = {
            "address": POOL_ADDRESS,
            "block_number": 20_000_000,
            "sqrt_price_x96": 2**96,
            "tick": 0,
            "tick_spacing": 60,
            "liquidity": 1_000,
            "fee": 3000,
            "decimals0": 18,
            "decimals1": 18,
        }
        values.update(overrides)
        return UniswapV3PoolSnapshot(**values)

    return _make_snapshot


@pytest.fixture
def fake_pool_source() -> type[FakePoolSource]:
    return FakePoolSource


def net_record(tick: Tick, liquidity_net: int, liquidity_gross: int | None = None):
    return UniswapV3TickRecord(
        tick=tick,
        liquidity_net=liquidity_net,
        liquidity_gross=abs(liquidity_net) if liquidity_gross is None else liquidity_gross,
    )


@pytest.fixture
def make_record() -> Callable[..., UniswapV3TickRecord]:
    return net_record
