import dataclasses
import math
from collections.abc import Awaitable, Callable
from typing import Protocol, Self

import pydantic
from eth_typing import ChecksumAddress

from tickscan.types.aliases import (
    BitmapWord,
    BlockNumber,
    Liquidity,
    SqrtPriceX96,
    Tick,
    Word,
)
from tickscan.uniswap.v3_libraries.price_math import (
    price_to_sqrt_price_x96,
    sqrt_price_x96_to_price,
)
from tickscan.validation.evm_values import (
    ValidatedInt24,
    ValidatedInt56,
    ValidatedInt128,
    ValidatedUint32,
    ValidatedUint128,
    ValidatedUint160,
    ValidatedUint256,
)


class UniswapV3TickRecord(pydantic.BaseModel, frozen=True):
    """
    The state stored by a V3 pool for a single tick, as returned by `ticks(int24)`.

    The fee growth and seconds accumulators are carried through unchanged.
    """

    tick: ValidatedInt24
    liquidity_gross: ValidatedUint128
    liquidity_net: ValidatedInt128
    fee_growth_outside0_x128: ValidatedUint256 = 0
    fee_growth_outside1_x128: ValidatedUint256 = 0
    tick_cumulative_outside: ValidatedInt56 = 0
    seconds_per_liquidity_outside_x128: ValidatedUint160 = 0
    seconds_outside: ValidatedUint32 = 0
    initialized: bool = True

    @classmethod
    def empty(cls, tick: Tick) -> Self:
        """
        Build the zero-valued record for a tick with no on-chain data.
        """
        return cls(
            tick=tick,
            liquidity_gross=0,
            liquidity_net=0,
            initialized=False,
        )


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class UniswapV3PoolSnapshot:
    """
    Pool values read from a single block. Take a new snapshot to observe state changes.
    """

    address: ChecksumAddress
    block_number: BlockNumber
    sqrt_price_x96: SqrtPriceX96
    tick: Tick
    tick_spacing: int
    liquidity: Liquidity
    fee: int
    decimals0: int
    decimals1: int

    @property
    def price(self) -> float:
        """
        The price of one whole token0, expressed in whole units of token1.
        """
        return sqrt_price_x96_to_price(self.sqrt_price_x96, self.decimals0, self.decimals1)


type TickWindow = tuple[UniswapV3TickRecord, ...]
type LiquidityCurve = tuple[int, ...]

type TickLookup = Callable[[Tick], Awaitable[UniswapV3TickRecord]]
type BitmapLookup = Callable[[Word], Awaitable[BitmapWord]]


class UniswapV3PoolStateSource(Protocol):
    """
    A minimal protocol allowing the tick service to read pool data from a generic source.

    `get_snapshot` must return values that originate from a single block.
    """

    async def get_snapshot(self) -> UniswapV3PoolSnapshot: ...
    async def get_tick(self, tick: Tick) -> UniswapV3TickRecord: ...
    async def get_tick_bitmap(self, word: Word) -> BitmapWord: ...


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class UniswapV3PriceSummary:
    """
    The current pool price in both directions, in whole token units, and the Q64.96 square root
    price recovered from the decimal-adjusted price.

    The recovered square root price carries the rounding of the float conversion and can be
    compared against the on-chain value to gauge that loss.
    """

    token1_per_token0: float
    token0_per_token1: float
    sqrt_price_x96: SqrtPriceX96

    @classmethod
    def from_snapshot(cls, snapshot: UniswapV3PoolSnapshot) -> Self:
        price = snapshot.price
        if price == 0:
            return cls(token1_per_token0=0.0, token0_per_token1=math.inf, sqrt_price_x96=0)
        return cls(
            token1_per_token0=price,
            token0_per_token1=1 / price,
            sqrt_price_x96=price_to_sqrt_price_x96(price, snapshot.decimals0, snapshot.decimals1),
        )


@dataclasses.dataclass(slots=True, frozen=True)
class TickRetrievalResult:
    snapshot: UniswapV3PoolSnapshot
    ticks: TickWindow
    liquidity_curve: LiquidityCurve
    anchor_index: int | None

    @property
    def price_summary(self) -> UniswapV3PriceSummary:
        return UniswapV3PriceSummary.from_snapshot(self.snapshot)

    @property
    def total_ticks_retrieved(self) -> int:
        return len(self.ticks)
