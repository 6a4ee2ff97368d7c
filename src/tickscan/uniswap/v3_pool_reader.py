import asyncio
from typing import Any, cast

import tenacity
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress
from eth_utils.address import to_checksum_address
from web3 import AsyncBaseProvider, AsyncWeb3
from web3.exceptions import ContractLogicError, Web3Exception
from web3.types import BlockIdentifier

from tickscan.config import settings
from tickscan.connection import get_async_web3
from tickscan.exceptions import LiquidityPoolError, UpstreamLookupFailure, UpstreamUnavailable
from tickscan.functions import call_function_async
from tickscan.logging import logger
from tickscan.types.aliases import BitmapWord, BlockNumber, Tick, Word
from tickscan.uniswap.v3_types import UniswapV3PoolSnapshot, UniswapV3TickRecord


class UniswapV3PoolReader:
    """
    Read the state of a Uniswap V3 pool contract through an `AsyncWeb3` connection.

    All reads are made against a single block. If `block_identifier` is not given, the block is
    fixed by the first call to `get_snapshot`, so tick and bitmap reads that follow observe the same
    state as the snapshot.

    A contract revert or undecodable response for a single tick or word raises
    `UpstreamLookupFailure`; a transport failure raises `UpstreamUnavailable`.
    """

    SLOT0_STRUCT_TYPES = ["uint160", "int24", "uint16", "uint16", "uint16", "uint8", "bool"]
    TICK_STRUCT_TYPES = [
        "uint128",
        "int128",
        "uint256",
        "uint256",
        "int56",
        "uint160",
        "uint32",
        "bool",
    ]

    def __init__(
        self,
        address: str,
        w3: AsyncWeb3[AsyncBaseProvider] | None = None,
        block_identifier: BlockNumber | None = None,
        lookup_retries: int | None = None,
    ) -> None:
        self.address: ChecksumAddress = to_checksum_address(address)
        self._w3 = w3 if w3 is not None else get_async_web3()
        self.block_number = block_identifier
        self.lookup_retries = (
            settings.fetching.lookup_retries if lookup_retries is None else lookup_retries
        )

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(address={self.address}, block={self.block_number})"

    async def _call(
        self,
        key: int | None,
        address: ChecksumAddress,
        function_prototype: str,
        function_arguments: list[Any] | None,
        return_types: list[str],
        block_identifier: BlockIdentifier | None,
    ) -> tuple[Any, ...]:
        retrier = tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(1 + self.lookup_retries),
            wait=tenacity.wait_exponential_jitter(max=5),
            # A revert will not succeed on a later attempt
            retry=(
                tenacity.retry_if_exception_type(Web3Exception)
                & tenacity.retry_if_not_exception_type(ContractLogicError)
            ),
            reraise=True,
        )

        try:
            return await retrier(
                call_function_async,
                w3=self._w3,
                address=address,
                function_prototype=function_prototype,
                function_arguments=function_arguments,
                return_types=return_types,
                block_identifier=block_identifier,
            )
        except (OSError, TimeoutError) as exc:
            raise UpstreamUnavailable(reason=f"{function_prototype} failed: {exc!r}") from exc
        except (ContractLogicError, DecodingError, Web3Exception) as exc:
            if key is None:
                raise LiquidityPoolError(
                    message=f"Could not read {function_prototype} from {address}"
                ) from exc
            raise UpstreamLookupFailure(key=key, reason=repr(exc)) from exc

    async def get_snapshot(self) -> UniswapV3PoolSnapshot:
        """
        Read the pool's price, tick, liquidity and immutable values from a single block.
        """

        if self.block_number is None:
            try:
                self.block_number = await self._w3.eth.get_block_number()
            except (OSError, TimeoutError) as exc:
                raise UpstreamUnavailable(reason=f"Could not fetch block number: {exc!r}") from exc

        block_number = self.block_number

        (
            (sqrt_price_x96, tick, *_),
            (liquidity,),
            (tick_spacing,),
            (fee,),
            (token0,),
            (token1,),
        ) = await asyncio.gather(
            self._call(None, self.address, "slot0()", None, self.SLOT0_STRUCT_TYPES, block_number),
            self._call(None, self.address, "liquidity()", None, ["uint128"], block_number),
            self._call(None, self.address, "tickSpacing()", None, ["int24"], block_number),
            self._call(None, self.address, "fee()", None, ["uint24"], block_number),
            self._call(None, self.address, "token0()", None, ["address"], block_number),
            self._call(None, self.address, "token1()", None, ["address"], block_number),
        )

        (decimals0,), (decimals1,) = await asyncio.gather(
            self._call(
                None, to_checksum_address(token0), "decimals()", None, ["uint8"], block_number
            ),
            self._call(
                None, to_checksum_address(token1), "decimals()", None, ["uint8"], block_number
            ),
        )

        snapshot = UniswapV3PoolSnapshot(
            address=self.address,
            block_number=block_number,
            sqrt_price_x96=cast("int", sqrt_price_x96),
            tick=cast("int", tick),
            tick_spacing=cast("int", tick_spacing),
            liquidity=cast("int", liquidity),
            fee=cast("int", fee),
            decimals0=cast("int", decimals0),
            decimals1=cast("int", decimals1),
        )
        logger.debug(f"Read snapshot for pool {self.address} at block {block_number}: {snapshot}")
        return snapshot

    async def get_tick(self, tick: Tick) -> UniswapV3TickRecord:
        (
            liquidity_gross,
            liquidity_net,
            fee_growth_outside0_x128,
            fee_growth_outside1_x128,
            tick_cumulative_outside,
            seconds_per_liquidity_outside_x128,
            seconds_outside,
            initialized,
        ) = await self._call(
            tick,
            self.address,
            "ticks(int24)",
            [tick],
            self.TICK_STRUCT_TYPES,
            self.block_number,
        )

        return UniswapV3TickRecord(
            tick=tick,
            liquidity_gross=liquidity_gross,
            liquidity_net=liquidity_net,
            fee_growth_outside0_x128=fee_growth_outside0_x128,
            fee_growth_outside1_x128=fee_growth_outside1_x128,
            tick_cumulative_outside=tick_cumulative_outside,
            seconds_per_liquidity_outside_x128=seconds_per_liquidity_outside_x128,
            seconds_outside=seconds_outside,
            initialized=initialized,
        )

    async def get_tick_bitmap(self, word: Word) -> BitmapWord:
        (bitmap_at_word,) = await self._call(
            word,
            self.address,
            "tickBitmap(int16)",
            [word],
            ["uint256"],
            self.block_number,
        )
        return cast("int", bitmap_at_word)
