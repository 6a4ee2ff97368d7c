from typing import Any

import eth_abi.abi
import pytest
from eth_utils.address import to_checksum_address
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError, Web3Exception

from tickscan.connection import async_connection_manager
from tickscan.exceptions import (
    LiquidityPoolError,
    TickscanValueError,
    UpstreamLookupFailure,
    UpstreamUnavailable,
)
from tickscan.functions import encode_function_calldata
from tickscan.uniswap.v3_pool_reader import UniswapV3PoolReader
from tickscan.uniswap.v3_types import UniswapV3TickRecord

POOL_ADDRESS = to_checksum_address("0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640")
USDC_ADDRESS = to_checksum_address("0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48")
WETH_ADDRESS = to_checksum_address("0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
BLOCK_NUMBER = 20_000_000


class FakeEth:
    """
    Responds to `eth_call` requests with ABI-encoded results keyed by (address, calldata).
    """

    def __init__(self) -> None:
        self.responses: dict[tuple[str, bytes], Any] = {}
        self.calls: list[tuple[str, bytes, Any]] = []
        self.block_number = BLOCK_NUMBER

    def respond(
        self,
        address: str,
        function_prototype: str,
        result: Any,
        function_arguments: list[Any] | None = None,
    ) -> None:
        calldata = encode_function_calldata(function_prototype, function_arguments)
        self.responses[(address, calldata)] = result

    async def call(self, transaction, block_identifier=None) -> HexBytes:
        key = (transaction["to"], transaction["data"])
        self.calls.append((*key, block_identifier))
        result = self.responses[key]
        if isinstance(result, BaseException):
            raise result
        if callable(result):
            return result()
        return result

    async def get_block_number(self) -> int:
        return self.block_number


class FakeWeb3:
    def __init__(self) -> None:
        self.eth = FakeEth()


def _encode(types: list[str], values: list[Any]) -> HexBytes:
    return HexBytes(eth_abi.abi.encode(types, values))


@pytest.fixture
def fake_w3() -> FakeWeb3:
    w3 = FakeWeb3()
    w3.eth.respond(
        POOL_ADDRESS,
        "slot0()",
        _encode(
            UniswapV3PoolReader.SLOT0_STRUCT_TYPES,
            [1_771_595_571_142_957_166_518_320_255_467_520, 195_000, 1, 1, 1, 0, True],
        ),
    )
    w3.eth.respond(POOL_ADDRESS, "liquidity()", _encode(["uint128"], [12_345_678_901_234]))
    w3.eth.respond(POOL_ADDRESS, "tickSpacing()", _encode(["int24"], [10]))
    w3.eth.respond(POOL_ADDRESS, "fee()", _encode(["uint24"], [500]))
    w3.eth.respond(POOL_ADDRESS, "token0()", _encode(["address"], [USDC_ADDRESS]))
    w3.eth.respond(POOL_ADDRESS, "token1()", _encode(["address"], [WETH_ADDRESS]))
    w3.eth.respond(USDC_ADDRESS, "decimals()", _encode(["uint8"], [6]))
    w3.eth.respond(WETH_ADDRESS, "decimals()", _encode(["uint8"], [18]))
    return w3


async def test_get_snapshot(fake_w3: FakeWeb3) -> None:
    reader = UniswapV3PoolReader(address=POOL_ADDRESS.lower(), w3=fake_w3)
    snapshot = await reader.get_snapshot()

    assert snapshot.address == POOL_ADDRESS
    assert snapshot.block_number == BLOCK_NUMBER
    assert snapshot.sqrt_price_x96 == 1_771_595_571_142_957_166_518_320_255_467_520
    assert snapshot.tick == 195_000
    assert snapshot.tick_spacing == 10
    assert snapshot.liquidity == 12_345_678_901_234
    assert snapshot.fee == 500
    assert snapshot.decimals0 == 6
    assert snapshot.decimals1 == 18

    # Every read is pinned to the same block
    assert reader.block_number == BLOCK_NUMBER
    assert {block for *_, block in fake_w3.eth.calls} == {BLOCK_NUMBER}


async def test_block_identifier_is_kept(fake_w3: FakeWeb3) -> None:
    reader = UniswapV3PoolReader(address=POOL_ADDRESS, w3=fake_w3, block_identifier=19_000_000)
    snapshot = await reader.get_snapshot()

    assert snapshot.block_number == 19_000_000
    assert {block for *_, block in fake_w3.eth.calls} == {19_000_000}


async def test_get_tick(fake_w3: FakeWeb3) -> None:
    fake_w3.eth.respond(
        POOL_ADDRESS,
        "ticks(int24)",
        _encode(
            UniswapV3PoolReader.TICK_STRUCT_TYPES,
            [1_000, -250, 2**200, 3**100, -(10**12), 2**150, 1_700_000_000, True],
        ),
        [-600],
    )
    reader = UniswapV3PoolReader(address=POOL_ADDRESS, w3=fake_w3, block_identifier=BLOCK_NUMBER)

    assert await reader.get_tick(-600) == UniswapV3TickRecord(
        tick=-600,
        liquidity_gross=1_000,
        liquidity_net=-250,
        fee_growth_outside0_x128=2**200,
        fee_growth_outside1_x128=3**100,
        tick_cumulative_outside=-(10**12),
        seconds_per_liquidity_outside_x128=2**150,
        seconds_outside=1_700_000_000,
        initialized=True,
    )


async def test_get_tick_bitmap(fake_w3: FakeWeb3) -> None:
    fake_w3.eth.respond(
        POOL_ADDRESS, "tickBitmap(int16)", _encode(["uint256"], [(1 << 10) | (1 << 255)]), [-3]
    )
    reader = UniswapV3PoolReader(address=POOL_ADDRESS, w3=fake_w3, block_identifier=BLOCK_NUMBER)

    assert await reader.get_tick_bitmap(-3) == (1 << 10) | (1 << 255)


async def test_reverted_tick_lookup(fake_w3: FakeWeb3) -> None:
    fake_w3.eth.respond(
        POOL_ADDRESS, "ticks(int24)", ContractLogicError("execution reverted"), [60]
    )
    reader = UniswapV3PoolReader(
        address=POOL_ADDRESS, w3=fake_w3, block_identifier=BLOCK_NUMBER, lookup_retries=3
    )

    with pytest.raises(UpstreamLookupFailure) as exc_info:
        await reader.get_tick(60)
    assert exc_info.value.key == 60

    # Reverts are not retried
    assert len(fake_w3.eth.calls) == 1


async def test_undecodable_bitmap_lookup(fake_w3: FakeWeb3) -> None:
    fake_w3.eth.respond(POOL_ADDRESS, "tickBitmap(int16)", HexBytes(b""), [7])
    reader = UniswapV3PoolReader(address=POOL_ADDRESS, w3=fake_w3, block_identifier=BLOCK_NUMBER)

    with pytest.raises(UpstreamLookupFailure) as exc_info:
        await reader.get_tick_bitmap(7)
    assert exc_info.value.key == 7


async def test_transient_failure_is_retried(fake_w3: FakeWeb3) -> None:
    responses = [Web3Exception("header not found"), _encode(["uint256"], [1])]

    def _next_response() -> HexBytes:
        response = responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    fake_w3.eth.respond(POOL_ADDRESS, "tickBitmap(int16)", _next_response, [0])
    reader = UniswapV3PoolReader(
        address=POOL_ADDRESS, w3=fake_w3, block_identifier=BLOCK_NUMBER, lookup_retries=1
    )

    assert await reader.get_tick_bitmap(0) == 1
    assert len(fake_w3.eth.calls) == 2


async def test_transport_failure_is_unavailable(fake_w3: FakeWeb3) -> None:
    fake_w3.eth.respond(POOL_ADDRESS, "ticks(int24)", ConnectionRefusedError(), [0])
    reader = UniswapV3PoolReader(address=POOL_ADDRESS, w3=fake_w3, block_identifier=BLOCK_NUMBER)

    with pytest.raises(UpstreamUnavailable):
        await reader.get_tick(0)


async def test_snapshot_failure_is_pool_error(fake_w3: FakeWeb3) -> None:
    fake_w3.eth.respond(POOL_ADDRESS, "tickSpacing()", ContractLogicError("execution reverted"))
    reader = UniswapV3PoolReader(address=POOL_ADDRESS, w3=fake_w3)

    with pytest.raises(LiquidityPoolError):
        await reader.get_snapshot()


async def test_reader_uses_default_connection(fake_w3: FakeWeb3) -> None:
    with pytest.raises(TickscanValueError):
        UniswapV3PoolReader(address=POOL_ADDRESS)

    async_connection_manager.connections[1] = fake_w3
    async_connection_manager.set_default_chain(1)

    reader = UniswapV3PoolReader(address=POOL_ADDRESS)
    assert (await reader.get_snapshot()).tick == 195_000
