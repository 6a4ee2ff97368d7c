import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

import click
from pydantic import HttpUrl, WebsocketUrl
from web3 import (
    AsyncBaseProvider,
    AsyncHTTPProvider,
    AsyncIPCProvider,
    AsyncWeb3,
    WebSocketProvider,
)

from tickscan.config import CONFIG_FILE, settings
from tickscan.connection import set_async_web3
from tickscan.exceptions import TickscanError
from tickscan.formatting import format_large_number, format_tick_table
from tickscan.logging import logger
from tickscan.uniswap.v3_liquidity_curve import calculate_liquidity_utilization
from tickscan.uniswap.v3_pool_reader import UniswapV3PoolReader
from tickscan.uniswap.v3_tick_fetcher import BatchedTickFetcher
from tickscan.uniswap.v3_tick_service import UniswapV3TickService, is_common_quote_token


async def get_async_web3_from_config(chain_id: int) -> AsyncWeb3[AsyncBaseProvider]:
    w3: AsyncWeb3[AsyncBaseProvider]
    match endpoint := settings.rpc.get(chain_id):
        case HttpUrl():
            w3 = AsyncWeb3(AsyncHTTPProvider(str(endpoint)))
        case WebsocketUrl():
            w3 = AsyncWeb3(WebSocketProvider(str(endpoint)))
            await w3.provider.connect()
        case Path():
            w3 = AsyncWeb3(AsyncIPCProvider(str(endpoint)))
        case None:
            msg = f"Chain ID {chain_id} does not have an RPC defined in config file {CONFIG_FILE}"
            raise click.ClickException(msg)

    if (connected_chain_id := await w3.eth.chain_id) != chain_id:
        await w3.provider.disconnect()
        msg = (
            f"The chain ID ({connected_chain_id}) at endpoint {endpoint} does not match "
            f"the chain ID ({chain_id}) defined in the config file."
        )
        raise click.ClickException(msg)

    return w3


def run_with_connection(chain_id: int, command: Callable[[], Awaitable[str]]) -> str:
    """
    Connect to the configured endpoint for the chain, register it as the default connection, and
    run the command. The provider is disconnected before the event loop closes.
    """

    async def _run() -> str:
        w3 = await get_async_web3_from_config(chain_id)
        try:
            await set_async_web3(w3)
            return await command()
        finally:
            await w3.provider.disconnect()

    try:
        return asyncio.run(_run())
    except TickscanError as exc:
        raise click.ClickException(str(exc)) from exc


def _build_service(
    pool_address: str,
    batch_size: int | None,
    batch_delay: float | None,
    *,
    show_progress: bool = False,
) -> UniswapV3TickService:
    return UniswapV3TickService(
        source=UniswapV3PoolReader(address=pool_address),
        fetcher=BatchedTickFetcher(batch_size=batch_size, batch_delay=batch_delay),
        show_progress=show_progress,
    )


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Log each batch and lookup failure.")
def cli(verbose: bool) -> None:
    if verbose:
        logger.setLevel(logging.DEBUG)


@cli.command()
@click.argument("pool_address")
@click.option("--chain-id", type=int, default=1, show_default=True)
@click.option("--count", "tick_count", type=int, default=None, help="Number of ticks to retrieve.")
@click.option("--batch-size", type=int, default=None)
@click.option("--batch-delay", type=float, default=None, help="Seconds between batches.")
@click.option(
    "--symbols",
    nargs=2,
    default=("TOKEN0", "TOKEN1"),
    show_default=True,
    help="Symbols for token0 and token1.",
)
@click.option(
    "--quote-zero/--quote-one",
    "zero_is_quote",
    default=None,
    help="Quote prices in token0 or token1. Defaults to token0 if it is a common stablecoin.",
)
def ticks(
    pool_address: str,
    chain_id: int,
    tick_count: int | None,
    batch_size: int | None,
    batch_delay: float | None,
    symbols: tuple[str, str],
    zero_is_quote: bool | None,
) -> None:
    """
    Show the ticks around the current tick of a V3 pool, with the liquidity curve.
    """

    symbol0, symbol1 = symbols
    if zero_is_quote is None:
        zero_is_quote = is_common_quote_token(symbol0)
    base_symbol, quote_symbol = (symbol1, symbol0) if zero_is_quote else (symbol0, symbol1)

    async def _show_ticks() -> str:
        service = _build_service(pool_address, batch_size, batch_delay)
        result = await service.analyze(tick_count=tick_count)
        utilization = calculate_liquidity_utilization(result.snapshot.liquidity, result.ticks)
        return "\n".join(
            (
                format_tick_table(result, base_symbol, quote_symbol, zero_is_quote),
                "",
                f"Current Liquidity: {format_large_number(result.snapshot.liquidity)}",
                f"Liquidity Utilization: {utilization:.4f}",
            )
        )

    click.echo(run_with_connection(chain_id, _show_ticks))


@cli.command()
@click.argument("pool_address")
@click.option("--chain-id", type=int, default=1, show_default=True)
@click.option("--batch-size", type=int, default=None)
@click.option("--batch-delay", type=float, default=None, help="Seconds between batches.")
def scan(
    pool_address: str,
    chain_id: int,
    batch_size: int | None,
    batch_delay: float | None,
) -> None:
    """
    Find every initialized tick of a V3 pool from its tick bitmap.
    """

    async def _scan() -> str:
        service = _build_service(pool_address, batch_size, batch_delay, show_progress=True)
        snapshot = await service.get_snapshot()
        all_ticks = await service.get_all_ticks(snapshot=snapshot)

        lines = [
            f"Pool {snapshot.address} @ block {snapshot.block_number}",
            f"Initialized ticks: {len(all_ticks)}",
        ]
        lines.extend(
            f"{record.tick:>8} "
            f"gross={format_large_number(record.liquidity_gross):>10} "
            f"net={format_large_number(record.liquidity_net):>10}"
            for record in all_ticks
        )
        return "\n".join(lines)

    click.echo(run_with_connection(chain_id, _scan))
