from collections.abc import Sequence

from tickscan.exceptions import InvalidInput
from tickscan.logging import logger
from tickscan.types.aliases import Liquidity, Tick
from tickscan.uniswap.v3_types import LiquidityCurve, UniswapV3TickRecord


def find_closest_tick_index(ticks: Sequence[UniswapV3TickRecord], current_tick: Tick) -> int:
    """
    Find the position of the record nearest to the current tick in an ascending tick window.

    When two records are equally distant, the lower tick is chosen.
    """

    if not ticks:
        raise InvalidInput(message="Cannot find the closest tick in an empty window")

    closest_index = 0
    min_distance = abs(ticks[0].tick - current_tick)
    for i, record in enumerate(ticks[1:], start=1):
        # Strict comparison keeps the first (lowest) of any equally distant ticks
        if (distance := abs(record.tick - current_tick)) < min_distance:
            min_distance = distance
            closest_index = i

    return closest_index


def reconstruct_liquidity_curve(
    ticks: Sequence[UniswapV3TickRecord],
    current_tick: Tick,
    current_liquidity: Liquidity | None,
) -> LiquidityCurve:
    """
    Calculate the in-range liquidity at each tick of an ascending tick window.

    The tick nearest the current tick is assigned the current liquidity. Moving up, each tick's net
    liquidity is added as the price crosses it; moving down, the net liquidity of the tick above is
    removed. The result is an approximation anchored to a single observation of the pool's
    liquidity, and is not authoritative pool state.
    """

    if current_liquidity is None:
        raise InvalidInput(message="Current liquidity is required to anchor the liquidity curve")

    if not ticks:
        return ()

    anchor = find_closest_tick_index(ticks, current_tick)
    logger.debug(
        f"Using closest tick {ticks[anchor].tick} (distance: "
        f"{abs(ticks[anchor].tick - current_tick)}) as reference for current tick {current_tick}"
    )

    curve: list[int] = [0] * len(ticks)
    curve[anchor] = current_liquidity

    for i in range(anchor - 1, -1, -1):
        curve[i] = curve[i + 1] - ticks[i + 1].liquidity_net

    for i in range(anchor + 1, len(ticks)):
        curve[i] = curve[i - 1] + ticks[i].liquidity_net

    return tuple(curve)


def calculate_liquidity_utilization(
    current_liquidity: Liquidity,
    ticks: Sequence[UniswapV3TickRecord],
) -> float:
    """
    Ratio of the pool's active liquidity to the total gross liquidity referencing the window.
    """

    total_liquidity = sum(record.liquidity_gross for record in ticks)
    if total_liquidity == 0:
        return 0.0
    return current_liquidity / total_liquidity
