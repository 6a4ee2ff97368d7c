"""
Floating point conversions between ticks, prices and Q64.96 square root prices.

These target analytical display, not bit-exact reproduction of the pool's fixed point math. A
tick's raw price is the token1/token0 ratio in base units; the "human" price adjusts this ratio for
the decimal places of each token.
"""

import math
from fractions import Fraction

from tickscan.constants import MAX_UINT160, MIN_UINT160
from tickscan.exceptions import InvalidInput

MIN_TICK = -887272
MAX_TICK = -MIN_TICK
TICK_BASE = 1.0001
Q96 = 2**96

_LOG_TICK_BASE = math.log(TICK_BASE)


def _check_tick(tick: int) -> None:
    if not (MIN_TICK <= tick <= MAX_TICK):
        raise InvalidInput(message=f"Tick {tick} outside of range [{MIN_TICK}, {MAX_TICK}]")


def _check_price(price: float) -> None:
    if not math.isfinite(price) or price <= 0:
        raise InvalidInput(message=f"Price must be finite and positive, got {price}")


def _decimal_factor(decimals0: int, decimals1: int) -> float:
    # The exponent is negative when token1 has fewer decimal places than token0
    return 10.0 ** (decimals1 - decimals0)


def tick_to_price(tick: int) -> float:
    """
    Calculate the raw token1/token0 price at the given tick.
    """

    _check_tick(tick)
    return TICK_BASE**tick


def price_to_tick(price: float) -> int:
    """
    Calculate the greatest tick with a raw price at or below the given price.

    Floating point rounding may place the result one tick away from the exact value.
    """

    _check_price(price)
    return math.floor(math.log(price) / _LOG_TICK_BASE)


def tick_to_human_price(tick: int, decimals0: int, decimals1: int) -> float:
    """
    Calculate the price of one whole token0, expressed in whole units of token1.
    """

    return tick_to_price(tick) / _decimal_factor(decimals0, decimals1)


def tick_to_price_in_quote_tokens(
    tick: int,
    decimals0: int,
    decimals1: int,
    zero_is_quote: bool,
) -> float:
    """
    Calculate the price at the given tick in quote token units per base token unit.

    If `zero_is_quote` is True, token0 is the quote token and the token1/token0 price is inverted.
    """

    price = tick_to_human_price(tick, decimals0, decimals1)
    return 1 / price if zero_is_quote else price


def exchange_rate_from_sqrt_price_x96(sqrt_price_x96: int) -> Fraction:
    # ref: https://blog.uniswap.org/uniswap-v3-math-primer
    return Fraction(sqrt_price_x96**2, 2**192)


def sqrt_price_x96_to_price(sqrt_price_x96: int, decimals0: int, decimals1: int) -> float:
    """
    Convert a Q64.96 square root price to the price of one whole token0 in units of token1.
    """

    if not (MIN_UINT160 <= sqrt_price_x96 <= MAX_UINT160):
        raise InvalidInput(message=f"Square root price {sqrt_price_x96} is not a valid uint160")

    return (sqrt_price_x96 / Q96) ** 2 / _decimal_factor(decimals0, decimals1)


def price_to_sqrt_price_x96(price: float, decimals0: int, decimals1: int) -> int:
    """
    Convert the price of one whole token0 in units of token1 to a Q64.96 square root price.
    """

    _check_price(price)

    # Taking the roots separately keeps the intermediate product in range for extreme prices
    sqrt_price_x96 = math.sqrt(price) * math.sqrt(_decimal_factor(decimals0, decimals1)) * Q96
    if not math.isfinite(sqrt_price_x96):
        raise InvalidInput(message=f"Price {price} is too large to express as a square root price")

    return math.floor(sqrt_price_x96)
