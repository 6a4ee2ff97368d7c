from tickscan.exceptions.base import TickscanError


class LiquidityPoolError(TickscanError):
    """
    Exception raised inside liquidity pool helpers.
    """
