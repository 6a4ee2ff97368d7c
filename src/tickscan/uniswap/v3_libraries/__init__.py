from . import price_math as PriceMath
from . import tick_bitmap as TickBitmap

__all__ = (
    "PriceMath",
    "TickBitmap",
)
