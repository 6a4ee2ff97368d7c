from functools import cache

from tickscan.constants import MAX_UINT256, MIN_UINT256
from tickscan.exceptions import InvalidInput
from tickscan.uniswap.v3_libraries.price_math import MAX_TICK, MIN_TICK

TICK_BITMAP_WORD_SIZE = 256


def _check_tick_spacing(tick_spacing: int) -> None:
    if tick_spacing <= 0:
        raise InvalidInput(message=f"Tick spacing must be positive, got {tick_spacing}")


@cache
def position(tick: int) -> tuple[int, int]:
    """
    Computes the position in the tick initialization bitmap for the given tick.

    This function does not account for tick spacing, and ticks must be compressed.
    """
    return (
        tick >> 8,  # word_pos
        tick % 256,  # bit_pos
    )


def tick_to_word(tick: int, tick_spacing: int) -> int:
    """
    Get the index of the bitmap word holding the given tick.
    """

    _check_tick_spacing(tick_spacing)

    # Python rounds down to negative infinity, matching floor(tick / tick_spacing / 256)
    word_pos, _ = position(tick // tick_spacing)
    return word_pos


def word_range(min_tick: int, max_tick: int, tick_spacing: int) -> tuple[int, int]:
    """
    Get the inclusive range of bitmap words covering the ticks between `min_tick` and `max_tick`.
    """

    if min_tick > max_tick:
        raise InvalidInput(message=f"Minimum tick {min_tick} exceeds maximum tick {max_tick}")

    return (
        tick_to_word(min_tick, tick_spacing),
        tick_to_word(max_tick, tick_spacing),
    )


def word_start_tick(word: int, tick_spacing: int) -> int:
    """
    Get the tick represented by the least significant bit of the given word.
    """

    _check_tick_spacing(tick_spacing)
    return word * TICK_BITMAP_WORD_SIZE * tick_spacing


def decode_word(bitmap: int, word_start_tick: int, tick_spacing: int) -> tuple[int, ...]:
    """
    Decode a bitmap word into the initialized ticks it marks, in ascending order.

    Bit `i` (least significant first) marks the tick at `word_start_tick + i * tick_spacing`. Ticks
    outside of the valid tick range are dropped.
    """

    _check_tick_spacing(tick_spacing)
    if not (MIN_UINT256 <= bitmap <= MAX_UINT256):
        raise InvalidInput(message=f"Bitmap {bitmap} is not a valid uint256")

    if bitmap == 0:
        return ()

    return tuple(
        tick
        for bit_pos in range(bitmap.bit_length())
        if (bitmap >> bit_pos) & 1
        if MIN_TICK <= (tick := word_start_tick + bit_pos * tick_spacing) <= MAX_TICK
    )


def align_to_tick_spacing(tick: int, tick_spacing: int) -> int:
    """
    Round the tick down to the nearest multiple of the tick spacing.
    """

    _check_tick_spacing(tick_spacing)
    return (tick // tick_spacing) * tick_spacing


def calculate_tick_indices(current_tick: int, tick_spacing: int, tick_count: int) -> list[int]:
    """
    Calculate a contiguous, ascending window of aligned ticks centered on the current tick.

    The window holds `tick_count // 2` ticks on either side of the aligned current tick, excluding
    any that fall outside of the valid tick range.
    """

    if tick_count < 0:
        raise InvalidInput(message=f"Tick count cannot be negative, got {tick_count}")

    aligned_tick = align_to_tick_spacing(current_tick, tick_spacing)
    half_count = tick_count // 2

    return [
        tick
        for i in range(-half_count, half_count + 1)
        if MIN_TICK <= (tick := aligned_tick + i * tick_spacing) <= MAX_TICK
    ]
