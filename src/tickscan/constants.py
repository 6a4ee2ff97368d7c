import typing

__all__ = (
    "MAX_INT24",
    "MAX_INT56",
    "MAX_INT128",
    "MAX_UINT32",
    "MAX_UINT128",
    "MAX_UINT160",
    "MAX_UINT256",
    "MIN_INT24",
    "MIN_INT56",
    "MIN_INT128",
    "MIN_UINT32",
    "MIN_UINT128",
    "MIN_UINT160",
    "MIN_UINT256",
)


def _min_uint(_: int) -> int:
    return 0


def _max_uint(bits: int) -> int:
    return typing.cast("int", 2**bits - 1)


def _min_int(bits: int) -> int:
    return typing.cast("int", -(2 ** (bits - 1)))


def _max_int(bits: int) -> int:
    return typing.cast("int", (2 ** (bits - 1)) - 1)


MIN_INT24 = _min_int(24)
MAX_INT24 = _max_int(24)

MIN_INT56 = _min_int(56)
MAX_INT56 = _max_int(56)

MIN_INT128 = _min_int(128)
MAX_INT128 = _max_int(128)

MIN_UINT32 = _min_uint(32)
MAX_UINT32 = _max_uint(32)

MIN_UINT128 = _min_uint(128)
MAX_UINT128 = _max_uint(128)

MIN_UINT160 = _min_uint(160)
MAX_UINT160 = _max_uint(160)

MIN_UINT256 = _min_uint(256)
MAX_UINT256 = _max_uint(256)
