from typing import Annotated

from pydantic import Field

from tickscan.constants import (
    MAX_INT24,
    MAX_INT56,
    MAX_INT128,
    MAX_UINT32,
    MAX_UINT128,
    MAX_UINT160,
    MAX_UINT256,
    MIN_INT24,
    MIN_INT56,
    MIN_INT128,
    MIN_UINT32,
    MIN_UINT128,
    MIN_UINT160,
    MIN_UINT256,
)

type ValidatedInt24 = Annotated[int, Field(strict=True, ge=MIN_INT24, le=MAX_INT24)]
type ValidatedInt56 = Annotated[int, Field(strict=True, ge=MIN_INT56, le=MAX_INT56)]
type ValidatedInt128 = Annotated[int, Field(strict=True, ge=MIN_INT128, le=MAX_INT128)]

type ValidatedUint32 = Annotated[int, Field(strict=True, ge=MIN_UINT32, le=MAX_UINT32)]
type ValidatedUint128 = Annotated[int, Field(strict=True, ge=MIN_UINT128, le=MAX_UINT128)]
type ValidatedUint160 = Annotated[int, Field(strict=True, ge=MIN_UINT160, le=MAX_UINT160)]
type ValidatedUint256 = Annotated[int, Field(strict=True, ge=MIN_UINT256, le=MAX_UINT256)]
