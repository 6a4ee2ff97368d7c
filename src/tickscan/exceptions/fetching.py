"""
Data fetching exceptions for the tickscan package.

This module contains exceptions raised while reading tick bitmaps, tick records and pool state
from a remote source.
"""

from tickscan.exceptions.base import TickscanError


class FetchingError(TickscanError):
    """
    Base exception for data fetching errors.
    """


class UpstreamLookupFailure(FetchingError):
    """
    Raised when a single tick or bitmap word lookup fails. Batched fetchers recover from this by
    substituting an empty value for the failed key.
    """

    def __init__(self, key: int, reason: str | None = None) -> None:
        """
        Args:
            key: The tick index or bitmap word index that could not be fetched
            reason: An optional description of the underlying failure
        """
        self.key = key
        self.reason = reason

        message = f"Lookup failed for key {key}"
        if reason is not None:
            message += f": {reason}"

        super().__init__(message=message)


class UpstreamUnavailable(FetchingError):
    """
    Raised when the lookup capability itself cannot be used, e.g. the transport is exhausted or
    disconnected. This is never recovered locally and aborts an in-progress scan.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(message=f"Upstream unavailable: {reason}")
