"""
Rate-limited batch retrieval of per-key values from a remote lookup.

Keys are split into consecutive batches. The lookups in a batch run concurrently and are awaited
as a group, and a fixed delay is awaited between batches to protect a rate-limited upstream. A
failed lookup is logged and replaced with a fallback value, so the output always holds one value
per input key, in input order. `UpstreamUnavailable` is the only lookup error that propagates.

Both suspension points honor task cancellation, so wrapping a retrieval in a task (or a timeout)
allows the caller to abort a long scan without issuing the remaining batches.
"""

import asyncio
import itertools
from collections.abc import Awaitable, Callable, Sequence

import tqdm

from tickscan.config import settings
from tickscan.exceptions import InvalidInput, UpstreamUnavailable
from tickscan.logging import logger
from tickscan.types.aliases import Tick
from tickscan.uniswap.v3_types import TickLookup, UniswapV3TickRecord

type Sleeper = Callable[[float], Awaitable[None]]


def _check_batch_parameters(batch_size: int, batch_delay: float) -> None:
    if batch_size < 1:
        raise InvalidInput(message=f"Batch size must be at least 1, got {batch_size}")
    if batch_delay < 0:
        raise InvalidInput(message=f"Batch delay cannot be negative, got {batch_delay}")


async def fetch_in_batches[K, V](
    keys: Sequence[K],
    lookup: Callable[[K], Awaitable[V]],
    fallback: Callable[[K], V],
    batch_size: int,
    batch_delay: float,
    sleep: Sleeper = asyncio.sleep,
    *,
    show_progress: bool = False,
    description: str = "Fetching",
) -> list[V]:
    """
    Look up every key, at most `batch_size` at a time, waiting `batch_delay` seconds between
    batches. A key whose lookup raises is mapped to `fallback(key)`.

    If `show_progress` is set, a progress bar advances as each batch completes.
    """

    _check_batch_parameters(batch_size, batch_delay)

    async def _lookup_or_fallback(key: K) -> V:
        try:
            return await lookup(key)
        except UpstreamUnavailable:
            raise
        except Exception as exc:
            logger.warning(f"Failed to retrieve value for key {key}: {exc!r}")
            return fallback(key)

    results: list[V] = []
    batches = list(itertools.batched(keys, batch_size))
    with tqdm.tqdm(
        total=len(keys),
        desc=description,
        bar_format="{desc}: {percentage:3.1f}% |{bar}| {n_fmt}/{total_fmt}",
        leave=False,
        disable=not show_progress,
    ) as pbar:
        for batch_number, batch in enumerate(batches, start=1):
            # The task group cancels the remaining lookups if one raises UpstreamUnavailable
            try:
                async with asyncio.TaskGroup() as task_group:
                    tasks = [task_group.create_task(_lookup_or_fallback(key)) for key in batch]
            except ExceptionGroup as exc_group:
                raise exc_group.exceptions[0]  # noqa: B904
            results.extend(task.result() for task in tasks)

            pbar.update(len(batch))
            logger.debug(f"Completed batch {batch_number}/{len(batches)} ({len(batch)} lookups)")

            if batch_number != len(batches):
                await sleep(batch_delay)

    return results


async def retrieve_ticks_in_batches(
    ticks: Sequence[Tick],
    lookup: TickLookup,
    batch_size: int,
    batch_delay: float,
    sleep: Sleeper = asyncio.sleep,
    *,
    show_progress: bool = False,
) -> tuple[UniswapV3TickRecord, ...]:
    """
    Retrieve the record for each tick, substituting an empty record for any failed lookup.
    """

    records = await fetch_in_batches(
        keys=ticks,
        lookup=lookup,
        fallback=UniswapV3TickRecord.empty,
        batch_size=batch_size,
        batch_delay=batch_delay,
        sleep=sleep,
        show_progress=show_progress,
        description="Fetching ticks",
    )

    # Records are always tagged with the index that was requested
    return tuple(
        record if record.tick == tick else record.model_copy(update={"tick": tick})
        for tick, record in zip(ticks, records, strict=True)
    )


class BatchedTickFetcher:
    """
    Batch retrieval with a fixed batch size and inter-batch delay. The defaults are taken from
    `settings.fetching`.
    """

    def __init__(
        self,
        batch_size: int | None = None,
        batch_delay: float | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.batch_size = settings.fetching.batch_size if batch_size is None else batch_size
        self.batch_delay = settings.fetching.batch_delay if batch_delay is None else batch_delay
        _check_batch_parameters(self.batch_size, self.batch_delay)
        self._sleep = sleep

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"{self.__class__.__name__}(batch_size={self.batch_size}, "
            f"batch_delay={self.batch_delay})"
        )

    async def retrieve(
        self,
        ticks: Sequence[Tick],
        lookup: TickLookup,
        *,
        show_progress: bool = False,
    ) -> tuple[UniswapV3TickRecord, ...]:
        return await retrieve_ticks_in_batches(
            ticks=ticks,
            lookup=lookup,
            batch_size=self.batch_size,
            batch_delay=self.batch_delay,
            sleep=self._sleep,
            show_progress=show_progress,
        )

    async def fetch[K, V](
        self,
        keys: Sequence[K],
        lookup: Callable[[K], Awaitable[V]],
        fallback: Callable[[K], V],
        *,
        show_progress: bool = False,
        description: str = "Fetching",
    ) -> list[V]:
        return await fetch_in_batches(
            keys=keys,
            lookup=lookup,
            fallback=fallback,
            batch_size=self.batch_size,
            batch_delay=self.batch_delay,
            sleep=self._sleep,
            show_progress=show_progress,
            description=description,
        )
