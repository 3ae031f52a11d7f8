"""Lookup resolution: strategy dispatch and the concurrent fan-out/fan-in."""

from __future__ import annotations

import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, as_completed, wait
from logging import getLogger
from typing import TYPE_CHECKING

from idresolve.domain.model import (
    LookupStrategy,
    PartialResolutionError,
    ResolutionTimeoutError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from idresolve.domain.model import Lookup, LookupResult
    from idresolve.domain.ports import EntityReader

    type _LookupCall = Callable[[Sequence[Lookup]], list[LookupResult]]


log = getLogger(__name__)


def partition_lookups(lookups: Sequence[Lookup], parts: int) -> list[Sequence[Lookup]]:
    """Split ``lookups`` into ``min(parts, len(lookups))`` contiguous chunks.

    Chunk sizes differ by at most one; earlier chunks take the remainder.
    """

    if parts < 1:
        raise ValueError("Worker count must be at least 1")
    total = len(lookups)
    if total == 0:
        return []
    count = min(parts, total)
    size, remainder = divmod(total, count)
    chunks: list[Sequence[Lookup]] = []
    start = 0
    for index in range(count):
        end = start + size + (1 if index < remainder else 0)
        chunks.append(lookups[start:end])
        start = end
    return chunks


def resolve_concurrently(
    lookups: Sequence[Lookup],
    *,
    reader: EntityReader,
    workers: int,
    timeout: float | None = None,
) -> list[LookupResult]:
    """Run batched resolution per chunk on a pool of ``workers`` threads.

    Results are merged in worker completion order. Every worker's outcome is observed
    before returning: if any worker failed, ``PartialResolutionError`` lists all
    failures and no partial result is returned. ``timeout`` bounds the whole call.
    """

    chunks = partition_lookups(lookups, workers)
    if not chunks:
        return []

    started = time.perf_counter()
    log.debug("Resolving %s lookups across %s workers", len(lookups), len(chunks))

    executor = ThreadPoolExecutor(max_workers=len(chunks), thread_name_prefix="lookup")
    try:
        futures: dict[Future[list[LookupResult]], int] = {
            executor.submit(reader.lookup_entities, chunk): index
            for index, chunk in enumerate(chunks)
        }
        results: list[LookupResult] = []
        failures: list[tuple[int, BaseException]] = []
        try:
            for future in as_completed(futures, timeout=timeout):
                index = futures[future]
                error = future.exception()
                if error is not None:
                    log.warning("Lookup worker %s failed: %s", index, error)
                    failures.append((index, error))
                    continue
                chunk_results = future.result()
                log.debug("Lookup worker %s returned %s results", index, len(chunk_results))
                results.extend(chunk_results)
        except TimeoutError as exc:
            pending = [futures[f] for f in futures if not f.done()]
            raise ResolutionTimeoutError(
                f"Lookups did not finish within {timeout}s (pending chunks: {sorted(pending)})"
            ) from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    if failures:
        failures.sort(key=lambda failure: failure[0])
        first_index, first_error = failures[0]
        raise PartialResolutionError(
            f"{len(failures)} of {len(chunks)} lookup workers failed "
            f"(first: chunk {first_index}: {first_error})",
            failures=failures,
        ) from first_error

    log.info(
        "Resolved %s lookups into %s results with %s workers in %.3fs",
        len(lookups),
        len(results),
        len(chunks),
        time.perf_counter() - started,
    )
    return results


def resolve_lookups(
    lookups: Sequence[Lookup],
    *,
    reader: EntityReader,
    strategy: LookupStrategy = LookupStrategy.BATCHED,
    workers: int = 1,
    timeout: float | None = None,
) -> list[LookupResult]:
    """Resolve ``lookups`` with the chosen strategy.

    ``BATCHED`` and ``CONCURRENT`` follow security identifiers and may return results
    in any order and in a different count than the input. ``DIRECT`` only follows
    identifiers attached to the entity and returns exactly one result per lookup.
    """

    if not lookups:
        return []
    if strategy is LookupStrategy.BATCHED:
        return _with_deadline(reader.lookup_entities, lookups, timeout=timeout)
    if strategy is LookupStrategy.DIRECT:
        return _with_deadline(reader.lookup_direct_entities, lookups, timeout=timeout)
    if strategy is LookupStrategy.CONCURRENT:
        return resolve_concurrently(lookups, reader=reader, workers=workers, timeout=timeout)
    raise ValueError(f"Unsupported lookup strategy: {strategy!r}")


def _with_deadline(
    call: _LookupCall,
    lookups: Sequence[Lookup],
    *,
    timeout: float | None,
) -> list[LookupResult]:
    if timeout is None:
        return call(lookups)
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lookup")
    try:
        future = executor.submit(call, lookups)
        done, _ = wait([future], timeout=timeout, return_when=FIRST_EXCEPTION)
        if not done:
            raise ResolutionTimeoutError(f"Lookups did not finish within {timeout}s")
        return future.result()
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


__all__ = ["partition_lookups", "resolve_concurrently", "resolve_lookups"]
