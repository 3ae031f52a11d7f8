from __future__ import annotations

import threading

import pytest

from idresolve.domain.model import (
    Identifier,
    Lookup,
    LookupStrategy,
    PartialResolutionError,
    ResolutionTimeoutError,
)
from idresolve.domain.resolution import partition_lookups, resolve_concurrently, resolve_lookups
from tests.helpers.entities import make_entity
from tests.support.fakes import FakeEntityReader


def _lookups(count: int) -> list[Lookup]:
    return [Lookup(Identifier("isin", f"X{index}")) for index in range(count)]


def test_partition_is_contiguous_and_balanced() -> None:
    lookups = _lookups(10)

    chunks = partition_lookups(lookups, 3)

    assert [len(chunk) for chunk in chunks] == [4, 3, 3]
    assert [lookup for chunk in chunks for lookup in chunk] == lookups


def test_partition_never_creates_empty_chunks() -> None:
    assert [len(chunk) for chunk in partition_lookups(_lookups(2), 10)] == [1, 1]
    assert partition_lookups([], 4) == []


def test_partition_rejects_non_positive_worker_counts() -> None:
    with pytest.raises(ValueError, match="at least 1"):
        partition_lookups(_lookups(3), 0)


def test_concurrent_resolution_merges_every_chunk() -> None:
    entity = make_entity()
    reader = FakeEntityReader({("isin", "X3"): [entity]})

    results = resolve_concurrently(_lookups(7), reader=reader, workers=3)

    assert len(results) == 7
    assert [result.entity_id for result in results if result.success] == [entity.id]
    assert sorted(size for _, size in reader.calls) == [2, 2, 3]


def test_any_worker_failure_fails_the_whole_call() -> None:
    reader = FakeEntityReader(
        fail_when=lambda chunk: any(item.identifier.value in {"X2", "X4"} for item in chunk)
    )

    with pytest.raises(PartialResolutionError) as excinfo:
        resolve_concurrently(_lookups(6), reader=reader, workers=3)

    assert [index for index, _ in excinfo.value.failures] == [1, 2]
    assert len(reader.calls) == 3


def test_concurrent_resolution_honours_the_deadline() -> None:
    gate = threading.Event()
    reader = FakeEntityReader(gate=gate)
    try:
        with pytest.raises(ResolutionTimeoutError):
            resolve_concurrently(_lookups(4), reader=reader, workers=2, timeout=0.05)
    finally:
        gate.set()


def test_direct_strategy_returns_one_result_per_lookup() -> None:
    first, second = make_entity(), make_entity()
    reader = FakeEntityReader({("isin", "X0"): [first, second]})
    lookups = _lookups(3)

    results = resolve_lookups(lookups, reader=reader, strategy=LookupStrategy.DIRECT)

    assert [result.lookup for result in results] == lookups
    assert [result.success for result in results] == [True, False, False]
    assert reader.calls == [("direct", 3)]


def test_batched_strategy_may_return_more_results_than_lookups() -> None:
    first, second = make_entity(), make_entity()
    reader = FakeEntityReader({("isin", "X0"): [first, second]})

    results = resolve_lookups(_lookups(2), reader=reader)

    assert len(results) == 3
    assert reader.calls == [("batched", 2)]


def test_batched_strategy_honours_the_deadline() -> None:
    gate = threading.Event()
    reader = FakeEntityReader(gate=gate)
    try:
        with pytest.raises(ResolutionTimeoutError):
            resolve_lookups(_lookups(2), reader=reader, timeout=0.05)
    finally:
        gate.set()


def test_no_lookups_means_no_reads() -> None:
    reader = FakeEntityReader()

    for strategy in LookupStrategy:
        assert resolve_lookups([], reader=reader, strategy=strategy, workers=2) == []
    assert reader.calls == []
