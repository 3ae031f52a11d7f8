"""Unit-of-work abstraction around a single write transaction."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from idresolve.domain.ports.persistence import EntityWriter


@runtime_checkable
class IngestUnitOfWork(Protocol):
    """Transaction boundary for one ingest batch: commit all or nothing."""

    @property
    def entities(self) -> EntityWriter: ...

    def __enter__(self) -> IngestUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
