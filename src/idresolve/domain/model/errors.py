"""Domain error taxonomy.

Validation errors are ``ValueError`` subclasses; store failures are ``RuntimeError``
subclasses carrying the stage (schema, write, read) that failed.
"""

from __future__ import annotations


class InvalidIntervalError(ValueError):
    """Raised when an interval does not satisfy ``start < end``."""


class TimelineOverlapError(ValueError):
    """Raised when two entries of one attribute timeline overlap."""

    def __init__(self, message: str, *, attribute: str) -> None:
        super().__init__(message)
        self.attribute = attribute


class InvalidEntityError(ValueError):
    """Raised when an entity cannot be ingested as given."""


class StoreError(RuntimeError):
    """Base class for failures reported by the backing store."""


class SchemaError(StoreError):
    """Raised when constraints or indexes cannot be created."""


class IngestError(StoreError):
    """Raised when a bulk write fails; nothing from the failing batch was committed."""

    def __init__(self, message: str, *, batch: int | None = None) -> None:
        super().__init__(message)
        self.batch = batch


class ResolutionError(StoreError):
    """Raised when a lookup read fails."""


class ResolutionTimeoutError(ResolutionError):
    """Raised when lookups do not finish within the caller's deadline."""


class MappingError(ResolutionError):
    """Raised when a result row does not have the expected shape."""


class PartialResolutionError(ResolutionError):
    """Raised when some concurrent lookup workers failed.

    ``failures`` holds ``(chunk_index, exception)`` for every failing worker.
    """

    def __init__(self, message: str, *, failures: list[tuple[int, BaseException]]) -> None:
        super().__init__(message)
        self.failures = failures


__all__ = [
    "IngestError",
    "InvalidEntityError",
    "InvalidIntervalError",
    "MappingError",
    "PartialResolutionError",
    "ResolutionError",
    "ResolutionTimeoutError",
    "SchemaError",
    "StoreError",
    "TimelineOverlapError",
]
