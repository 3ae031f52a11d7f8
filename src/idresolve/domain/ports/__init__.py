"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import EntityReader, EntityWriter
from .unit_of_work import IngestUnitOfWork

__all__ = [
    "EntityReader",
    "EntityWriter",
    "IngestUnitOfWork",
]
