"""Ingest and lookup defaults."""

from __future__ import annotations

from dataclasses import dataclass

from idresolve.domain.ingest import DEFAULT_INGEST_BATCH_SIZE

from .env import env_int, env_seconds

DEFAULT_WORKERS = 4
DEFAULT_WRITE_TIMEOUT_SECONDS = 3600.0
DEFAULT_RESET_CHUNK_SIZE = 10_000


@dataclass(frozen=True, slots=True)
class ResolutionConfig:
    workers: int = DEFAULT_WORKERS
    ingest_batch_size: int = DEFAULT_INGEST_BATCH_SIZE
    write_timeout_seconds: float | None = DEFAULT_WRITE_TIMEOUT_SECONDS
    lookup_timeout_seconds: float | None = None
    reset_chunk_size: int = DEFAULT_RESET_CHUNK_SIZE


def get_resolution_config() -> ResolutionConfig:
    return ResolutionConfig(
        workers=env_int("IDRESOLVE_WORKERS", DEFAULT_WORKERS),
        ingest_batch_size=env_int("IDRESOLVE_INGEST_BATCH_SIZE", DEFAULT_INGEST_BATCH_SIZE),
        write_timeout_seconds=env_seconds(
            "IDRESOLVE_WRITE_TIMEOUT_SECONDS", DEFAULT_WRITE_TIMEOUT_SECONDS
        ),
        lookup_timeout_seconds=env_seconds("IDRESOLVE_LOOKUP_TIMEOUT_SECONDS", None),
        reset_chunk_size=env_int("IDRESOLVE_RESET_CHUNK_SIZE", DEFAULT_RESET_CHUNK_SIZE),
    )
