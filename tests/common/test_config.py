from __future__ import annotations

import logging

import pytest

from idresolve.config import (
    ConfigurationError,
    configure_logging,
    env_int,
    env_seconds,
    get_resolution_config,
)
from idresolve.config.resolution import (
    DEFAULT_INGEST_BATCH_SIZE,
    DEFAULT_RESET_CHUNK_SIZE,
    DEFAULT_WORKERS,
    DEFAULT_WRITE_TIMEOUT_SECONDS,
)


def test_resolution_config_defaults() -> None:
    config = get_resolution_config()

    assert config.workers == DEFAULT_WORKERS
    assert config.ingest_batch_size == DEFAULT_INGEST_BATCH_SIZE
    assert config.write_timeout_seconds == DEFAULT_WRITE_TIMEOUT_SECONDS
    assert config.lookup_timeout_seconds is None
    assert config.reset_chunk_size == DEFAULT_RESET_CHUNK_SIZE


def test_resolution_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IDRESOLVE_WORKERS", "8")
    monkeypatch.setenv("IDRESOLVE_INGEST_BATCH_SIZE", " 250 ")
    monkeypatch.setenv("IDRESOLVE_WRITE_TIMEOUT_SECONDS", "90")
    monkeypatch.setenv("IDRESOLVE_LOOKUP_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("IDRESOLVE_RESET_CHUNK_SIZE", "100")

    config = get_resolution_config()

    assert config.workers == 8
    assert config.ingest_batch_size == 250
    assert config.write_timeout_seconds == 90.0
    assert config.lookup_timeout_seconds == 2.5
    assert config.reset_chunk_size == 100


@pytest.mark.parametrize("raw", ["zero", "0", "-3"])
def test_env_int_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("EXAMPLE_COUNT", raw)

    with pytest.raises(ConfigurationError) as exc:
        env_int("EXAMPLE_COUNT", 1)

    assert exc.value.variable == "EXAMPLE_COUNT"
    assert str(exc.value).startswith("EXAMPLE_COUNT must be")


def test_env_int_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_COUNT", "   ")

    assert env_int("EXAMPLE_COUNT", 7) == 7


@pytest.mark.parametrize("raw", ["soon", "0", "-1.5"])
def test_env_seconds_requires_a_positive_number(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("EXAMPLE_TIMEOUT", raw)

    with pytest.raises(ConfigurationError):
        env_seconds("EXAMPLE_TIMEOUT", None)


def test_configure_logging_quiets_migrations_unless_verbose(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    calls: list[dict[str, object]] = []
    migration_log = logging.getLogger("alembic.runtime.migration")
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(migration_log, "level", migration_log.level)

    configure_logging()
    assert calls[-1]["level"] == logging.INFO
    assert calls[-1]["force"] is False
    assert migration_log.level == logging.WARNING

    configure_logging(verbose=True, force=True)
    assert calls[-1]["level"] == logging.DEBUG
    assert calls[-1]["force"] is True
    assert migration_log.level == logging.INFO
