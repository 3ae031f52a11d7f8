"""Typed readers for ``IDRESOLVE_*`` environment variables.

Blank or unset variables fall back to the default; anything else must parse and lie in
range, otherwise ``ConfigurationError`` names the offending variable.
"""

from __future__ import annotations

import os


class ConfigurationError(RuntimeError):
    """Raised when an environment variable holds an unusable value."""

    def __init__(self, variable: str, message: str) -> None:
        super().__init__(f"{variable} {message}")
        self.variable = variable


def _raw(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def env_int(name: str, default: int, *, minimum: int = 1) -> int:
    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(name, f"must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(name, f"must be at least {minimum}, got {value}")
    return value


def env_seconds(name: str, default: float | None) -> float | None:
    """Positive duration in seconds; ``default`` may be ``None`` for "no deadline"."""

    raw = _raw(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(name, f"must be a number of seconds, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(name, f"must be positive, got {value}")
    return value
