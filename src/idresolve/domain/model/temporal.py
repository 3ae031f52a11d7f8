"""Temporal attribute model: values that hold over half-open intervals.

An entry is active at ``t`` iff ``start <= t`` and (``end`` is absent or ``t < end``).
The entry ending at ``t`` and the entry starting at ``t`` therefore never both match.

``at=None`` stands for "unbounded / current": only entries without an end are active.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from idresolve.domain.model.errors import InvalidIntervalError, TimelineOverlapError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class Interval:
    """Half-open ``[start, end)`` range; ``end=None`` means still active."""

    start: datetime
    end: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", ensure_utc(self.end))
            if self.end <= self.start:
                raise InvalidIntervalError(
                    f"Interval end {self.end.isoformat()} must be after start "
                    f"{self.start.isoformat()}"
                )

    @property
    def is_open(self) -> bool:
        return self.end is None

    def contains(self, at: datetime | None) -> bool:
        return is_active(self, at)

    def overlaps(self, other: Interval) -> bool:
        if self.end is not None and self.end <= other.start:
            return False
        return not (other.end is not None and other.end <= self.start)

    def close(self, at: datetime) -> Interval:
        """Return a copy ending at ``at``."""

        return Interval(start=self.start, end=at)


def is_active(interval: Interval, at: datetime | None) -> bool:
    """Shared activeness rule for every attribute kind."""

    if at is None:
        return interval.end is None
    moment = ensure_utc(at)
    if moment < interval.start:
        return False
    return interval.end is None or moment < interval.end


@dataclass(frozen=True, slots=True)
class DetailDuration[T]:
    """A value paired with the interval over which it held.

    ``interval`` is ``None`` for point-in-time snapshots returned by lookups,
    which carry the value as of the lookup date rather than its history.
    """

    detail: T
    interval: Interval | None = None

    def is_active(self, at: datetime | None) -> bool:
        if self.interval is None:
            return True
        return is_active(self.interval, at)


type Timeline[T] = Sequence[DetailDuration[T]]


def active_entries[T](timeline: Iterable[DetailDuration[T]], at: datetime | None) -> list[T]:
    """Return the details of every entry active at ``at`` in timeline order."""

    return [entry.detail for entry in timeline if entry.is_active(at)]


def active_value[T](timeline: Iterable[DetailDuration[T]], at: datetime | None) -> T | None:
    """Return the first active detail, or ``None`` when nothing holds at ``at``."""

    for entry in timeline:
        if entry.is_active(at):
            return entry.detail
    return None


def find_overlaps[T](
    timeline: Iterable[DetailDuration[T]],
) -> list[tuple[DetailDuration[T], DetailDuration[T]]]:
    """Return pairs of entries whose intervals overlap, ordered by start."""

    dated = sorted(
        ((entry.interval, entry) for entry in timeline if entry.interval is not None),
        key=lambda pair: pair[0].start,
    )
    overlaps: list[tuple[DetailDuration[T], DetailDuration[T]]] = []
    for index, (current_interval, current) in enumerate(dated):
        for later_interval, later in dated[index + 1 :]:
            # sorted by start: nothing after this can overlap either
            if current_interval.end is not None and current_interval.end <= later_interval.start:
                break
            overlaps.append((current, later))
    return overlaps


def check_timeline[T](timeline: Iterable[DetailDuration[T]], *, attribute: str) -> None:
    """Raise ``TimelineOverlapError`` if any two entries of the timeline overlap."""

    overlaps = find_overlaps(timeline)
    if not overlaps:
        return
    first, second = overlaps[0]
    raise TimelineOverlapError(
        f"{attribute} timeline has {len(overlaps)} overlapping entries, "
        f"first: {_describe(first.interval)} and {_describe(second.interval)}",
        attribute=attribute,
    )


def _describe(interval: Interval | None) -> str:
    if interval is None:
        return "[unbounded]"
    end = interval.end.isoformat() if interval.end else "open"
    return f"[{interval.start.isoformat()}, {end})"


__all__ = [
    "DetailDuration",
    "Interval",
    "Timeline",
    "active_entries",
    "active_value",
    "check_timeline",
    "ensure_utc",
    "find_overlaps",
    "is_active",
]
