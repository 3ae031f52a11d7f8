from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from idresolve.domain.model import (
    DetailDuration,
    Interval,
    InvalidIntervalError,
    TimelineOverlapError,
    active_entries,
    active_value,
    check_timeline,
    find_overlaps,
    is_active,
)
from tests.helpers.entities import utc


def test_start_is_inclusive_and_end_is_exclusive() -> None:
    interval = Interval(utc(2020), utc(2021))

    assert is_active(interval, utc(2020))
    assert is_active(interval, utc(2020, 12, 31))
    assert not is_active(interval, utc(2021))
    assert not is_active(interval, utc(2019, 12, 31))


def test_open_interval_is_active_from_start_onwards() -> None:
    interval = Interval(utc(2020))

    assert interval.is_open
    assert is_active(interval, utc(2020))
    assert is_active(interval, utc(2099))
    assert not is_active(interval, utc(2019))


def test_absent_date_matches_only_open_intervals() -> None:
    assert is_active(Interval(utc(2020)), None)
    assert not is_active(Interval(utc(2020), utc(2021)), None)


def test_interval_rejects_empty_or_inverted_ranges() -> None:
    with pytest.raises(InvalidIntervalError):
        Interval(utc(2020), utc(2020))
    with pytest.raises(InvalidIntervalError):
        Interval(utc(2021), utc(2020))


def test_interval_normalises_to_utc() -> None:
    plus_three = timezone(timedelta(hours=3))
    interval = Interval(datetime(2020, 1, 1, 3, tzinfo=plus_three), datetime(2020, 6, 1))

    assert interval.start == datetime(2020, 1, 1, tzinfo=UTC)
    assert interval.end == datetime(2020, 6, 1, tzinfo=UTC)


def test_close_ends_an_open_interval() -> None:
    closed = Interval(utc(2020)).close(utc(2021))

    assert closed == Interval(utc(2020), utc(2021))


def test_adjacent_entries_hand_over_at_the_boundary() -> None:
    timeline = [
        DetailDuration("A", Interval(utc(2020), utc(2021))),
        DetailDuration("B", Interval(utc(2021))),
    ]

    assert active_value(timeline, utc(2020, 12, 31)) == "A"
    assert active_value(timeline, utc(2021)) == "B"
    assert active_entries(timeline, utc(2021)) == ["B"]
    assert active_value(timeline, utc(2019)) is None
    assert find_overlaps(timeline) == []


def test_untimed_entries_are_always_active() -> None:
    entry = DetailDuration("snapshot")

    assert entry.is_active(None)
    assert entry.is_active(utc(1990))


def test_overlapping_entries_are_reported() -> None:
    first = DetailDuration("A", Interval(utc(2020), utc(2022)))
    second = DetailDuration("B", Interval(utc(2021)))
    third = DetailDuration("C", Interval(utc(2023), utc(2024)))

    assert find_overlaps([third, second, first]) == [(first, second), (second, third)]

    with pytest.raises(TimelineOverlapError) as excinfo:
        check_timeline([first, second], attribute="name")
    assert excinfo.value.attribute == "name"
