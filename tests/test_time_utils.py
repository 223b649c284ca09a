from datetime import datetime

import pytest

from time_utils import (
    add_minutes_hhmm,
    day_index,
    format_days,
    is_valid_hhmm,
    minutes_to_time,
    seconds_until_midnight,
    time_to_minutes,
)


def test_time_round_trip_covers_whole_day():
    for minutes in range(24 * 60):
        text = minutes_to_time(minutes)
        assert time_to_minutes(text) == minutes
        assert minutes_to_time(time_to_minutes(text)) == text


def test_minutes_to_time_clamps_instead_of_wrapping():
    assert minutes_to_time(-20) == "00:00"
    assert minutes_to_time(1440 + 15) == "23:59"


@pytest.mark.parametrize("value", ["7:00", "24:00", "12:60", "", "ab:cd"])
def test_time_to_minutes_rejects_malformed(value):
    assert not is_valid_hhmm(value)
    with pytest.raises(ValueError):
        time_to_minutes(value)


def test_day_index_starts_on_sunday():
    assert day_index(datetime(2025, 1, 5)) == 0
    assert day_index(datetime(2025, 1, 6)) == 1
    assert day_index(datetime(2025, 1, 11)) == 6


def test_snooze_time_wraps_midnight():
    assert add_minutes_hhmm(datetime(2025, 1, 6, 23, 58), 5) == "00:03"


def test_seconds_until_midnight():
    assert seconds_until_midnight(datetime(2025, 1, 6, 23, 59, 30)) == 30.0
    assert seconds_until_midnight(datetime(2025, 1, 6, 0, 0)) == 24 * 3600


def test_format_days():
    assert format_days([1, 2, 3, 4, 5]) == "weekdays"
    assert format_days([6, 0]) == "weekends"
    assert format_days([1, 3]) == "mon,wed"
