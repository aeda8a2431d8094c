from datetime import datetime

import pytest
from pytz import timezone

from yardpass.services.quiet_hours import (
    is_quiet_time,
    is_valid_hhmm,
    overlaps_quiet_hours,
    parse_hhmm,
)

TZ = timezone("Europe/Moscow")


def at(day, hour, minute=0):
    return TZ.localize(datetime(2026, 3, day, hour, minute))


def test_parse_hhmm():
    assert parse_hhmm("00:00") == 0
    assert parse_hhmm("06:30") == 6 * 3600 + 30 * 60
    assert parse_hhmm("23:59") == 23 * 3600 + 59 * 60


@pytest.mark.parametrize("value", ["24:00", "7:00", "12:60", "", "noon", None])
def test_invalid_hhmm(value):
    assert not is_valid_hhmm(value)
    with pytest.raises(ValueError):
        parse_hhmm(value)


class TestDaytimeWindow:
    start, end = "13:00", "15:00"

    def test_before_window_allowed(self):
        assert not overlaps_quiet_hours(at(10, 12), at(10, 12, 30), self.start, self.end, TZ)

    def test_overlapping_start_rejected(self):
        assert overlaps_quiet_hours(at(10, 12, 30), at(10, 13, 30), self.start, self.end, TZ)

    def test_ending_exactly_at_start_allowed(self):
        assert not overlaps_quiet_hours(at(10, 12), at(10, 13), self.start, self.end, TZ)

    def test_next_day_window_counts(self):
        # с 16:00 до 14:00 следующего дня задевает окно следующих суток
        assert overlaps_quiet_hours(at(10, 16), at(11, 14), self.start, self.end, TZ)

    def test_evening_allowed(self):
        assert not overlaps_quiet_hours(at(10, 15), at(10, 20), self.start, self.end, TZ)


class TestOvernightWindow:
    start, end = "22:00", "06:00"

    def test_late_evening_rejected(self):
        assert overlaps_quiet_hours(at(10, 23), at(10, 23, 30), self.start, self.end, TZ)

    def test_morning_after_window_allowed(self):
        assert not overlaps_quiet_hours(at(11, 7), at(11, 8), self.start, self.end, TZ)

    def test_overlapping_end_rejected(self):
        assert overlaps_quiet_hours(at(11, 5, 30), at(11, 6, 30), self.start, self.end, TZ)

    def test_daytime_allowed(self):
        assert not overlaps_quiet_hours(at(10, 6), at(10, 22), self.start, self.end, TZ)

    def test_spanning_evening_rejected(self):
        assert overlaps_quiet_hours(at(10, 20), at(10, 22, 1), self.start, self.end, TZ)


def test_empty_window_never_overlaps():
    assert not overlaps_quiet_hours(at(10, 0), at(10, 23), "10:00", "10:00", TZ)


def test_local_time_is_used_for_utc_input():
    # 10:30 UTC = 13:30 по Москве
    moment = datetime(2026, 3, 10, 10, 30, tzinfo=timezone("UTC"))
    assert is_quiet_time(moment, "13:00", "15:00", TZ)


def test_is_quiet_time_bounds():
    assert is_quiet_time(at(10, 13), "13:00", "15:00", TZ)
    assert not is_quiet_time(at(10, 15), "13:00", "15:00", TZ)
    assert is_quiet_time(at(10, 23), "22:00", "06:00", TZ)
    assert is_quiet_time(at(11, 5, 59), "22:00", "06:00", TZ)
    assert not is_quiet_time(at(11, 6), "22:00", "06:00", TZ)
    assert not is_quiet_time(at(11, 12), "22:00", "06:00", TZ)
