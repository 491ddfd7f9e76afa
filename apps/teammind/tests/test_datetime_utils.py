"""
Tests for venue-local day and display helpers.
"""

from datetime import date, datetime, timedelta

import pytest
import pytz

from teammind.utils.datetime_utils import day_bounds, format_match_time, get_local_timezone, to_local


@pytest.fixture(autouse=True)
def new_york(monkeypatch):
    monkeypatch.setenv("APP_TIMEZONE", "America/New_York")


def test_default_timezone(monkeypatch):
    monkeypatch.delenv("APP_TIMEZONE")
    assert get_local_timezone().zone == "America/New_York"


def test_day_bounds_cover_local_day_half_open():
    start, end = day_bounds(date(2025, 6, 5))

    assert start == pytz.UTC.localize(datetime(2025, 6, 5, 4, 0))
    assert end == pytz.UTC.localize(datetime(2025, 6, 6, 4, 0))
    assert end - start == timedelta(hours=24)


def test_day_bounds_on_daylight_saving_change():
    start, end = day_bounds(date(2025, 3, 9))
    assert end - start == timedelta(hours=23)


def test_to_local_handles_naive_utc():
    local = to_local(datetime(2025, 6, 6, 1, 0))
    assert (local.day, local.hour) == (5, 21)


def test_format_match_time_uses_local_clock():
    now = pytz.UTC.localize(datetime(2025, 6, 5, 16, 0))
    assert format_match_time(pytz.UTC.localize(datetime(2025, 6, 6, 1, 0)), now=now) == "Today at 9:00 PM"
    assert format_match_time(pytz.UTC.localize(datetime(2025, 6, 6, 23, 30)), now=now) == "Tomorrow at 7:30 PM"
    assert format_match_time(pytz.UTC.localize(datetime(2025, 6, 7, 13, 0)), now=now) == "Sat, Jun 7 at 9:00 AM"
