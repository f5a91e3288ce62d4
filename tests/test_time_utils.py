from datetime import date, timedelta

import pytest

from earthinsights.core.errors import ValidationError
from earthinsights.utils.geo import haversine_km, valid_coordinates
from earthinsights.utils.time import Deadline, generate_date_range, parse_day, relative_range


@pytest.mark.parametrize("days,max_dates", [(0, 10), (1, 10), (5, 10), (29, 10), (365, 10), (3650, 3), (30, 1)])
def test_date_range_bounds(days, max_dates):
    start = date(2023, 1, 1)
    end = start + timedelta(days=days)
    dates = generate_date_range(start, end, max_dates)

    assert len(dates) <= max_dates + 1
    assert all(start <= d <= end for d in dates)
    assert dates == sorted(dates, reverse=True)
    assert dates[0] == end


def test_date_range_single_day():
    d = date(2024, 6, 1)
    assert generate_date_range(d, d, 10) == [d]


def test_date_range_even_spacing():
    start = date(2023, 6, 1)
    dates = generate_date_range(start, date(2023, 6, 30), 10)
    # 29 days // 10 -> step 2, then the end date appended
    assert dates[-1] == start
    assert dates[-2] == start + timedelta(days=2)
    assert dates[0] == date(2023, 6, 30)
    assert len(dates) == 11


def test_parse_day():
    assert parse_day("2024-06-01") == date(2024, 6, 1)
    assert parse_day("2024-06-01T12:00:00Z") == date(2024, 6, 1)
    assert parse_day(None) is None
    assert parse_day("") is None


def test_parse_day_rejects_garbage():
    with pytest.raises(ValidationError) as exc:
        parse_day("June 1st", "startDate")
    assert exc.value.title == "Invalid date format"
    assert "startDate" in exc.value.details


@pytest.mark.parametrize("name,days", [("week", 7), ("month", 30), ("year", 365), ("decade", 3650), ("bogus", 365)])
def test_relative_range(name, days):
    now = date(2024, 6, 1)
    start, end = relative_range(name, now)
    assert end == now
    assert (end - start).days == days


def test_deadline_clamp():
    deadline = Deadline(60)
    assert deadline.clamp(5) == 5
    assert 0 < deadline.clamp(120) <= 60
    assert not deadline.expired


def test_expired_deadline():
    deadline = Deadline(0)
    assert deadline.expired
    assert deadline.clamp(10) == 0


def test_coordinates():
    assert valid_coordinates(90, 180)
    assert valid_coordinates(-90, -180)
    assert not valid_coordinates(90.01, 0)
    assert not valid_coordinates(0, -180.5)


def test_haversine_london_paris():
    assert haversine_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, abs=2)
