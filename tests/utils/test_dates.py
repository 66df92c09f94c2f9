"""Tests for the canonical journal day key."""

from datetime import date, datetime, timedelta, timezone

import pytest

from dreamteller.utils.dates import date_key, month_path_segment, parse_date_key


def test_date_key_formats_year_month_day():
    assert date_key(date(2025, 11, 18)) == "20251118"


def test_date_key_pads_small_fields():
    assert date_key(date(2025, 3, 4)) == "20250304"
    assert date_key(date(999, 1, 1)) == "09990101"


def test_date_key_uses_wall_clock_day_of_datetime():
    late_evening = datetime(2025, 11, 18, 23, 59, tzinfo=timezone(timedelta(hours=-8)))
    assert date_key(late_evening) == "20251118"
    assert date_key(datetime(2025, 11, 18, 0, 0)) == "20251118"


def test_same_day_groups_to_same_key():
    assert date_key(datetime(2025, 11, 18, 1)) == date_key(datetime(2025, 11, 18, 22))


def test_parse_date_key_inverts_date_key():
    assert parse_date_key("20251118") == date(2025, 11, 18)


@pytest.mark.parametrize("bad", ["", "2025-11-18", "2025111", "20251332", "abcdefgh"])
def test_parse_date_key_rejects_malformed(bad):
    with pytest.raises(ValueError):
        parse_date_key(bad)


def test_month_path_segment_zero_pads():
    assert month_path_segment(2025, 3) == "2025/03"
    assert month_path_segment(2025, 12) == "2025/12"


def test_month_path_segment_rejects_out_of_range():
    with pytest.raises(ValueError):
        month_path_segment(2025, 13)
