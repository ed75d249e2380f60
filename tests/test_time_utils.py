import re

import pytest

from ridepool.modules.rides import time_utils


@pytest.mark.parametrize("value, expected", [
    ("00:00", 0),
    ("09:05", 545),
    ("9:05", 545),
    ("23:59", 1439),
])
def test_time_to_minutes(value, expected):
    assert time_utils.time_to_minutes(value) == expected


def test_time_in_buffer_edges():
    assert time_utils.is_time_in_buffer("09:00", "09:59", 60) is True
    assert time_utils.is_time_in_buffer("09:00", "10:00", 60) is True
    assert time_utils.is_time_in_buffer("09:00", "10:01", 60) is False


def test_time_in_buffer_is_symmetric():
    assert time_utils.is_time_in_buffer("10:01", "09:00") is False
    assert time_utils.is_time_in_buffer("08:30", "09:15") == time_utils.is_time_in_buffer("09:15", "08:30")


def test_time_in_buffer_custom_window():
    assert time_utils.is_time_in_buffer("09:00", "09:10", buffer_minutes=15) is True
    assert time_utils.is_time_in_buffer("09:00", "09:20", buffer_minutes=15) is False


@pytest.mark.parametrize("value", ["00:00", "9:30", "09:30", "19:59", "23:59"])
def test_valid_time_formats(value):
    assert time_utils.is_valid_time_format(value)


@pytest.mark.parametrize("value", ["24:00", "12:60", "1230", "12:5", "ab:cd", "", "09:00\n", None, 930])
def test_invalid_time_formats(value):
    assert not time_utils.is_valid_time_format(value)


def test_current_date_and_time_are_zero_padded():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", time_utils.current_date())
    assert re.fullmatch(r"\d{2}:\d{2}", time_utils.current_time())
    assert time_utils.is_valid_time_format(time_utils.current_time())
