from datetime import timedelta

import pytest

from slorules.durations import (
    DurationError,
    format_duration,
    go_duration_string,
    parse_duration,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("5m", timedelta(minutes=5)),
        ("1h", timedelta(hours=1)),
        ("30d", timedelta(days=30)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1w", timedelta(weeks=1)),
        ("1y", timedelta(days=365)),
        ("250ms", timedelta(milliseconds=250)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["5m", "30m", "1h", "2h", "6h", "1d", "3d", "30d", "1h30m"])
def test_round_trip(text):
    assert format_duration(parse_duration(text)) == text


def test_zero_duration():
    assert parse_duration("0") == timedelta(0)
    assert format_duration(timedelta(0)) == "0s"


def test_weeks_are_used_only_when_exact():
    assert format_duration(timedelta(days=28)) == "4w"
    assert parse_duration(format_duration(timedelta(days=30))) == timedelta(days=30)


@pytest.mark.parametrize("text", ["", "5x", "m5", "1.5h", "-1h", "h"])
def test_invalid_durations(text):
    with pytest.raises(DurationError):
        parse_duration(text)


def test_go_duration_string():
    assert go_duration_string(timedelta(days=30)) == "720h0m0s"
    assert go_duration_string(timedelta(0)) == "0s"
    assert go_duration_string(timedelta(seconds=1, milliseconds=500)) == "1.5s"