from datetime import datetime, timedelta, timezone

import pytest

from clustercost.errors import InvalidRangeError
from clustercost.timeutil import (
    hours_between,
    parse_duration,
    parse_timestamp,
    resolve_window,
)

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestParseDuration:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("24h", timedelta(hours=24)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("7d", timedelta(days=7)),
            ("1w", timedelta(weeks=1)),
            ("90s", timedelta(seconds=90)),
            ("500ms", timedelta(milliseconds=500)),
            ("1.5h", timedelta(minutes=90)),
            (" 2h ", timedelta(hours=2)),
        ],
    )
    def test_valid_durations(self, text: "str", expected: "timedelta") -> "None":
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "h", "24", "24x", "1h junk", "-1h", "h1"])
    def test_invalid_durations(self, text: "str") -> "None":
        with pytest.raises(InvalidRangeError):
            parse_duration(text)

    def test_out_of_range_duration_is_rejected(self) -> "None":
        with pytest.raises(InvalidRangeError):
            parse_duration("3000000y")


class TestResolveWindow:
    def test_window_without_offset_ends_now(self) -> "None":
        start, end = resolve_window("24h", "", now=NOW)
        assert end == NOW
        assert start == NOW - timedelta(hours=24)

    def test_offset_shifts_end_into_the_past(self) -> "None":
        start, end = resolve_window("1h", "3h", now=NOW)
        assert end == NOW - timedelta(hours=3)
        assert start == NOW - timedelta(hours=4)

    @pytest.mark.parametrize("window", ["1m", "1h", "2d", "1h30m"])
    def test_resolved_window_has_positive_length(self, window: "str") -> "None":
        start, end = resolve_window(window, "1h", now=NOW)
        assert end > start
        assert hours_between(start, end) > 0

    def test_defaults_to_current_utc_time(self) -> "None":
        start, end = resolve_window("1h")
        assert end.tzinfo is not None
        assert end - start == timedelta(hours=1)

    @pytest.mark.parametrize("window", ["0h", "0s", ""])
    def test_zero_or_empty_window_is_rejected(self, window: "str") -> "None":
        with pytest.raises(InvalidRangeError):
            resolve_window(window, "", now=NOW)

    def test_unparsable_window_is_rejected(self) -> "None":
        with pytest.raises(InvalidRangeError):
            resolve_window("yesterday", "", now=NOW)

    def test_unparsable_offset_is_rejected(self) -> "None":
        with pytest.raises(InvalidRangeError):
            resolve_window("1h", "soon", now=NOW)

    @pytest.mark.parametrize(
        "window, offset",
        [("10000y", ""), ("3000000y", ""), ("1h", "10000y"), ("1h", "3000000y")],
    )
    def test_out_of_bounds_range_is_rejected(
        self, window: "str", offset: "str"
    ) -> "None":
        with pytest.raises(InvalidRangeError):
            resolve_window(window, offset, now=NOW)

    def test_invalid_range_is_a_value_error(self) -> "None":
        with pytest.raises(ValueError):
            resolve_window("bogus", "", now=NOW)


class TestParseTimestamp:
    def test_parses_millisecond_layout(self) -> "None":
        ts = parse_timestamp("2024-01-02T03:04:05.000Z")
        assert ts == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_rejects_other_layouts(self) -> "None":
        with pytest.raises(InvalidRangeError):
            parse_timestamp("2024-01-02 03:04:05")
