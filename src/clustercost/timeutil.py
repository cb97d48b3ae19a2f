import re
from datetime import datetime, timedelta, timezone

from clustercost.errors import InvalidRangeError

_UNIT_SECONDS: "dict[str, float]" = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
    "w": 7 * 86400.0,
    "y": 365 * 86400.0,
}

# "ms" must be tried before "m"
_TERM = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d|w|y)")

TIMESTAMP_LAYOUT = "%Y-%m-%dT%H:%M:%S.%fZ"


def parse_duration(text: "str") -> "timedelta":
    """
    parses a Prometheus-style duration such as "24h", "1h30m" or "7d".
    """
    text = text.strip()
    if not text:
        raise InvalidRangeError("empty duration")

    total = 0.0
    pos = 0
    for match in _TERM.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos != len(text):
        raise InvalidRangeError(f"invalid duration {text!r}")

    try:
        return timedelta(seconds=total)
    except OverflowError as e:
        raise InvalidRangeError(f"duration {text!r} out of range") from e


def resolve_window(
    window: "str",
    offset: "str" = "",
    now: "datetime | None" = None,
) -> "tuple[datetime, datetime]":
    """
    resolves a window ending `offset` before now into absolute UTC
    (start, end) bounds. Zero-length windows are rejected.
    """
    window_delta = parse_duration(window)
    if window_delta <= timedelta(0):
        raise InvalidRangeError(f"illegal time range: window {window!r}")

    offset_delta = parse_duration(offset) if offset.strip() else timedelta(0)

    if now is None:
        now = datetime.now(timezone.utc)

    try:
        end = now - offset_delta
        start = end - window_delta
    except OverflowError as e:
        raise InvalidRangeError(
            f"time range out of bounds: window {window!r}, offset {offset!r}"
        ) from e
    return start, end


def hours_between(start: "datetime", end: "datetime") -> "float":
    return (end - start).total_seconds() / 3600.0


def parse_timestamp(text: "str") -> "datetime":
    """
    parses a UTC timestamp in the "2006-01-02T15:04:05.000Z" layout.
    """
    try:
        parsed = datetime.strptime(text, TIMESTAMP_LAYOUT)
    except ValueError as e:
        raise InvalidRangeError(f"invalid timestamp {text!r}") from e
    return parsed.replace(tzinfo=timezone.utc)
