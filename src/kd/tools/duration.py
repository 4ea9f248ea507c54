"""
Parsing and formatting of duration strings in the format used by Go's `time.ParseDuration` (e.g. `1m30s`, `500ms`).
"""

import re

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """
    Parse a duration string into seconds. A plain number is interpreted as seconds.

    Raises:
        ValueError: If the string is not a valid duration.
    """

    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    try:
        return float(text)
    except ValueError:
        pass

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()

    if pos == 0:
        raise ValueError(f"invalid duration: {value!r}")

    return sign * total


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds the way Go's `time.Duration.String()` does, e.g. `3m0s`, `1.5s` or `500ms`.
    """

    if seconds == 0:
        return "0s"

    sign = "-" if seconds < 0 else ""
    nanos = round(abs(seconds) * 1e9)

    if nanos < 1_000_000_000:
        for unit, size in (("ms", 1_000_000), ("µs", 1_000), ("ns", 1)):
            if nanos >= size:
                return f"{sign}{_trim(nanos / size)}{unit}"

    hours, nanos = divmod(nanos, 3600 * 1_000_000_000)
    minutes, nanos = divmod(nanos, 60 * 1_000_000_000)
    result = f"{_trim(nanos / 1e9)}s"
    if hours or minutes:
        result = f"{minutes}m{result}"
    if hours:
        result = f"{hours}h{result}"
    return sign + result


def _trim(value: float) -> str:
    return f"{value:.9f}".rstrip("0").rstrip(".")
