# Time helpers - elapsed-time and timestamp rendering
import datetime as dt
from typing import List, Tuple, Union


DURATION_UNITS: List[Tuple[str, int]] = [
    ("w", 7 * 24 * 3600),
    ("d", 24 * 3600),
    ("h", 3600),
    ("m", 60),
    ("s", 1),
]


def now_utc() -> dt.datetime:
    return dt.datetime.now(tz=dt.timezone.utc)


def format_duration(elapsed: Union[dt.timedelta, float, int]) -> str:
    """Render elapsed time as compact units, largest first.

    Zero-valued units are omitted wherever they fall, so 1 week and 3 hours
    renders as "1w 3h". Nothing elapsed renders as "0s". Sub-second
    remainders and negative spans are truncated to whole seconds >= 0.
    """
    if isinstance(elapsed, dt.timedelta):
        seconds = int(elapsed.total_seconds())
    else:
        seconds = int(elapsed)
    seconds = max(seconds, 0)

    parts = []
    for suffix, size in DURATION_UNITS:
        count, seconds = divmod(seconds, size)
        if count:
            parts.append(f"{count}{suffix}")

    return " ".join(parts) if parts else "0s"


def format_between(start: dt.datetime, end: dt.datetime) -> str:
    return format_duration(end - start)


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_timestamp(ts: dt.datetime) -> str:
    """Format like "Monday, October 19th 2026, 3:04:05 pm"."""
    hour = ts.hour % 12 or 12
    meridiem = "am" if ts.hour < 12 else "pm"
    return (
        f"{ts.strftime('%A, %B')} {ordinal(ts.day)} {ts.year}, "
        f"{hour}:{ts.minute:02d}:{ts.second:02d} {meridiem}"
    )
