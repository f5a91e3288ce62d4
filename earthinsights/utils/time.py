import time
from datetime import date, datetime, timedelta, timezone

from ..core.errors import ValidationError

def today() -> date:
    return datetime.now(timezone.utc).date()

def parse_day(s: str | date | None, field: str = "date") -> date | None:
    if s is None or s == "":
        return None
    if isinstance(s, date):
        return s
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        raise ValidationError(f"{field} must be in YYYY-MM-DD format", title="Invalid date format")

def iso(d: date) -> str:
    return d.strftime("%Y-%m-%d")

def relative_range(time_range: str, now: date | None = None) -> tuple[date, date]:
    days = {"week": 7, "month": 30, "year": 365, "decade": 3650}.get(time_range, 365)
    end = now or today()
    return end - timedelta(days=days), end

def generate_date_range(start: date, end: date, max_dates: int) -> list[date]:
    """
    Sample at most `max_dates` evenly spaced days from [start, end], always
    including `end`, most recent first.
    """
    total_days = (end - start).days
    step = max(1, total_days // max(1, max_dates))
    dates: list[date] = []
    i = 0
    while i < total_days and len(dates) < max_dates:
        dates.append(start + timedelta(days=i))
        i += step
    if end not in dates:
        dates.append(end)
    dates.reverse()
    return dates


class Deadline:
    """Request-wide time budget threaded through every adapter call."""

    def __init__(self, seconds: float):
        self.budget = seconds
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def clamp(self, timeout: float) -> float:
        return min(timeout, self.remaining())


def elapsed_ms(started_at: float) -> int:
    return int((time.perf_counter() - started_at) * 1000)
