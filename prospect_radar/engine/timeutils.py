"""Whole-day arithmetic shared by the engines."""
import datetime as dt

MS_PER_DAY = 86_400_000


def days_between(earlier: dt.datetime, now: dt.datetime) -> int:
    """Whole days from `earlier` to `now`, floored and never negative."""
    elapsed_ms = (now - earlier) // dt.timedelta(milliseconds=1)
    return max(0, elapsed_ms // MS_PER_DAY)


def calendar_days_overdue(due: dt.datetime, now: dt.datetime) -> int:
    """
    Calendar days (UTC) a due date lies before `now`.
    An action due today is not overdue yet.
    """
    delta = now.astimezone(dt.UTC).date() - due.astimezone(dt.UTC).date()
    return max(0, delta.days)
