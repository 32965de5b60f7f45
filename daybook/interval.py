"""Plain-English date intervals for the report commands."""

import re
from datetime import date, timedelta

LAST_DAYS = re.compile(r"^last\s+(\d+)\s+days?$")


class IntervalError(ValueError):
    pass


def start_of_week(day):
    """Monday of ``day``'s week."""
    return day - timedelta(days=day.weekday())


def parse_interval(raw, today=None):
    """Return the inclusive ``(start, end)`` days described by ``raw``."""
    today = today or date.today()
    text = " ".join((raw or "").lower().split())
    if text in ("", "today"):
        return today, today
    if text == "yesterday":
        day = today - timedelta(days=1)
        return day, day
    if text == "this week":
        return start_of_week(today), today
    if text == "last week":
        end = start_of_week(today) - timedelta(days=1)
        return end - timedelta(days=6), end
    if text == "this year":
        return date(today.year, 1, 1), today

    m = LAST_DAYS.match(text)
    if m:
        days = int(m.group(1))
        if days <= 0:
            raise IntervalError(f"invalid day count in interval {raw!r}")
        return today - timedelta(days=days - 1), today

    raise IntervalError(f"unsupported interval {raw!r}")


def days_between(start, end):
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)
