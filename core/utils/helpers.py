from datetime import date, datetime, timedelta

from dateutil.parser import isoparse
from django.utils import timezone


def local_today():
    """Today's date in the configured time zone"""
    return timezone.localdate()


def first_of_month(day):
    return day.replace(day=1)


def parse_date(value, default=None):
    """
    Parse 'YYYY-MM-DD' (or a full ISO timestamp) into a date

    Blank or unparseable input returns default.
    """
    if value is None or value == '':
        return default
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value)).date()
    except (ValueError, OverflowError):
        return default


def each_day(start, end):
    """Every calendar day from start to end inclusive (empty if start > end)"""
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


def last_n_days(n, today):
    """The n most recent days ending at today, oldest first"""
    return [today - timedelta(days=offset) for offset in range(n - 1, -1, -1)]


def inclusive_day_count(start, end):
    """Length of [start, end] in days, never less than 1"""
    return max(1, (end - start).days + 1)
