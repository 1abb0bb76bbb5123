"""
Date formatting helpers shared by handlers.

Naive datetimes are treated as local wall-clock time; ``iso_timestamp`` is
the only helper that works in UTC.
"""
import datetime
import math

from dateutil.parser import parse
from dateutil.relativedelta import relativedelta

FULL_FORMAT = "%Y-%m-%dT%H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"
DISPLAY_DATE_FORMAT = "%d/%m/%Y"
DISPLAY_DATETIME_FORMAT = "%d/%m/%Y %H:%M"


def datetime_full_format(value):
    """datetime(2024, 1, 5, 9, 3, 7) => '2024-01-05T09:03:07'"""
    return value.strftime(FULL_FORMAT)


def date_format(value):
    return value.strftime(DATE_FORMAT)


def current_datetime_string():
    return datetime_full_format(datetime.datetime.now())


def current_date_string():
    return date_format(datetime.date.today())


def parse_to_full_format(date_string):
    """Parse any dateutil-readable string into YYYY-MM-DDTHH:MM:SS

    Raises:
        ValueError: If the string is not a date
    """
    return datetime_full_format(parse(date_string))


def parse_to_date_format(date_string):
    return date_format(parse(date_string))


def add_days(value, days):
    return value + relativedelta(days=days)


def add_hours(value, hours):
    return value + relativedelta(hours=hours)


def is_today(value):
    return date_format(value) == current_date_string()


def days_difference(first, second):
    """Whole days between two datetimes, rounded up; always positive"""
    seconds = abs((second - first).total_seconds())
    return math.ceil(seconds / 86400)


def format_for_display(value):
    """datetime(2024, 1, 5) => '05/01/2024'"""
    return value.strftime(DISPLAY_DATE_FORMAT)


def format_datetime_for_display(value):
    return value.strftime(DISPLAY_DATETIME_FORMAT)


def iso_timestamp(value=None):
    """UTC ISO-8601 timestamp, e.g. '2024-01-05T09:03:07.123456+00:00'"""
    value = value or datetime.datetime.now(datetime.timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc).isoformat()
