from datetime import timedelta
from numbers import Real
from typing import Union

TimeSpan = Union[timedelta, int, float]

ZERO = timedelta(0)


def to_timedelta(value: TimeSpan, name: str = "value") -> timedelta:
    """
    Convert a duration or lag to a timedelta.

    Plain numbers are interpreted as days.

    Raises:
        TypeError: If the value is neither a timedelta nor a real number
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{name} must be a timedelta or a number of days")
    return timedelta(days=value)


def format_span(span: timedelta) -> str:
    """Format a timedelta as a compact day count, e.g. '2d' or '-1.5d'."""
    days = span / timedelta(days=1)
    if days == int(days):
        return f"{int(days)}d"
    return f"{days:g}d"
