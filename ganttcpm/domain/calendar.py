from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from ganttcpm.domain.errors import CalendarError
from ganttcpm.utils.time_utils import ZERO

# (start, end) offsets from midnight, end exclusive
WorkingPeriod = Tuple[timedelta, timedelta]

FULL_DAY: WorkingPeriod = (ZERO, timedelta(days=1))
OFFICE_HOURS: WorkingPeriod = (timedelta(hours=9), timedelta(hours=17))

DEFAULT_SEARCH_HORIZON_DAYS = 3660


class WorkingCalendarBase(ABC):
    """
    What the auto-scheduler needs from a working calendar.

    Any object providing these two methods can be passed as a calendar.
    """

    @abstractmethod
    def is_working_instant(self, timestamp: datetime) -> bool:
        """Return True if work can happen at this instant."""
        pass

    @abstractmethod
    def next_working_instant(self, timestamp: datetime) -> datetime:
        """Return the first working instant at or after the timestamp."""
        pass


def _validate_periods(periods: Iterable[WorkingPeriod]) -> List[WorkingPeriod]:
    checked = []
    for start, end in periods:
        if not (ZERO <= start < end <= timedelta(days=1)):
            raise CalendarError(f"Invalid working period {start} - {end}")
        checked.append((start, end))
    checked.sort()
    for (_, prev_end), (next_start, _) in zip(checked, checked[1:]):
        if next_start < prev_end:
            raise CalendarError("Working periods must not overlap")
    return checked


@dataclass
class CalendarException:
    """
    A date range that overrides the weekly pattern, such as a public holiday
    or a special working Saturday.

    With no working periods the range is non-working. A yearly exception
    repeats on the same month/day range every year.
    """

    name: str
    start: date
    end: Optional[date] = None
    working_periods: List[WorkingPeriod] = field(default_factory=list)
    recurring_yearly: bool = False
    priority: int = 0
    active: bool = True

    def __post_init__(self):
        if self.end is None:
            self.end = self.start
        if self.end < self.start:
            raise CalendarError(f"Exception {self.name!r} ends before it starts")
        self.working_periods = _validate_periods(self.working_periods)

    @property
    def is_working(self) -> bool:
        return bool(self.working_periods)

    def applies_to(self, day: date) -> bool:
        if not self.active:
            return False
        if not self.recurring_yearly:
            return self.start <= day <= self.end
        if day < self.start:
            return False
        key = (day.month, day.day)
        first = (self.start.month, self.start.day)
        last = (self.end.month, self.end.day)
        if first <= last:
            return first <= key <= last
        # Range wraps over the new year
        return key >= first or key <= last


class WorkingCalendar(WorkingCalendarBase):
    """
    Weekly working pattern plus dated exceptions.

    Days are configured per weekday (Monday = 0) as a list of working
    periods; a weekday with no periods is a day off. Exceptions override the
    weekly pattern, the highest priority exception winning.
    """

    def __init__(
        self,
        weekly: Optional[Dict[int, Iterable[WorkingPeriod]]] = None,
        exceptions: Optional[Iterable[CalendarException]] = None,
        name: str = "Standard Calendar",
        search_horizon_days: int = DEFAULT_SEARCH_HORIZON_DAYS,
    ):
        self.name = name
        if weekly is None:
            weekly = {weekday: [OFFICE_HOURS] for weekday in range(5)}
        self._weekly = {
            weekday: _validate_periods(weekly.get(weekday, ()))
            for weekday in range(7)
        }
        self.exceptions = list(exceptions) if exceptions else []
        if search_horizon_days < 1:
            raise CalendarError("Search horizon must be at least one day")
        self.search_horizon_days = search_horizon_days

    @classmethod
    def standard(cls, **kwargs) -> "WorkingCalendar":
        """Monday to Friday, 09:00 to 17:00."""
        return cls({weekday: [OFFICE_HOURS] for weekday in range(5)}, **kwargs)

    @classmethod
    def business_days(cls, **kwargs) -> "WorkingCalendar":
        """Monday to Friday, whole days."""
        kwargs.setdefault("name", "Business Days")
        return cls({weekday: [FULL_DAY] for weekday in range(5)}, **kwargs)

    @classmethod
    def twenty_four_seven(cls, **kwargs) -> "WorkingCalendar":
        kwargs.setdefault("name", "24/7")
        return cls({weekday: [FULL_DAY] for weekday in range(7)}, **kwargs)

    def add_exception(self, exception: CalendarException) -> "WorkingCalendar":
        self.exceptions.append(exception)
        return self

    def add_holiday(
        self, day: date, name: str = "Holiday", end: Optional[date] = None
    ) -> "WorkingCalendar":
        """Mark a date (or an inclusive date range) as non-working."""
        return self.add_exception(CalendarException(name=name, start=day, end=end))

    def working_periods(self, day: date) -> List[WorkingPeriod]:
        """Working periods that apply on a given date."""
        applicable = [ex for ex in self.exceptions if ex.applies_to(day)]
        if applicable:
            winner = max(applicable, key=lambda ex: ex.priority)
            return winner.working_periods
        return self._weekly[day.weekday()]

    def is_working_day(self, day: date) -> bool:
        return bool(self.working_periods(day))

    def is_working_instant(self, timestamp: datetime) -> bool:
        offset = timestamp - _midnight(timestamp)
        return any(
            start <= offset < end
            for start, end in self.working_periods(timestamp.date())
        )

    def next_working_instant(self, timestamp: datetime) -> datetime:
        """
        Return the first working instant at or after the timestamp.

        Raises:
            CalendarError: If no working time exists within the search horizon
        """
        day_start = _midnight(timestamp)
        offset = timestamp - day_start

        for _ in range(self.search_horizon_days + 1):
            for start, end in self.working_periods(day_start.date()):
                if end > offset:
                    return day_start + max(start, offset)
            day_start += timedelta(days=1)
            offset = ZERO

        raise CalendarError(
            f"No working time within {self.search_horizon_days} days "
            f"after {timestamp:%Y-%m-%d %H:%M}"
        )

    def add_working_time(self, start: datetime, span: timedelta) -> datetime:
        """
        Return the instant reached after consuming `span` of working time.

        Raises:
            CalendarError: If the calendar runs out of working time
        """
        if span < ZERO:
            raise CalendarError("Working time to add must not be negative")

        current = self.next_working_instant(start)
        remaining = span
        idle_days = 0

        while remaining > ZERO:
            day_start = _midnight(current)
            offset = current - day_start
            consumed_today = False

            for period_start, period_end in self.working_periods(day_start.date()):
                if period_end <= offset:
                    continue
                work_start = max(period_start, offset)
                available = period_end - work_start
                if remaining <= available:
                    return day_start + work_start + remaining
                remaining -= available
                offset = period_end
                consumed_today = True

            idle_days = 0 if consumed_today else idle_days + 1
            if idle_days > self.search_horizon_days:
                raise CalendarError("Working calendar ran out of working time")
            current = day_start + timedelta(days=1)

        return current

    def working_time_between(self, start: datetime, end: datetime) -> timedelta:
        """Total working time in the half-open interval [start, end)."""
        if end <= start:
            return ZERO

        total = ZERO
        day_start = _midnight(start)
        while day_start < end:
            for period_start, period_end in self.working_periods(day_start.date()):
                lo = max(day_start + period_start, start)
                hi = min(day_start + period_end, end)
                if lo < hi:
                    total += hi - lo
            day_start += timedelta(days=1)
        return total

    def __repr__(self):
        return f"WorkingCalendar(name={self.name!r}, exceptions={len(self.exceptions)})"


def _midnight(timestamp: datetime) -> datetime:
    return datetime.combine(timestamp.date(), time.min, tzinfo=timestamp.tzinfo)
