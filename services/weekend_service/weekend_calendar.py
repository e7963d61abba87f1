"""
Weekend Calendar Math

Pure date functions: weekend boundaries, weekend enumeration, day masks
and weekend status. No I/O.

A weekend is identified by its Saturday at midnight. Boundaries are computed
on the wall clock of the value passed in, so zone-aware datetimes keep their
tzinfo and naive datetimes stay naive.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from .models import EventKind, WeekendDay, WeekendStatus
from .protocols import WeekendValidationError

SATURDAY = 5
SUNDAY = 6

ONE_WEEK = timedelta(days=7)


def _as_datetime(d) -> datetime:
    if isinstance(d, datetime):
        return d
    if isinstance(d, date):
        return datetime.combine(d, time.min)
    raise TypeError(f"Expected date or datetime, got {type(d).__name__}")


def start_of_weekend(d) -> datetime:
    """
    Saturday 00:00 of the weekend d belongs to, or of the next weekend.

    Sunday maps back to the preceding Saturday, Saturday maps to itself and
    Monday to Friday map forward to the coming Saturday.
    """
    midnight = _as_datetime(d).replace(hour=0, minute=0, second=0, microsecond=0)
    weekday = midnight.weekday()

    if weekday == SATURDAY:
        days = 0
    elif weekday == SUNDAY:
        days = -1
    else:
        days = SATURDAY - weekday

    return midnight + timedelta(days=days)


def end_of_weekend(d) -> datetime:
    """Last instant of the Sunday of the weekend given by start_of_weekend(d)"""
    sunday = start_of_weekend(d) + timedelta(days=1)
    return sunday.replace(hour=23, minute=59, second=59, microsecond=999999)


def is_within_weekend(instant: datetime, weekend_start: datetime) -> bool:
    return start_of_weekend(weekend_start) <= instant <= end_of_weekend(weekend_start)


class WeekendRange:
    """
    Weekend starts whose weekend overlaps [range_start, range_end).

    Lazy and restartable: every iteration starts from the beginning.
    Empty when range_end <= range_start.
    """

    def __init__(self, range_start, range_end):
        self.range_start = _as_datetime(range_start)
        self.range_end = _as_datetime(range_end)

    def __iter__(self) -> Iterator[datetime]:
        if self.range_end <= self.range_start:
            return

        current = start_of_weekend(self.range_start)
        while current < self.range_end:
            yield current
            current = current + ONE_WEEK

    def __repr__(self) -> str:
        return f"WeekendRange({self.range_start.isoformat()}, {self.range_end.isoformat()})"


def enumerate_weekends(range_start, range_end) -> WeekendRange:
    return WeekendRange(range_start, range_end)


def day_mask_from_selected_days(days: Iterable[WeekendDay]) -> int:
    """Bit 0 is Saturday, bit 1 is Sunday"""
    selected = {WeekendDay(day) for day in days}
    if not selected:
        raise WeekendValidationError("Please select at least one day")

    mask = 0
    for day in selected:
        mask |= 1 << (day.value - 1)
    return mask


def selected_days_from_day_mask(mask: int) -> Set[WeekendDay]:
    return {day for day in WeekendDay if mask & (1 << (day.value - 1))}


def weekend_status(events: Iterable) -> WeekendStatus:
    """
    Derive a weekend's status from the events overlapping it.

    Any event kind other than travel counts as a plan.
    """
    has_events = False
    for event in events:
        has_events = True
        if event.kind == EventKind.TRAVEL:
            return WeekendStatus.TRAVEL
    return WeekendStatus.PLAN if has_events else WeekendStatus.FREE


def first_of_month(d) -> datetime:
    return _as_datetime(d).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def add_months(d: datetime, months: int) -> datetime:
    """Shift a first-of-month datetime by whole months"""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    return d.replace(year=year, month=month_index % 12 + 1, day=1)


def weekends_in_month(year: int, month: int, tzinfo=None) -> List[datetime]:
    """Weekends overlapping the month, including one whose Saturday falls in the previous month"""
    start = datetime(year, month, 1, tzinfo=tzinfo)
    return list(enumerate_weekends(start, add_months(start, 1)))


def upcoming_weekends(now: datetime, count: int = 4) -> List[datetime]:
    """The current weekend (if in progress) and the ones after it"""
    first = start_of_weekend(now)
    return [first + ONE_WEEK * i for i in range(count)]


def twelve_month_window(today: datetime) -> Tuple[datetime, datetime]:
    """First of the current month up to the same month a year later"""
    start = first_of_month(today)
    return start, add_months(start, 12)


def format_reminder_offset(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} minutes before"

    hours, remainder = divmod(minutes, 60)
    hour_text = "1 hour" if hours == 1 else f"{hours} hours"
    if remainder == 0:
        return f"{hour_text} before"
    return f"{hour_text} {remainder} minutes before"


def weekend_range_label(saturday: datetime, now: Optional[datetime] = None) -> str:
    """e.g. "Jun 7 - 8" or "May 31 - Jun 1"; the year is added when it differs from now's"""
    start = start_of_weekend(saturday)
    sunday = start + timedelta(days=1)

    label = f"{start.strftime('%b')} {start.day} - "
    if sunday.month != start.month:
        label += f"{sunday.strftime('%b')} "
    label += str(sunday.day)

    if now is not None and sunday.year != now.year:
        label += f", {sunday.year}"
    return label
