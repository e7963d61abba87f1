"""
Event input validation

Checks run in form order and stop at the first failure, so the message a
user sees is always the earliest problem.
"""

from datetime import datetime
from typing import List, Optional

from .models import EventDraft, ReminderDraft
from .protocols import WeekendValidationError
from .weekend_calendar import is_within_weekend

MAX_TITLE_LENGTH = 100
MAX_LOCATION_LENGTH = 150
MAX_DESCRIPTION_LENGTH = 1000


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def _match_awareness(anchor: datetime, reference: datetime) -> datetime:
    """Read a naive or aware weekend anchor on the same kind of clock as reference"""
    if _is_aware(anchor) == _is_aware(reference):
        return anchor
    if _is_aware(reference):
        return anchor.replace(tzinfo=reference.tzinfo)
    return anchor.replace(tzinfo=None)


def event_draft_error(draft: EventDraft, check_weekend_bounds: bool = True) -> Optional[str]:
    """Return the first validation message for a draft, or None if it is valid"""
    title = (draft.title or "").strip()
    if not title:
        return "Title cannot be empty"
    if len(title) > MAX_TITLE_LENGTH:
        return f"Title cannot exceed {MAX_TITLE_LENGTH} characters"
    if draft.location and len(draft.location) > MAX_LOCATION_LENGTH:
        return f"Location cannot exceed {MAX_LOCATION_LENGTH} characters"
    if draft.description and len(draft.description) > MAX_DESCRIPTION_LENGTH:
        return f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters"
    if draft.day_mask & 0b11 == 0:
        return "Please select at least one day"
    if _is_aware(draft.start) != _is_aware(draft.end):
        return "Start and end times must both include a time zone or both omit it"
    if draft.start >= draft.end:
        return "Start time must be before end time"

    if check_weekend_bounds:
        anchor = _match_awareness(draft.weekend_start or draft.start, draft.start)
        if not (is_within_weekend(draft.start, anchor) and is_within_weekend(draft.end, anchor)):
            return "Event must be within the selected weekend"

    return None


def reminder_draft_error(reminder: ReminderDraft) -> Optional[str]:
    if reminder.offset_minutes < 0:
        return "Reminder offset cannot be negative"
    return None


def validate_event_draft(
    draft: EventDraft,
    reminder: Optional[ReminderDraft] = None,
    check_weekend_bounds: bool = True,
) -> None:
    """Raise WeekendValidationError with the first message if the input is invalid"""
    message = event_draft_error(draft, check_weekend_bounds=check_weekend_bounds)
    if message is None and reminder is not None:
        message = reminder_draft_error(reminder)
    if message is not None:
        raise WeekendValidationError(message)


def collect_event_errors(draft: EventDraft, reminder: Optional[ReminderDraft] = None) -> List[str]:
    errors = []
    message = event_draft_error(draft)
    if message:
        errors.append(message)
    if reminder is not None:
        message = reminder_draft_error(reminder)
        if message:
            errors.append(message)
    return errors
