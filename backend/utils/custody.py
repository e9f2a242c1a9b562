"""Custody schedule calculation.

Given a partnership's custody configuration and its vacation/holiday events,
work out which parent has the child on a calendar day. Everything here is a
pure function over its inputs: partnerships and events only need the model
attributes, so unsaved ``models`` instances and API schemas work equally well.

Unset or incomplete configuration never raises. It yields None, which callers
display as "custody unassigned".
"""

from datetime import date, datetime
from typing import Iterable, Optional

from utils.dates import DateLike, date_range, days_between, is_weekend, start_of_day

WEEK_ON_OFF = "week_on_off"
EVERY_OTHER_WEEKEND = "every_other_weekend"
TWO_TWO_THREE = "two_two_three"
CUSTODY_PATTERNS = (WEEK_ON_OFF, EVERY_OTHER_WEEKEND, TWO_TWO_THREE)

PARENT_LABELS = ("user1", "user2")
OVERRIDE_EVENT_TYPES = ("vacation", "holiday")

DEFAULT_PARENT_COLORS = {
    "user1": "#3b82f6",  # soft blue
    "user2": "#10b981",  # soft green
}


def is_override(event) -> bool:
    return event.type in OVERRIDE_EVENT_TYPES


def order_overrides(events: Iterable) -> list:
    """
    Return the override events with the most recently created first.

    get_custody_for_date() takes the first matching override in list order,
    so passing events through here makes the newest vacation/holiday win when
    two of them cover the same day.
    """
    overrides = [e for e in events if is_override(e)]
    return sorted(
        overrides,
        key=lambda e: (e.created_at or datetime.min, e.id or 0),
        reverse=True,
    )


def _override_parent(target: date, partnership, events: Iterable) -> Optional[str]:
    for event in events:
        if not is_override(event) or event.created_by is None:
            continue

        event_start = start_of_day(event.start_date)
        event_end = start_of_day(event.end_date) if event.end_date else event_start
        if not event_start <= target <= event_end:
            continue

        # The event's creator asserts custody for its range
        if event.created_by == partnership.user1_id:
            return "user1"
        if event.created_by == partnership.user2_id:
            return "user2"
    return None


def get_custody_for_date(day: DateLike, partnership, events: Optional[Iterable] = None) -> Optional[str]:
    """
    Return "user1", "user2" or None for the parent holding custody on a day.

    Algorithm:
    1. Vacation/holiday events are checked in the order given; the first one
       covering the day wins and assigns its creator.
    2. Otherwise the regular pattern applies, counted in whole days from
       custody_start_date. Days before the start date have no assignment.
    """
    if partnership is None:
        return None

    target = start_of_day(day)

    if events:
        override = _override_parent(target, partnership, events)
        if override:
            return override

    if not partnership.custody_enabled or not partnership.custody_pattern or not partnership.custody_start_date:
        return None

    days_since_start = days_between(partnership.custody_start_date, target)
    if days_since_start < 0:
        return None

    primary = partnership.custody_primary_parent or "user1"
    if primary not in PARENT_LABELS:
        primary = "user1"
    secondary = "user2" if primary == "user1" else "user1"

    week_number = days_since_start // 7
    pattern = partnership.custody_pattern

    if pattern == WEEK_ON_OFF:
        return primary if week_number % 2 == 0 else secondary

    if pattern == EVERY_OTHER_WEEKEND:
        # Primary keeps every weekday; weekends alternate by week
        if not is_weekend(target):
            return primary
        return primary if week_number % 2 == 0 else secondary

    if pattern == TWO_TWO_THREE:
        # [P, P, S, S, x, x, x] where the 3-day block alternates weekly
        day_in_cycle = days_since_start % 7
        if day_in_cycle < 2:
            return primary
        if day_in_cycle < 4:
            return secondary
        return primary if week_number % 2 == 0 else secondary

    return None


def get_custody_calendar(partnership, events: Iterable, start: DateLike, end: DateLike) -> list[tuple[date, Optional[str]]]:
    """Custody label for every day from start to end inclusive (month view)."""
    events = list(events or [])
    return [(day, get_custody_for_date(day, partnership, events)) for day in date_range(start, end)]


def get_parent_color(label: Optional[str], partnership) -> Optional[str]:
    if not label or partnership is None:
        return None
    if label == "user1":
        return partnership.user1_color or DEFAULT_PARENT_COLORS["user1"]
    return partnership.user2_color or DEFAULT_PARENT_COLORS["user2"]


def resolve_parent_user_id(label: Optional[str], partnership) -> Optional[int]:
    if label == "user1":
        return partnership.user1_id
    if label == "user2":
        return partnership.user2_id
    return None
