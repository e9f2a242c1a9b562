"""iCalendar (RFC 5545) export of partnership events.

The output imports into Google Calendar, Apple Calendar and Outlook.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from utils.events import event_end

DEFAULT_CALENDAR_NAME = "PeacePad Custody Schedule"

CATEGORY_MAP = {
    "pickup": "CUSTODY,PICKUP",
    "dropoff": "CUSTODY,DROPOFF",
    "custody_switch": "CUSTODY",
    "appointment": "APPOINTMENT",
    "other": "PERSONAL",
}

RRULE_MAP = {
    "daily": "FREQ=DAILY",
    "weekly": "FREQ=WEEKLY",
    "biweekly": "FREQ=WEEKLY;INTERVAL=2",
    "monthly": "FREQ=MONTHLY",
}


def format_utc_timestamp(value: datetime) -> str:
    """YYYYMMDDTHHMMSSZ. Naive datetimes are taken as UTC, as `created_at` is stored."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y%m%dT%H%M%SZ")


def format_timestamp(value: datetime, utc_offset: Optional[int] = None) -> str:
    """
    Format an event time.

    Stored event times are wall-clock. With a known offset (minutes east of UTC)
    they are converted to UTC; without one they are written as floating local
    time, which calendar clients show unchanged in the viewer's zone.
    """
    if value.tzinfo is not None:
        return format_utc_timestamp(value)
    if utc_offset is not None:
        return format_utc_timestamp(value - timedelta(minutes=utc_offset))
    return value.strftime("%Y%m%dT%H%M%S")


def escape_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
        .replace("\r", "")
    )


def event_category(event_type: str) -> str:
    return CATEGORY_MAP.get(event_type, "PERSONAL")


def recurrence_rule(recurring) -> str | None:
    if not recurring or recurring == "none":
        return None
    return RRULE_MAP.get(recurring)


def generate_event(event) -> str:
    offset = event.utc_offset
    lines = [
        "BEGIN:VEVENT",
        f"UID:{event.id}@peacepad.app",
        f"DTSTAMP:{format_utc_timestamp(event.created_at or datetime.utcnow())}",
        f"DTSTART:{format_timestamp(event.start_date, offset)}",
        f"DTEND:{format_timestamp(event_end(event), offset)}",
        f"SUMMARY:{escape_text(event.title or '')}",
    ]

    description_parts = []
    if event.description:
        description_parts.append(event.description)
    if event.child_name:
        description_parts.append(f"Child: {event.child_name}")
    if event.notes:
        description_parts.append(f"Notes: {event.notes}")
    if description_parts:
        lines.append(f"DESCRIPTION:{escape_text(chr(10).join(description_parts))}")

    if event.location:
        lines.append(f"LOCATION:{escape_text(event.location)}")

    lines.append(f"CATEGORIES:{event_category(event.type)}")

    rrule = recurrence_rule(event.recurring)
    if rrule:
        lines.append(f"RRULE:{rrule}")

    lines.append("END:VEVENT")
    return "\r\n".join(lines)


def generate_ical(events, calendar_name: str = DEFAULT_CALENDAR_NAME) -> str:
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//PeacePad//Co-Parenting Calendar//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{escape_text(calendar_name)}",
    ]
    for event in events:
        lines.append(generate_event(event))
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines)
