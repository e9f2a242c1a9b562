"""Schedule conflict detection for partnership events."""

from datetime import timedelta

# Events without an end are treated as one hour long
DEFAULT_EVENT_DURATION = timedelta(hours=1)

OVERLAP_SUGGESTION = "Consider adjusting overlapping events to avoid conflicts"


def event_end(event):
    return event.end_date or event.start_date + DEFAULT_EVENT_DURATION


def find_event_conflicts(events) -> list[str]:
    """Describe every pair of events whose time ranges overlap."""
    events = list(events)
    conflicts = []
    for i in range(len(events)):
        for j in range(i + 1, len(events)):
            first, second = events[i], events[j]
            if first.start_date < event_end(second) and second.start_date < event_end(first):
                conflicts.append(
                    f'"{first.title}" overlaps with "{second.title}" on {first.start_date.date().isoformat()}'
                )
    return conflicts


def analyze_events(events) -> dict:
    conflicts = find_event_conflicts(events)
    suggestions = [OVERLAP_SUGGESTION] if conflicts else []
    return {
        "has_conflicts": bool(conflicts),
        "conflicts": conflicts,
        "suggestions": suggestions,
    }
