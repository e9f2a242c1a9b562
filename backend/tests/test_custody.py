from datetime import date, datetime, timedelta

import pytest

from models import Partnership, Event
from utils.custody import (
    get_custody_calendar,
    get_custody_for_date,
    get_parent_color,
    order_overrides,
    resolve_parent_user_id,
)

ANCHOR = date(2024, 1, 1)  # a Monday


def make_partnership(pattern="week_on_off", start=ANCHOR, primary="user1", enabled=True, **kwargs):
    return Partnership(
        id=1,
        user1_id=1,
        user2_id=2,
        custody_enabled=enabled,
        custody_pattern=pattern,
        custody_start_date=start,
        custody_primary_parent=primary,
        **kwargs
    )


def make_event(type, start, end=None, created_by=1, created_at=None, id=None, title="Event"):
    return Event(
        id=id,
        partnership_id=1,
        title=title,
        type=type,
        start_date=start,
        end_date=end,
        created_by=created_by,
        created_at=created_at
    )


def test_week_on_off_alternates_weekly():
    p = make_partnership("week_on_off")

    for offset in range(7):
        assert get_custody_for_date(ANCHOR + timedelta(days=offset), p) == "user1"
    for offset in range(7, 14):
        assert get_custody_for_date(ANCHOR + timedelta(days=offset), p) == "user2"
    assert get_custody_for_date(ANCHOR + timedelta(days=14), p) == "user1"


def test_week_on_off_periodicity():
    p = make_partnership("week_on_off")
    for offset in range(90):
        day = ANCHOR + timedelta(days=offset)
        assert get_custody_for_date(day, p) == get_custody_for_date(day + timedelta(days=14), p)
        assert get_custody_for_date(day, p) != get_custody_for_date(day + timedelta(days=7), p)


def test_week_on_off_with_user2_primary():
    p = make_partnership("week_on_off", primary="user2")
    assert get_custody_for_date(ANCHOR, p) == "user2"
    assert get_custody_for_date(ANCHOR + timedelta(days=7), p) == "user1"


def test_every_other_weekend():
    p = make_partnership("every_other_weekend")

    assert get_custody_for_date(date(2024, 1, 6), p) == "user1"  # Saturday, week 0
    assert get_custody_for_date(date(2024, 1, 7), p) == "user1"  # Sunday, week 0
    assert get_custody_for_date(date(2024, 1, 13), p) == "user2"  # Saturday, week 1
    assert get_custody_for_date(date(2024, 1, 14), p) == "user2"  # Sunday, week 1
    assert get_custody_for_date(date(2024, 1, 20), p) == "user1"  # Saturday, week 2


def test_every_other_weekend_weekdays_stay_with_primary():
    p = make_partnership("every_other_weekend")
    for tuesday in (date(2024, 1, 2), date(2024, 1, 9), date(2024, 1, 16), date(2024, 1, 23)):
        assert get_custody_for_date(tuesday, p) == "user1"

    p = make_partnership("every_other_weekend", primary="user2")
    assert get_custody_for_date(date(2024, 1, 9), p) == "user2"
    assert get_custody_for_date(date(2024, 1, 13), p) == "user1"


def test_two_two_three_first_two_weeks():
    p = make_partnership("two_two_three")
    labels = [get_custody_for_date(ANCHOR + timedelta(days=i), p) for i in range(14)]

    assert labels == [
        "user1", "user1", "user2", "user2", "user1", "user1", "user1",
        "user1", "user1", "user2", "user2", "user2", "user2", "user2",
    ]


def test_two_two_three_splits_fourteen_days_evenly():
    p = make_partnership("two_two_three")
    for window_start in range(21):
        labels = [
            get_custody_for_date(ANCHOR + timedelta(days=window_start + i), p)
            for i in range(14)
        ]
        assert labels.count("user1") == 7
        assert labels.count("user2") == 7


@pytest.mark.parametrize("pattern", ["week_on_off", "every_other_weekend", "two_two_three"])
def test_anchor_day_belongs_to_primary(pattern):
    assert get_custody_for_date(ANCHOR, make_partnership(pattern)) == "user1"
    assert get_custody_for_date(ANCHOR, make_partnership(pattern, primary="user2")) == "user2"


@pytest.mark.parametrize("pattern", ["week_on_off", "every_other_weekend", "two_two_three"])
def test_days_before_anchor_are_unassigned(pattern):
    p = make_partnership(pattern)
    assert get_custody_for_date(date(2023, 12, 31), p) is None
    assert get_custody_for_date(date(2023, 1, 1), p) is None


def test_unassigned_when_not_configured():
    assert get_custody_for_date(ANCHOR, None) is None
    assert get_custody_for_date(ANCHOR, make_partnership(enabled=False)) is None
    assert get_custody_for_date(ANCHOR, make_partnership(pattern=None)) is None
    assert get_custody_for_date(ANCHOR, make_partnership(start=None)) is None


def test_unknown_pattern_is_unassigned():
    assert get_custody_for_date(ANCHOR, make_partnership("alternating_days")) is None


def test_missing_or_invalid_primary_defaults_to_user1():
    assert get_custody_for_date(ANCHOR, make_partnership(primary=None)) == "user1"
    assert get_custody_for_date(ANCHOR, make_partnership(primary="grandma")) == "user1"


def test_time_of_day_is_ignored():
    p = make_partnership("week_on_off")
    assert get_custody_for_date(datetime(2024, 1, 7, 23, 59), p) == "user1"
    assert get_custody_for_date(datetime(2024, 1, 8, 0, 0), p) == "user2"
    assert get_custody_for_date("2024-01-08", p) == "user2"


def test_vacation_overrides_pattern_for_its_creator():
    p = make_partnership("week_on_off")
    vacation = make_event("vacation", datetime(2024, 1, 3, 9, 0), datetime(2024, 1, 5, 18, 0), created_by=2)

    assert get_custody_for_date(date(2024, 1, 2), p, [vacation]) == "user1"
    assert get_custody_for_date(date(2024, 1, 3), p, [vacation]) == "user2"
    assert get_custody_for_date(date(2024, 1, 4), p, [vacation]) == "user2"
    assert get_custody_for_date(date(2024, 1, 5), p, [vacation]) == "user2"  # end day is inclusive
    assert get_custody_for_date(date(2024, 1, 6), p, [vacation]) == "user1"


def test_single_day_holiday_without_end_date():
    p = make_partnership("week_on_off")
    holiday = make_event("holiday", datetime(2024, 1, 10, 12, 0), created_by=1)

    assert get_custody_for_date(date(2024, 1, 10), p, [holiday]) == "user1"
    assert get_custody_for_date(date(2024, 1, 11), p, [holiday]) == "user2"


def test_other_event_types_do_not_override():
    p = make_partnership("week_on_off")
    events = [
        make_event("pickup", datetime(2024, 1, 3, 15, 0), created_by=2),
        make_event("appointment", datetime(2024, 1, 3, 10, 0), created_by=2),
        make_event("custody_switch", datetime(2024, 1, 3, 18, 0), created_by=2),
    ]
    assert get_custody_for_date(date(2024, 1, 3), p, events) == "user1"


def test_override_applies_without_a_pattern():
    p = make_partnership(enabled=False, pattern=None, start=None)
    vacation = make_event("vacation", datetime(2024, 7, 1), datetime(2024, 7, 14), created_by=2)

    assert get_custody_for_date(date(2024, 7, 4), p, [vacation]) == "user2"
    assert get_custody_for_date(date(2024, 7, 15), p, [vacation]) is None


def test_override_by_non_member_is_ignored():
    p = make_partnership("week_on_off")
    vacation = make_event("vacation", datetime(2024, 1, 3), created_by=99)
    orphan = make_event("vacation", datetime(2024, 1, 3), created_by=None)
    assert get_custody_for_date(date(2024, 1, 3), p, [vacation, orphan]) == "user1"


def test_first_matching_override_wins():
    p = make_partnership("week_on_off")
    by_user1 = make_event("vacation", datetime(2024, 1, 10), datetime(2024, 1, 12), created_by=1)
    by_user2 = make_event("holiday", datetime(2024, 1, 11), created_by=2)

    assert get_custody_for_date(date(2024, 1, 11), p, [by_user1, by_user2]) == "user1"
    assert get_custody_for_date(date(2024, 1, 11), p, [by_user2, by_user1]) == "user2"


def test_order_overrides_puts_newest_first():
    older = make_event("vacation", datetime(2024, 1, 10), datetime(2024, 1, 12), created_by=1,
                       created_at=datetime(2023, 12, 1), id=1)
    newer = make_event("holiday", datetime(2024, 1, 11), created_by=2,
                       created_at=datetime(2023, 12, 20), id=2)
    pickup = make_event("pickup", datetime(2024, 1, 11), created_by=2,
                        created_at=datetime(2023, 12, 25), id=3)

    ordered = order_overrides([older, pickup, newer])
    assert ordered == [newer, older]

    p = make_partnership("week_on_off")
    assert get_custody_for_date(date(2024, 1, 11), p, ordered) == "user2"
    assert get_custody_for_date(date(2024, 1, 10), p, ordered) == "user1"


def test_calendar_covers_range_inclusive():
    p = make_partnership("week_on_off")
    calendar = get_custody_calendar(p, [], date(2024, 1, 5), date(2024, 1, 9))

    assert [day for day, _ in calendar] == [
        date(2024, 1, 5), date(2024, 1, 6), date(2024, 1, 7), date(2024, 1, 8), date(2024, 1, 9)
    ]
    assert [label for _, label in calendar] == ["user1", "user1", "user1", "user2", "user2"]


def test_parent_colors_and_user_ids():
    p = make_partnership(user1_color="#ff0000")

    assert get_parent_color("user1", p) == "#ff0000"
    assert get_parent_color("user2", p) == "#10b981"
    assert get_parent_color(None, p) is None

    assert resolve_parent_user_id("user1", p) == 1
    assert resolve_parent_user_id("user2", p) == 2
    assert resolve_parent_user_id(None, p) is None
