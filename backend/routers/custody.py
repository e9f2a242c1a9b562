"""Custody router: who has the child on a day, and month views."""

from datetime import date
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_user
from utils.custody import (
    get_custody_calendar,
    get_custody_for_date,
    get_parent_color,
    order_overrides,
    resolve_parent_user_id,
)
from utils.validation import verify_partnership_membership


router = APIRouter(tags=["custody"])

MAX_CALENDAR_DAYS = 366


def custody_overrides(db: Session, partnership_id: int) -> list[models.Event]:
    """Vacation/holiday events, newest first, so the latest override wins."""
    events = db.query(models.Event).filter(models.Event.partnership_id == partnership_id).all()
    return order_overrides(events)


def _custody_day(day: date, parent, partnership) -> schemas.CustodyDay:
    return schemas.CustodyDay(
        day=day,
        parent=parent,
        user_id=resolve_parent_user_id(parent, partnership),
        color=get_parent_color(parent, partnership)
    )


@router.get("/partnerships/{partnership_id}/custody", response_model=schemas.CustodyDay)
def read_custody_for_date(
    partnership_id: int,
    day: Annotated[date, Query(alias="date")],
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    partnership = verify_partnership_membership(db, partnership_id, current_user.id)
    parent = get_custody_for_date(day, partnership, custody_overrides(db, partnership_id))
    return _custody_day(day, parent, partnership)


@router.get("/partnerships/{partnership_id}/custody/calendar", response_model=list[schemas.CustodyDay])
def read_custody_calendar(
    partnership_id: int,
    start: date,
    end: date,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    partnership = verify_partnership_membership(db, partnership_id, current_user.id)

    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    if (end - start).days + 1 > MAX_CALENDAR_DAYS:
        raise HTTPException(status_code=400, detail=f"Calendar range is limited to {MAX_CALENDAR_DAYS} days")

    overrides = custody_overrides(db, partnership_id)
    return [
        _custody_day(day, parent, partnership)
        for day, parent in get_custody_calendar(partnership, overrides, start, end)
    ]
