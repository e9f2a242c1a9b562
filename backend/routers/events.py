"""Events router: calendar entries, conflict analysis and iCalendar export."""

import logging
from datetime import date, datetime, time, timedelta
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy import func
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_user
from utils.dates import strip_timezone, utc_offset_minutes
from utils.events import analyze_events
from utils.ical import generate_ical
from utils.validation import verify_partnership_membership


logger = logging.getLogger(__name__)

router = APIRouter(tags=["events"])


def query_events(db: Session, partnership_id: int, start: Optional[date] = None, end: Optional[date] = None):
    """Events of a partnership touching the inclusive day range [start, end]."""
    query = db.query(models.Event).filter(models.Event.partnership_id == partnership_id)
    if start:
        query = query.filter(
            func.coalesce(models.Event.end_date, models.Event.start_date) >= datetime.combine(start, time.min)
        )
    if end:
        query = query.filter(models.Event.start_date < datetime.combine(end + timedelta(days=1), time.min))
    return query.order_by(models.Event.start_date, models.Event.id)


@router.post("/partnerships/{partnership_id}/events", response_model=schemas.Event)
def create_event(
    partnership_id: int,
    event: schemas.EventCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    verify_partnership_membership(db, partnership_id, current_user.id)

    # One offset per event, so an aware end is read in the start's zone
    end_date = event.end_date
    if end_date is not None and end_date.tzinfo is not None and event.start_date.tzinfo is not None:
        end_date = end_date.astimezone(event.start_date.tzinfo)

    db_event = models.Event(
        partnership_id=partnership_id,
        title=event.title,
        type=event.type,
        start_date=strip_timezone(event.start_date),
        end_date=strip_timezone(end_date),
        utc_offset=utc_offset_minutes(event.start_date),
        description=event.description,
        location=event.location,
        child_name=event.child_name,
        notes=event.notes,
        recurring=event.recurring,
        created_by=current_user.id
    )
    db.add(db_event)
    db.commit()
    db.refresh(db_event)

    logger.info(f"Event {db_event.id} ({db_event.type}) created in partnership {partnership_id}")
    return db_event


@router.get("/partnerships/{partnership_id}/events", response_model=list[schemas.Event])
def read_events(
    partnership_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    start: Optional[date] = None,
    end: Optional[date] = None,
    db: Session = Depends(get_db)
):
    verify_partnership_membership(db, partnership_id, current_user.id)
    return query_events(db, partnership_id, start, end).all()


@router.get("/partnerships/{partnership_id}/events/analyze", response_model=schemas.EventAnalysis)
def analyze_partnership_events(
    partnership_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    verify_partnership_membership(db, partnership_id, current_user.id)
    return analyze_events(query_events(db, partnership_id).all())


@router.get("/partnerships/{partnership_id}/events.ics")
def export_events(
    partnership_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    verify_partnership_membership(db, partnership_id, current_user.id)
    content = generate_ical(query_events(db, partnership_id).all())
    return Response(
        content=content,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="peacepad-calendar.ics"'}
    )


@router.delete("/events/{event_id}")
def delete_event(
    event_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")

    verify_partnership_membership(db, event.partnership_id, current_user.id)
    if event.created_by != current_user.id:
        raise HTTPException(status_code=403, detail="Only the event creator can delete this event")

    db.delete(event)
    db.commit()
    return {"message": "Event deleted successfully"}
