"""Partnerships router: create, join by invite code, custody configuration."""

import logging
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import models
import schemas
import auth
from database import get_db
from dependencies import get_current_user
from utils.validation import get_user_by_email, verify_partnership_membership


logger = logging.getLogger(__name__)

router = APIRouter(tags=["partnerships"])


def _unique_invite_code(db: Session) -> str:
    while True:
        code = auth.create_invite_code()
        exists = db.query(models.Partnership).filter(models.Partnership.invite_code == code).first()
        if not exists:
            return code


@router.post("/partnerships", response_model=schemas.Partnership)
def create_partnership(
    partnership: schemas.PartnershipCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    partner_id = None
    if partnership.partner_email:
        partner = get_user_by_email(db, partnership.partner_email)
        if not partner:
            raise HTTPException(status_code=404, detail="No user with that email")
        if partner.id == current_user.id:
            raise HTTPException(status_code=400, detail="You cannot partner with yourself")
        partner_id = partner.id

    db_partnership = models.Partnership(
        user1_id=current_user.id,
        user2_id=partner_id,
        invite_code=None if partner_id else _unique_invite_code(db),
        user1_color=partnership.user1_color,
        user2_color=partnership.user2_color,
        custody_enabled=False
    )
    db.add(db_partnership)
    db.commit()
    db.refresh(db_partnership)

    logger.info(f"Partnership {db_partnership.id} created by user {current_user.id}")
    return db_partnership


@router.post("/partnerships/join", response_model=schemas.Partnership)
def join_partnership(
    join: schemas.PartnershipJoin,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    code = join.invite_code.strip().upper()
    partnership = db.query(models.Partnership).filter(models.Partnership.invite_code == code).first()
    if not partnership:
        raise HTTPException(status_code=404, detail="Invalid invite code")
    if partnership.user1_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot join your own partnership")
    if partnership.user2_id is not None:
        raise HTTPException(status_code=400, detail="Partnership already has two members")

    partnership.user2_id = current_user.id
    partnership.invite_code = None
    db.commit()
    db.refresh(partnership)

    logger.info(f"User {current_user.id} joined partnership {partnership.id}")
    return partnership


@router.get("/partnerships", response_model=list[schemas.Partnership])
def read_partnerships(
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    return db.query(models.Partnership).filter(
        (models.Partnership.user1_id == current_user.id) |
        (models.Partnership.user2_id == current_user.id)
    ).all()


@router.get("/partnerships/{partnership_id}", response_model=schemas.Partnership)
def read_partnership(
    partnership_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    return verify_partnership_membership(db, partnership_id, current_user.id)


@router.put("/partnerships/{partnership_id}/custody", response_model=schemas.Partnership)
def update_custody_settings(
    partnership_id: int,
    settings: schemas.CustodySettings,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    partnership = verify_partnership_membership(db, partnership_id, current_user.id)

    # Changing the pattern re-attributes past days too; there is no history of old configurations
    if partnership.custody_pattern and partnership.custody_pattern != settings.custody_pattern:
        logger.warning(
            f"Partnership {partnership_id} custody pattern changed "
            f"{partnership.custody_pattern} -> {settings.custody_pattern}"
        )

    partnership.custody_enabled = settings.custody_enabled
    partnership.custody_pattern = settings.custody_pattern
    partnership.custody_start_date = settings.custody_start_date
    partnership.custody_primary_parent = settings.custody_primary_parent
    db.commit()
    db.refresh(partnership)
    return partnership
