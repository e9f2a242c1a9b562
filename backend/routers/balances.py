"""Balances router: net balances between the two members of a partnership."""

from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_user
from utils.settlements import compute_balance, recompute_partnership_balances
from utils.validation import verify_partnership_membership


router = APIRouter(tags=["balances"])


def _display_name(db: Session, user_id: int) -> str:
    user = db.query(models.User).filter(models.User.id == user_id).first()
    return (user.full_name or user.email) if user else "Unknown User"


@router.get("/partnerships/{partnership_id}/balances", response_model=schemas.PartnershipBalances)
def get_partnership_balances(
    partnership_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    verify_partnership_membership(db, partnership_id, current_user.id)

    # Recompute on read as well; the stored rows are only a cache of this
    recompute_partnership_balances(db, partnership_id)
    db.commit()

    rows = db.query(models.PartnershipBalance).filter(
        models.PartnershipBalance.partnership_id == partnership_id
    ).order_by(models.PartnershipBalance.user_id).all()

    return schemas.PartnershipBalances(
        partnership_id=partnership_id,
        balances=[
            schemas.Balance(
                user_id=row.user_id,
                full_name=_display_name(db, row.user_id),
                net_balance=row.net_balance,
                updated_at=row.updated_at
            )
            for row in rows
        ]
    )


@router.get("/partnerships/{partnership_id}/balances/me", response_model=schemas.Balance)
def get_my_balance(
    partnership_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    verify_partnership_membership(db, partnership_id, current_user.id)
    return schemas.Balance(
        user_id=current_user.id,
        full_name=current_user.full_name or current_user.email,
        net_balance=compute_balance(db, partnership_id, current_user.id)
    )
