"""Settlements router: initiate, confirm and dispute payments against expenses."""

from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_user
from utils.settlements import confirm_settlement, dispute_settlement, initiate_settlement
from utils.validation import get_expense_or_404, verify_partnership_membership


router = APIRouter(tags=["settlements"])


@router.post("/expenses/{expense_id}/settlements", response_model=schemas.Settlement)
def create_settlement(
    expense_id: int,
    settlement: schemas.SettlementCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, expense_id)
    verify_partnership_membership(db, expense.partnership_id, current_user.id)

    return initiate_settlement(
        db,
        expense_id=expense_id,
        payer_id=settlement.payer_id if settlement.payer_id is not None else current_user.id,
        receiver_id=settlement.receiver_id,
        amount=settlement.amount,
        method=settlement.method,
        payment_link=settlement.payment_link
    )


@router.get("/expenses/{expense_id}/settlements", response_model=list[schemas.Settlement])
def read_settlements(
    expense_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, expense_id)
    verify_partnership_membership(db, expense.partnership_id, current_user.id)
    return db.query(models.Settlement).filter(
        models.Settlement.expense_id == expense_id
    ).order_by(models.Settlement.initiated_at, models.Settlement.id).all()


@router.post("/settlements/{settlement_id}/confirm", response_model=schemas.Settlement)
def confirm(
    settlement_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    return confirm_settlement(db, settlement_id, actor_id=current_user.id)


@router.post("/settlements/{settlement_id}/dispute", response_model=schemas.Settlement)
def dispute(
    settlement_id: int,
    body: schemas.SettlementDispute,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    return dispute_settlement(db, settlement_id, actor_id=current_user.id, reason=body.reason)
