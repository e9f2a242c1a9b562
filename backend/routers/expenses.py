"""Expenses router: create and read shared expenses of a partnership."""

import logging
from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from dependencies import get_current_user
from utils.errors import ValidationError
from utils.money import ZERO, parse_amount, share_of, to_storage
from utils.settlements import EXPENSE_PENDING, confirmed_total, validate_split_percentages
from utils.validation import get_expense_or_404, verify_partnership_membership


logger = logging.getLogger(__name__)

router = APIRouter(tags=["expenses"])


@router.post("/partnerships/{partnership_id}/expenses", response_model=schemas.Expense)
def create_expense(
    partnership_id: int,
    expense: schemas.ExpenseCreate,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    partnership = verify_partnership_membership(db, partnership_id, current_user.id)

    # Raises UnbalancedSplit before anything is written
    split = validate_split_percentages(partnership, expense.split_percentages)
    amount = parse_amount(expense.amount)
    if amount <= 0:
        raise ValidationError("Expense amount must be at least 0.01")

    db_expense = models.Expense(
        partnership_id=partnership_id,
        description=expense.description,
        amount=to_storage(amount),
        category=expense.category,
        status=EXPENSE_PENDING,
        created_by=current_user.id
    )
    db.add(db_expense)
    db.commit()
    db.refresh(db_expense)

    for user_id, percentage in split.items():
        db.add(models.ExpenseSplit(expense_id=db_expense.id, user_id=user_id, percentage=percentage))
    db.commit()

    logger.info(f"Expense {db_expense.id} ({db_expense.amount}) created in partnership {partnership_id}")
    return db_expense


@router.get("/partnerships/{partnership_id}/expenses", response_model=list[schemas.Expense])
def read_expenses(
    partnership_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    verify_partnership_membership(db, partnership_id, current_user.id)
    return db.query(models.Expense).filter(
        models.Expense.partnership_id == partnership_id
    ).order_by(models.Expense.created_at.desc(), models.Expense.id.desc()).all()


@router.get("/expenses/{expense_id}", response_model=schemas.ExpenseWithDetails)
def get_expense(
    expense_id: int,
    current_user: Annotated[models.User, Depends(get_current_user)],
    db: Session = Depends(get_db)
):
    expense = get_expense_or_404(db, expense_id)
    verify_partnership_membership(db, expense.partnership_id, current_user.id)

    amount = parse_amount(expense.amount)
    splits = db.query(models.ExpenseSplit).filter(models.ExpenseSplit.expense_id == expense_id).all()
    settlements = db.query(models.Settlement).filter(
        models.Settlement.expense_id == expense_id
    ).order_by(models.Settlement.initiated_at, models.Settlement.id).all()
    paid = confirmed_total(settlements)

    return schemas.ExpenseWithDetails(
        id=expense.id,
        partnership_id=expense.partnership_id,
        description=expense.description,
        amount=amount,
        category=expense.category,
        status=expense.status,
        created_by=expense.created_by,
        created_at=expense.created_at,
        splits=[
            schemas.ExpenseSplitDetail(
                user_id=split.user_id,
                percentage=split.percentage,
                share=share_of(amount, split.percentage)
            )
            for split in splits
        ],
        settlements=[schemas.Settlement.model_validate(s) for s in settlements],
        confirmed_total=paid,
        outstanding=max(amount - paid, ZERO)
    )
