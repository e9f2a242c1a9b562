"""Lookup and access-control helpers for partnerships, expenses and settlements."""

from sqlalchemy.orm import Session
from fastapi import HTTPException

import models


def get_user_by_email(db: Session, email: str):
    """Get a user by their email address."""
    return db.query(models.User).filter(models.User.email == email).first()


def get_partnership_or_404(db: Session, partnership_id: int):
    """Get a partnership by ID or raise 404 if not found."""
    partnership = db.query(models.Partnership).filter(models.Partnership.id == partnership_id).first()
    if not partnership:
        raise HTTPException(status_code=404, detail="Partnership not found")
    return partnership


def is_partnership_member(partnership: models.Partnership, user_id: int) -> bool:
    return user_id is not None and user_id in (partnership.user1_id, partnership.user2_id)


def verify_partnership_membership(db: Session, partnership_id: int, user_id: int):
    """Get a partnership and verify the user belongs to it, raise 403 if not."""
    partnership = get_partnership_or_404(db, partnership_id)
    if not is_partnership_member(partnership, user_id):
        raise HTTPException(status_code=403, detail="You are not a member of this partnership")
    return partnership


def get_expense_or_404(db: Session, expense_id: int):
    expense = db.query(models.Expense).filter(models.Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


def get_settlement_or_404(db: Session, settlement_id: int):
    settlement = db.query(models.Settlement).filter(models.Settlement.id == settlement_id).first()
    if not settlement:
        raise HTTPException(status_code=404, detail="Settlement not found")
    return settlement
