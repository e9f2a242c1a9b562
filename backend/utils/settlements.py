"""Settlement ledger: settlement state machine, expense status and net balances.

Settlement lifecycle::

    pending --confirm (receiver)--> confirmed
    pending --dispute (receiver)--> rejected

Both resolved states are terminal. Only confirmed settlements ever count
towards a balance, and balances are always recomputed from the confirmed
history rather than patched, so recomputing twice gives the same result.

Sign convention: a positive net balance means the other member owes you.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models
from utils.errors import InvalidTransition, UnbalancedSplit
from utils.money import ZERO, format_amount, parse_amount, share_of, to_storage
from utils.validation import get_expense_or_404, get_partnership_or_404, get_settlement_or_404

logger = logging.getLogger(__name__)

# Settlement states
PENDING = "pending"
CONFIRMED = "confirmed"
REJECTED = "rejected"

# Expense states
EXPENSE_PENDING = "pending"
EXPENSE_PAID = "paid"
EXPENSE_SETTLED = "settled"


def partnership_member_ids(partnership) -> set[int]:
    return {uid for uid in (partnership.user1_id, partnership.user2_id) if uid is not None}


def validate_split_percentages(partnership, split_percentages: dict) -> dict[int, int]:
    """
    Validate an expense's split before it is created.

    Both members of the partnership must have a non-negative integer
    percentage, nobody else may appear, and the total must be exactly 100.

    Returns:
        The split keyed by integer user id.

    Raises:
        UnbalancedSplit: if any of the above does not hold.
    """
    members = partnership_member_ids(partnership)
    if len(members) != 2:
        raise UnbalancedSplit("The partnership needs two members before expenses can be split")

    normalized: dict[int, int] = {}
    for key, value in split_percentages.items():
        try:
            user_id = int(key)
        except (TypeError, ValueError):
            raise UnbalancedSplit(f"Invalid member id in split: {key!r}")
        if user_id not in members:
            raise UnbalancedSplit(f"User {user_id} is not a member of this partnership")
        if user_id in normalized:
            raise UnbalancedSplit(f"User {user_id} appears more than once in the split")
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise UnbalancedSplit(f"Split percentage for user {user_id} must be a non-negative integer")
        normalized[user_id] = value

    missing = members - normalized.keys()
    if missing:
        raise UnbalancedSplit(f"Split is missing members: {sorted(missing)}")

    total = sum(normalized.values())
    if total != 100:
        raise UnbalancedSplit(f"Split percentages must sum to 100, got {total}")
    return normalized


def net_balance(settlements: Iterable, user_id: int) -> Decimal:
    """Confirmed amounts received by the user minus confirmed amounts paid."""
    balance = ZERO
    for settlement in settlements:
        if settlement.status != CONFIRMED:
            continue
        amount = parse_amount(settlement.amount)
        if settlement.receiver_id == user_id:
            balance += amount
        elif settlement.payer_id == user_id:
            balance -= amount
    return balance


def confirmed_total(settlements: Iterable) -> Decimal:
    return sum((parse_amount(s.amount) for s in settlements if s.status == CONFIRMED), ZERO)


def paid_by(settlements: Iterable, user_id: int) -> Decimal:
    return sum(
        (parse_amount(s.amount) for s in settlements if s.status == CONFIRMED and s.payer_id == user_id),
        ZERO
    )


def expense_status_for(amount, shares: dict, settlements: Iterable) -> str:
    """
    Derive an expense's status from its confirmed settlements.

    - pending: confirmed settlements do not yet cover the amount
    - paid: the amount is covered, but some member has paid less than their share
    - settled: the amount is covered and every member has paid their share

    Confirmed totals only grow, so the status never moves backwards.

    Args:
        amount: The expense amount
        shares: Each member's share of the amount, keyed by user id
        settlements: Every settlement recorded against the expense
    """
    settlements = list(settlements)
    if confirmed_total(settlements) < parse_amount(amount):
        return EXPENSE_PENDING

    for user_id, share in shares.items():
        if paid_by(settlements, user_id) < share:
            return EXPENSE_PAID
    return EXPENSE_SETTLED


def expense_shares(db: Session, expense: models.Expense) -> dict[int, Decimal]:
    amount = parse_amount(expense.amount)
    splits = db.query(models.ExpenseSplit).filter(models.ExpenseSplit.expense_id == expense.id).all()
    return {split.user_id: share_of(amount, split.percentage) for split in splits}


def refresh_expense_status(db: Session, expense: models.Expense) -> str:
    """Recompute and store the expense status. The caller commits."""
    settlements = db.query(models.Settlement).filter(
        models.Settlement.expense_id == expense.id
    ).all()
    status = expense_status_for(expense.amount, expense_shares(db, expense), settlements)

    if status != expense.status:
        logger.info(f"Expense {expense.id} status {expense.status} -> {status}")
        expense.status = status
    return status


def compute_balance(db: Session, partnership_id: int, user_id: int) -> Decimal:
    """Net balance of a user across every expense in a partnership."""
    settlements = db.query(models.Settlement).join(
        models.Expense, models.Expense.id == models.Settlement.expense_id
    ).filter(
        models.Expense.partnership_id == partnership_id,
        models.Settlement.status == CONFIRMED
    ).all()
    return net_balance(settlements, user_id)


def _get_balance_row(db: Session, partnership_id: int, user_id: int):
    return db.query(models.PartnershipBalance).filter(
        models.PartnershipBalance.partnership_id == partnership_id,
        models.PartnershipBalance.user_id == user_id
    ).first()


def _get_or_create_balance_row(db: Session, partnership_id: int, user_id: int) -> models.PartnershipBalance:
    row = _get_balance_row(db, partnership_id, user_id)
    if row is not None:
        return row

    try:
        with db.begin_nested():
            row = models.PartnershipBalance(partnership_id=partnership_id, user_id=user_id, net_balance=to_storage(ZERO))
            db.add(row)
    except IntegrityError:
        # Another request inserted the row first
        logger.info(f"Balance row for user {user_id} in partnership {partnership_id} already exists, reusing it")
        row = _get_balance_row(db, partnership_id, user_id)
    return row


def recompute_partnership_balances(db: Session, partnership_id: int) -> dict[int, Decimal]:
    """
    Rewrite the stored PartnershipBalance rows from the confirmed history.

    The caller owns the transaction and commits.
    """
    partnership = get_partnership_or_404(db, partnership_id)
    balances = {}
    now = datetime.utcnow()

    for user_id in sorted(partnership_member_ids(partnership)):
        amount = compute_balance(db, partnership_id, user_id)
        row = _get_or_create_balance_row(db, partnership_id, user_id)
        row.net_balance = to_storage(amount)
        row.updated_at = now
        balances[user_id] = amount

    return balances


def initiate_settlement(
    db: Session,
    expense_id: int,
    payer_id: int,
    receiver_id: int,
    amount,
    method: str,
    payment_link: Optional[str] = None,
    now: Optional[datetime] = None
) -> models.Settlement:
    """Record a pending payment from payer to receiver against an expense."""
    expense = get_expense_or_404(db, expense_id)
    if expense.status == EXPENSE_SETTLED:
        raise InvalidTransition("Expense is already settled")
    if parse_amount(expense.amount) <= 0:
        raise InvalidTransition("Expense has no amount to settle", status_code=400)

    if payer_id == receiver_id:
        raise InvalidTransition("Payer and receiver must be different users", status_code=400)

    partnership = get_partnership_or_404(db, expense.partnership_id)
    members = partnership_member_ids(partnership)
    if payer_id not in members or receiver_id not in members:
        raise InvalidTransition("Payer and receiver must both be members of the partnership", status_code=400)

    amount = parse_amount(amount)
    if amount <= 0:
        raise InvalidTransition("Settlement amount must be positive", status_code=400)

    settlement = models.Settlement(
        expense_id=expense.id,
        payer_id=payer_id,
        receiver_id=receiver_id,
        amount=to_storage(amount),
        method=method,
        payment_link=payment_link,
        status=PENDING,
        initiated_at=now or datetime.utcnow()
    )
    db.add(settlement)
    db.commit()
    db.refresh(settlement)

    logger.info(f"Settlement {settlement.id} initiated: {payer_id} -> {receiver_id} {format_amount(amount)} for expense {expense.id}")
    return settlement


def _resolve(db: Session, settlement_id: int, actor_id: int, action: str, values: dict) -> models.Settlement:
    settlement = get_settlement_or_404(db, settlement_id)

    if settlement.receiver_id != actor_id:
        logger.warning(f"User {actor_id} tried to {action} settlement {settlement_id} owned by receiver {settlement.receiver_id}")
        raise InvalidTransition(f"Only the receiver can {action} this settlement", status_code=403)

    if settlement.status != PENDING:
        logger.warning(f"Rejected {action} of settlement {settlement_id}: already {settlement.status}")
        raise InvalidTransition(f"Settlement is already {settlement.status}")

    # Compare-and-swap: the WHERE clause only matches a still-pending row, so
    # two concurrent confirm/dispute calls cannot both succeed.
    updated = db.query(models.Settlement).filter(
        models.Settlement.id == settlement_id,
        models.Settlement.status == PENDING
    ).update(values, synchronize_session="evaluate")

    if updated != 1:
        db.rollback()
        logger.warning(f"Rejected {action} of settlement {settlement_id}: resolved concurrently")
        raise InvalidTransition("Settlement was already resolved by another request")

    return settlement


def confirm_settlement(db: Session, settlement_id: int, actor_id: int, now: Optional[datetime] = None) -> models.Settlement:
    """Receiver confirms the payment; balances and expense status are recomputed."""
    settlement = _resolve(db, settlement_id, actor_id, "confirm", {
        "status": CONFIRMED,
        "confirmed_at": now or datetime.utcnow()
    })

    expense = get_expense_or_404(db, settlement.expense_id)
    recompute_partnership_balances(db, expense.partnership_id)
    refresh_expense_status(db, expense)
    db.commit()
    db.refresh(settlement)

    logger.info(f"Settlement {settlement.id} confirmed by {actor_id}")
    return settlement


def dispute_settlement(
    db: Session,
    settlement_id: int,
    actor_id: int,
    reason: str,
    now: Optional[datetime] = None
) -> models.Settlement:
    """Receiver rejects the payment. Balances are untouched; the expense stays owed."""
    if not reason or not reason.strip():
        raise InvalidTransition("A reason is required to dispute a settlement", status_code=400)

    settlement = _resolve(db, settlement_id, actor_id, "dispute", {
        "status": REJECTED,
        "rejected_at": now or datetime.utcnow(),
        "rejected_reason": reason.strip()
    })

    expense = get_expense_or_404(db, settlement.expense_id)
    refresh_expense_status(db, expense)
    db.commit()
    db.refresh(settlement)

    logger.info(f"Settlement {settlement.id} disputed by {actor_id}: {settlement.rejected_reason}")
    return settlement
