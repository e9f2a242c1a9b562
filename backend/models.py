from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Text, ForeignKey, UniqueConstraint
from database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    full_name = Column(String)
    is_active = Column(Boolean, default=True)

class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    token_hash = Column(String, unique=True, index=True)
    expires_at = Column(DateTime)
    revoked = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

class Partnership(Base):
    """Custody-sharing agreement between exactly two users."""
    __tablename__ = "partnerships"

    id = Column(Integer, primary_key=True, index=True)
    user1_id = Column(Integer, ForeignKey("users.id"), index=True)
    user2_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # Null until the invite is accepted
    invite_code = Column(String, unique=True, index=True, nullable=True)
    custody_enabled = Column(Boolean, default=False)
    custody_pattern = Column(String, nullable=True)  # week_on_off | every_other_weekend | two_two_three
    custody_start_date = Column(Date, nullable=True)
    custody_primary_parent = Column(String, nullable=True)  # user1 | user2, treated as user1 when unset
    user1_color = Column(String, nullable=True)
    user2_color = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    partnership_id = Column(Integer, ForeignKey("partnerships.id"), index=True)
    title = Column(String)
    type = Column(String)  # Only vacation/holiday override custody
    start_date = Column(DateTime)
    end_date = Column(DateTime, nullable=True)  # Single day when missing
    utc_offset = Column(Integer, nullable=True)  # Minutes east of UTC of the submitted times; None for floating times
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    child_name = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    recurring = Column(String, nullable=True)  # none | daily | weekly | biweekly | monthly
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.utcnow)

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    partnership_id = Column(Integer, ForeignKey("partnerships.id"), index=True)
    description = Column(String)
    amount = Column(String)  # Decimal string, e.g. "100.00"
    category = Column(String, nullable=True)
    status = Column(String, default="pending")  # pending | paid | settled
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.utcnow)

class ExpenseSplit(Base):
    __tablename__ = "expense_splits"

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), index=True)
    user_id = Column(Integer, ForeignKey("users.id"))
    percentage = Column(Integer)

class Settlement(Base):
    """One payment attempt against an expense, confirmed or disputed by its receiver."""
    __tablename__ = "settlements"

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), index=True)
    payer_id = Column(Integer, ForeignKey("users.id"))
    receiver_id = Column(Integer, ForeignKey("users.id"))
    amount = Column(String)  # Decimal string
    method = Column(String)
    payment_link = Column(String, nullable=True)
    status = Column(String, default="pending", index=True)  # pending | confirmed | rejected
    initiated_at = Column(DateTime, default=datetime.utcnow)
    confirmed_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejected_reason = Column(Text, nullable=True)

class PartnershipBalance(Base):
    """Derived net balance per member, rewritten on every confirmation."""
    __tablename__ = "partnership_balances"
    __table_args__ = (UniqueConstraint("partnership_id", "user_id", name="uq_partnership_balance_user"),)

    id = Column(Integer, primary_key=True, index=True)
    partnership_id = Column(Integer, ForeignKey("partnerships.id"), index=True)
    user_id = Column(Integer, ForeignKey("users.id"))
    net_balance = Column(String, default="0.00")  # Positive means the other member owes this user
    updated_at = Column(DateTime, default=datetime.utcnow)
