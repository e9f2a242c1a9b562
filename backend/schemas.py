from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, EmailStr, field_validator, model_validator
from typing import Optional

from utils.custody import CUSTODY_PATTERNS, PARENT_LABELS
from utils.money import quantize

class UserBase(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None

class UserCreate(UserBase):
    password: str

class User(UserBase):
    id: int
    is_active: bool

    class Config:
        from_attributes = True

class Token(BaseModel):
    access_token: str
    token_type: str
    refresh_token: Optional[str] = None  # Not reissued on refresh

class RefreshTokenRequest(BaseModel):
    refresh_token: str

# Partnerships
class PartnershipCreate(BaseModel):
    partner_email: Optional[EmailStr] = None  # Without a partner an invite code is issued
    user1_color: Optional[str] = None
    user2_color: Optional[str] = None

class PartnershipJoin(BaseModel):
    invite_code: str

class CustodySettings(BaseModel):
    custody_enabled: bool
    custody_pattern: Optional[str] = None
    custody_start_date: Optional[date] = None
    custody_primary_parent: str = "user1"

    @field_validator('custody_pattern')
    @classmethod
    def validate_pattern(cls, v):
        if v is not None and v not in CUSTODY_PATTERNS:
            raise ValueError(f'Custody pattern must be one of {list(CUSTODY_PATTERNS)}')
        return v

    @field_validator('custody_primary_parent')
    @classmethod
    def validate_primary_parent(cls, v):
        if v not in PARENT_LABELS:
            raise ValueError(f'Primary parent must be one of {list(PARENT_LABELS)}')
        return v

    @model_validator(mode='after')
    def require_pattern_when_enabled(self):
        if self.custody_enabled and (not self.custody_pattern or not self.custody_start_date):
            raise ValueError('A custody pattern and start date are required to enable the schedule')
        return self

class Partnership(BaseModel):
    id: int
    user1_id: int
    user2_id: Optional[int] = None
    invite_code: Optional[str] = None
    custody_enabled: bool = False
    custody_pattern: Optional[str] = None
    custody_start_date: Optional[date] = None
    custody_primary_parent: Optional[str] = None
    user1_color: Optional[str] = None
    user2_color: Optional[str] = None

    class Config:
        from_attributes = True

# Events
class EventCreate(BaseModel):
    title: str
    type: str  # vacation, holiday, pickup, dropoff, custody_switch, appointment, other
    start_date: datetime
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    location: Optional[str] = None
    child_name: Optional[str] = None
    notes: Optional[str] = None
    recurring: Optional[str] = None

    @model_validator(mode='after')
    def validate_range(self):
        if self.end_date is not None and self.end_date.replace(tzinfo=None) < self.start_date.replace(tzinfo=None):
            raise ValueError('end_date must not be before start_date')
        return self

class Event(BaseModel):
    id: int
    partnership_id: int
    title: str
    type: str
    start_date: datetime
    end_date: Optional[datetime] = None
    utc_offset: Optional[int] = None
    description: Optional[str] = None
    location: Optional[str] = None
    child_name: Optional[str] = None
    notes: Optional[str] = None
    recurring: Optional[str] = None
    created_by: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class EventAnalysis(BaseModel):
    has_conflicts: bool
    conflicts: list[str]
    suggestions: list[str]

# Custody
class CustodyDay(BaseModel):
    day: date
    parent: Optional[str] = None  # user1, user2 or None when unassigned
    user_id: Optional[int] = None
    color: Optional[str] = None

# Expenses
class ExpenseCreate(BaseModel):
    description: str
    amount: Decimal
    category: Optional[str] = None
    split_percentages: dict[int, int]  # user_id -> percentage, must sum to 100

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        # Stored in cents, so judge the rounded value
        v = quantize(v)
        if v <= 0:
            raise ValueError('Expense amount must be at least 0.01')
        return v

class Expense(BaseModel):
    id: int
    partnership_id: int
    description: str
    amount: Decimal
    category: Optional[str] = None
    status: str
    created_by: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ExpenseSplitDetail(BaseModel):
    user_id: int
    percentage: int
    share: Decimal

class SettlementCreate(BaseModel):
    payer_id: Optional[int] = None  # Defaults to the current user
    receiver_id: int
    amount: Decimal
    method: str
    payment_link: Optional[str] = None

class SettlementDispute(BaseModel):
    reason: str

class Settlement(BaseModel):
    id: int
    expense_id: int
    payer_id: int
    receiver_id: int
    amount: Decimal
    method: str
    payment_link: Optional[str] = None
    status: str
    initiated_at: datetime
    confirmed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejected_reason: Optional[str] = None

    class Config:
        from_attributes = True

class ExpenseWithDetails(Expense):
    splits: list[ExpenseSplitDetail]
    settlements: list[Settlement] = []
    confirmed_total: Decimal
    outstanding: Decimal

# Balances
class Balance(BaseModel):
    """Net balance of one member. Positive means the other member owes them."""
    user_id: int
    full_name: str
    net_balance: Decimal
    updated_at: Optional[datetime] = None

class PartnershipBalances(BaseModel):
    partnership_id: int
    balances: list[Balance]
