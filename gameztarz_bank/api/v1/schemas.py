"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    """Base for responses built from domain dataclasses"""

    model_config = ConfigDict(from_attributes=True)


# Accounts

class RegisterRequest(BaseModel):
    """Request body for POST /v1/accounts"""

    username: str = Field(..., min_length=1, max_length=64, description="Unique account handle")


class TransactionSchema(ORMModel):
    id: str
    type: str
    amount: float
    currency: str
    timestamp: datetime
    description: str
    direction: str
    category: Optional[str] = None


class BudgetSchema(ORMModel):
    id: str
    category: str
    month: str
    amount: float
    spent: float


class RecurringExpenseSchema(ORMModel):
    id: str
    name: str
    amount: float
    currency: str
    category: str
    next_due_date: datetime
    interval: str
    property_id: Optional[str] = None


class LoanSchema(ORMModel):
    id: str
    name: str
    amount: float
    interest_rate: float
    remaining_balance: float
    monthly_payment: float
    next_payment_date: datetime
    status: str


class StakeSchema(ORMModel):
    id: str
    plan_id: str
    amount: float
    currency: str
    start_time: datetime
    end_time: datetime


class UserPropertySchema(ORMModel):
    property_id: str
    ownership_type: str
    acquired_at: datetime


class EnrollmentSchema(ORMModel):
    course_id: str
    enrollment_date: datetime
    status: str


class PayeeSchema(ORMModel):
    id: str
    name: str
    account_number: str


class AccountResponse(ORMModel):
    """Full account state after settlement"""

    id: str
    username: str
    account_number: str
    balances: Dict[str, float]
    crypto: Dict[str, float]
    job_id: Optional[str] = None
    last_login: datetime
    last_salary_date: datetime
    last_miscellaneous_fee_date: Optional[datetime] = None
    transactions: List[TransactionSchema]
    budgets: List[BudgetSchema]
    recurring_expenses: List[RecurringExpenseSchema]
    loans: List[LoanSchema]
    stakes: List[StakeSchema]
    properties: List[UserPropertySchema]
    education: List[EnrollmentSchema]
    payees: List[PayeeSchema]


class AccountLookupResponse(BaseModel):
    """Public view of another account, used to confirm a recipient"""

    id: str
    username: str
    account_number: str


class SettlementResponse(BaseModel):
    account_id: str
    simulated_now: datetime
    modified: bool
    salary_cycles: int
    obligations_paid: int
    obligations_missed: int
    flat_fees: int
    courses_completed: int


class SummaryResponse(BaseModel):
    account_id: str
    simulated_now: datetime
    net_worth_usd: float
    spending_by_category: Dict[str, float]


# Money movement

class TransferRequest(BaseModel):
    recipient_account_number: str = Field(..., min_length=10, max_length=10)
    amount: float = Field(..., gt=0)
    currency: str = "USD"
    category: Optional[str] = None
    description: Optional[str] = Field(None, max_length=200)


class TransferResponse(BaseModel):
    transaction_id: str
    recipient_id: str
    amount: float
    currency: str
    fee: float


class ExchangeRequest(BaseModel):
    sell_currency: str
    buy_currency: str
    amount: float = Field(..., gt=0)


class ExchangeResponse(BaseModel):
    sold: float
    bought: float
    rate: float


class StakeRequest(BaseModel):
    plan_id: str
    amount: float = Field(..., gt=0)
    currency: str


class StakeClaimResponse(BaseModel):
    principal: float
    reward: float
    total: float


class LoanRequest(BaseModel):
    offer_id: str


class PropertyRequest(BaseModel):
    property_id: str
    ownership_type: str = Field(..., pattern="^(buy|rent)$")


class PropertyResponse(BaseModel):
    property_id: str
    ownership_type: str
    tax: float


class SaleResponse(BaseModel):
    property_id: str
    proceeds: float


class EnrollRequest(BaseModel):
    course_id: str


class JobRequest(BaseModel):
    job_id: str


class DepositRequest(BaseModel):
    amount: float = Field(..., gt=0)
    currency: str = "USD"


# Budgets

class BudgetUpdateRequest(BaseModel):
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    amount: float = Field(..., ge=0)


class SpendingResponse(BaseModel):
    account_id: str
    since: Optional[datetime] = None
    spending_by_category: Dict[str, float]


# Payees

class PayeeRequest(BaseModel):
    account_number: str = Field(..., min_length=10, max_length=10)
    name: Optional[str] = None


# Notifications

class NotificationSchema(ORMModel):
    id: uuid.UUID
    title: str
    message: str
    payload: Optional[dict] = None
    read: bool
    created_at: datetime


# Clock and fee pool

class ClockResponse(BaseModel):
    current_date: datetime


class FeePoolResponse(BaseModel):
    fees_collected: float


class ClaimResponse(BaseModel):
    claimed: float
