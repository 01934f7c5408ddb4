"""Domain models - pure Python dataclasses representing business entities"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

FIAT_CURRENCIES = ("USD", "NGN", "EUR")
CRYPTO_CURRENCIES = ("BTC", "ETH", "LTC", "XRP", "DOGE", "GMZ")

BUDGET_CATEGORIES = (
    "Food",
    "Transport",
    "Shopping",
    "Entertainment",
    "Housing",
    "Utilities",
    "Loans",
    "Other",
)

TRANSACTION_TYPES = (
    "deposit",
    "withdrawal",
    "transfer",
    "crypto_buy",
    "crypto_sell",
    "staking_reward",
    "staking_lock",
    "fee",
    "expense",
    "loan_repayment",
    "loan_disbursement",
    "salary",
    "revenue_claim",
)

INCOMING = "incoming"
OUTGOING = "outgoing"


@dataclass
class Transaction:
    """Immutable ledger entry; amount is a magnitude, direction carries the sign"""

    id: str
    type: str
    amount: float
    currency: str
    timestamp: datetime
    description: str
    direction: str  # "incoming" or "outgoing"
    category: Optional[str] = None


@dataclass
class Budget:
    """Monthly spending aggregate for one category"""

    id: str
    category: str
    month: str  # e.g. "2024-07"
    amount: float = 0.0
    spent: float = 0.0


@dataclass
class RecurringExpense:
    """Rent or maintenance billed on a fixed cadence"""

    id: str
    name: str
    amount: float
    currency: str
    category: str
    next_due_date: datetime
    interval: str  # "monthly" or "annually"
    property_id: Optional[str] = None


@dataclass
class Loan:
    id: str
    name: str
    amount: float
    interest_rate: float
    remaining_balance: float
    monthly_payment: float
    next_payment_date: datetime
    status: str = "active"  # "active" or "repaid"


@dataclass
class Stake:
    id: str
    plan_id: str
    amount: float
    currency: str
    start_time: datetime
    end_time: datetime


@dataclass
class UserProperty:
    property_id: str
    ownership_type: str  # "buy" or "rent"
    acquired_at: datetime


@dataclass
class Enrollment:
    course_id: str
    enrollment_date: datetime
    status: str = "in-progress"  # "in-progress" or "completed"


@dataclass
class Payee:
    id: str
    name: str
    account_number: str


@dataclass
class Account:
    """A registered user's complete financial state"""

    id: str
    username: str
    account_number: str
    balances: Dict[str, float]
    crypto: Dict[str, float]
    last_login: datetime
    last_salary_date: datetime
    last_miscellaneous_fee_date: Optional[datetime] = None
    job_id: Optional[str] = None
    transactions: List[Transaction] = field(default_factory=list)
    budgets: List[Budget] = field(default_factory=list)
    recurring_expenses: List[RecurringExpense] = field(default_factory=list)
    loans: List[Loan] = field(default_factory=list)
    stakes: List[Stake] = field(default_factory=list)
    properties: List[UserProperty] = field(default_factory=list)
    education: List[Enrollment] = field(default_factory=list)
    payees: List[Payee] = field(default_factory=list)
    # Stored row version this copy was loaded at; 0 until first saved
    version: int = field(default=0, compare=False, repr=False)

    def _wallet(self, currency: str) -> Dict[str, float]:
        if currency in FIAT_CURRENCIES:
            return self.balances
        if currency in CRYPTO_CURRENCIES:
            return self.crypto
        raise KeyError(currency)

    def balance(self, currency: str) -> float:
        return self._wallet(currency).get(currency, 0.0)

    def adjust(self, currency: str, delta: float) -> float:
        """Add delta (may be negative) to a balance and return the new value"""
        wallet = self._wallet(currency)
        new_value = wallet.get(currency, 0.0) + delta
        if not math.isfinite(new_value):
            raise ValueError(f"Balance for {currency} would become {new_value}")
        wallet[currency] = new_value
        return new_value


@dataclass
class PlatformAccount(Account):
    """The platform's own account; also owns the shared fee pool"""

    fees_collected: float = 0.0

