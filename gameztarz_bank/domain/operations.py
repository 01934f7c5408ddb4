"""Point-in-time financial operations - one-shot state transitions on accounts"""

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from gameztarz_bank.domain.catalog import (
    CONVERSION_RATES,
    COURSES,
    JOBS,
    LOAN_OFFERS,
    PROPERTIES,
    STAKING_PLANS,
    lookup,
)
from gameztarz_bank.domain.exceptions import (
    AlreadyEnrolledError,
    DuplicateLoanError,
    DuplicatePayeeError,
    InsufficientFundsError,
    InvalidAmountError,
    PropertyAlreadyAcquiredError,
    PropertyNotHeldError,
    QualificationRequiredError,
    RecipientNotFoundError,
    StakeNotFoundError,
    StakeNotMaturedError,
    UnsupportedCurrencyError,
    ValidationError,
)
from gameztarz_bank.domain.ledger import record_transaction
from gameztarz_bank.domain.models import (
    Account,
    CRYPTO_CURRENCIES,
    Enrollment,
    FIAT_CURRENCIES,
    INCOMING,
    Loan,
    OUTGOING,
    Payee,
    RecurringExpense,
    Stake,
    Transaction,
    UserProperty,
)
from gameztarz_bank.utils.date_utils import add_months, add_years, first_of_next_month

TRANSFER_FEE_RATE = 0.05
HOUSING_TAX_RATE = 0.10
OPENING_BALANCE_USD = 1000.0


@dataclass
class TransferResult:
    sender_transaction: Transaction
    recipient_transaction: Transaction
    fee: float


@dataclass
class ExchangeResult:
    sold: float
    bought: float
    rate: float


@dataclass
class StakeClaim:
    principal: float
    reward: float

    @property
    def total(self) -> float:
        return self.principal + self.reward


def _check_amount(amount: float) -> None:
    if not isinstance(amount, (int, float)) or not math.isfinite(amount) or amount <= 0:
        raise InvalidAmountError("Amount must be a positive number")


def _check_currency(currency: str) -> None:
    if currency not in FIAT_CURRENCIES and currency not in CRYPTO_CURRENCIES:
        raise UnsupportedCurrencyError(f"Unsupported currency: {currency}")


def _require_funds(account: Account, currency: str, needed: float, message: str) -> None:
    if account.balance(currency) < needed:
        raise InsufficientFundsError(message)


def open_account(account_id: str, username: str, account_number: str, now: datetime) -> Account:
    """New account with the opening USD balance and all watermarks at `now`"""
    if not username or not username.strip():
        raise ValidationError("Username is required")
    return Account(
        id=account_id,
        username=username,
        account_number=account_number,
        balances={"USD": OPENING_BALANCE_USD, "NGN": 0.0, "EUR": 0.0},
        crypto={coin: 0.0 for coin in CRYPTO_CURRENCIES},
        last_login=now,
        last_salary_date=now,
        last_miscellaneous_fee_date=now,
    )


def transfer(
    sender: Account,
    recipient: Account,
    amount: float,
    currency: str,
    now: datetime,
    category: Optional[str] = None,
    description: Optional[str] = None,
) -> TransferResult:
    """
    Move funds between two accounts with a 5% fee charged to the sender.

    Both accounts are mutated; the caller persists them together with the fee
    pool credit so the transfer applies atomically.
    """
    _check_amount(amount)
    _check_currency(currency)
    if sender.id == recipient.id:
        raise RecipientNotFoundError("Cannot transfer to your own account")

    fee = amount * TRANSFER_FEE_RATE
    _require_funds(sender, currency, amount + fee, "Insufficient funds for transfer and fee.")

    sender.adjust(currency, -(amount + fee))
    recipient.adjust(currency, amount)

    sender_tx = record_transaction(
        sender,
        "transfer",
        amount,
        currency,
        description or f"Transfer to {recipient.username}",
        category=category,
        direction=OUTGOING,
        at=now,
    )
    record_transaction(
        sender,
        "fee",
        fee,
        currency,
        f"5% VAT fee for transfer to {recipient.username}",
        at=now,
    )
    recipient_tx = record_transaction(
        recipient,
        "transfer",
        amount,
        currency,
        f"Transfer from {sender.username}",
        direction=INCOMING,
        at=now,
    )
    return TransferResult(sender_transaction=sender_tx, recipient_transaction=recipient_tx, fee=fee)


def exchange(account: Account, sell_currency: str, buy_currency: str, amount: float, now: datetime) -> ExchangeResult:
    """Convert between two balances at the static rate; no fee"""
    _check_amount(amount)
    _check_currency(sell_currency)
    _check_currency(buy_currency)
    if sell_currency == buy_currency:
        raise ValidationError("Cannot exchange a currency for itself")
    _require_funds(account, sell_currency, amount, f"Insufficient {sell_currency} balance.")

    rate = CONVERSION_RATES[sell_currency] / CONVERSION_RATES[buy_currency]
    bought = amount * rate

    account.adjust(sell_currency, -amount)
    account.adjust(buy_currency, bought)
    record_transaction(
        account, "crypto_sell", amount, sell_currency,
        f"Exchanged {amount} {sell_currency} for {bought} {buy_currency}", at=now,
    )
    record_transaction(
        account, "crypto_buy", bought, buy_currency,
        f"Received {bought} {buy_currency} from exchange", at=now,
    )
    return ExchangeResult(sold=amount, bought=bought, rate=rate)


def lock_stake(account: Account, plan_id: str, amount: float, currency: str, now: datetime) -> Stake:
    plan = lookup(STAKING_PLANS, plan_id, "staking plan")
    _check_amount(amount)
    _check_currency(currency)
    _require_funds(account, currency, amount, "Insufficient funds to stake.")

    stake = Stake(
        id=str(uuid.uuid4()),
        plan_id=plan.id,
        amount=amount,
        currency=currency,
        start_time=now,
        end_time=now + plan.duration,
    )
    account.adjust(currency, -amount)
    account.stakes.append(stake)
    record_transaction(account, "staking_lock", amount, currency, f"Staked {amount} {currency}", at=now)
    return stake


def claim_stake(account: Account, stake_id: str, now: datetime) -> StakeClaim:
    stake = next((s for s in account.stakes if s.id == stake_id), None)
    if stake is None:
        raise StakeNotFoundError(f"Unknown stake: {stake_id}")
    if now < stake.end_time:
        raise StakeNotMaturedError("Stake is still locked")

    plan = lookup(STAKING_PLANS, stake.plan_id, "staking plan")
    claim = StakeClaim(principal=stake.amount, reward=stake.amount * plan.reward)

    account.adjust(stake.currency, claim.total)
    record_transaction(
        account, "staking_reward", claim.reward, stake.currency,
        f"Staking reward for {stake.amount} {stake.currency}", at=now,
    )
    account.stakes = [s for s in account.stakes if s.id != stake_id]
    return claim


def originate_loan(account: Account, offer_id: str, now: datetime) -> Loan:
    offer = lookup(LOAN_OFFERS, offer_id, "loan offer")
    if any(loan.name == offer.name and loan.status == "active" for loan in account.loans):
        raise DuplicateLoanError(f"You already have an active {offer.name}.")

    total = offer.amount * (1 + offer.interest_rate)
    loan = Loan(
        id=str(uuid.uuid4()),
        name=offer.name,
        amount=offer.amount,
        interest_rate=offer.interest_rate,
        remaining_balance=total,
        monthly_payment=total / offer.term_months,
        next_payment_date=add_months(now, 1),
    )
    account.adjust("USD", offer.amount)
    account.loans.append(loan)
    record_transaction(account, "loan_disbursement", offer.amount, "USD", f"Loan received: {offer.name}", at=now)
    return loan


def acquire_property(account: Account, property_id: str, ownership_type: str, now: datetime) -> float:
    """
    Buy or rent a property. Returns the VAT owed to the fee pool.

    Buying schedules monthly maintenance from the first of next month; renting
    schedules the annual rent one year out.
    """
    prop = lookup(PROPERTIES, property_id, "property")
    if ownership_type not in ("buy", "rent"):
        raise ValidationError("Ownership type must be 'buy' or 'rent'")
    if any(p.property_id == prop.id for p in account.properties):
        raise PropertyAlreadyAcquiredError("You already own or rent this property.")

    buying = ownership_type == "buy"
    price = prop.buy_price if buying else prop.rent_price
    tax = price * HOUSING_TAX_RATE
    _require_funds(
        account, "USD", price + tax,
        f"You need {price + tax:.2f} USD (including tax) to {ownership_type} this property.",
    )

    account.adjust("USD", -(price + tax))
    record_transaction(
        account, "expense", price, "USD",
        f"{'Purchase of' if buying else 'Initial rent for'} {prop.name}",
        category="Housing", at=now,
    )
    record_transaction(account, "fee", tax, "USD", f"10% VAT for {prop.name}", at=now)

    account.properties.append(UserProperty(property_id=prop.id, ownership_type=ownership_type, acquired_at=now))

    recurring_amount = prop.maintenance_fee if buying else prop.rent_price
    if recurring_amount > 0:
        account.recurring_expenses.append(
            RecurringExpense(
                id=str(uuid.uuid4()),
                name=f"{'Maintenance' if buying else 'Rent'} for {prop.name}",
                amount=recurring_amount,
                currency="USD",
                category="Housing",
                next_due_date=first_of_next_month(now) if buying else add_years(now, 1),
                interval="monthly" if buying else "annually",
                property_id=prop.id,
            )
        )
    return tax


def _release_property(account: Account, property_id: str) -> None:
    account.properties = [p for p in account.properties if p.property_id != property_id]
    account.recurring_expenses = [e for e in account.recurring_expenses if e.property_id != property_id]


def sell_property(account: Account, property_id: str, now: datetime) -> float:
    """Sell an owned property at its catalog buy price"""
    prop = lookup(PROPERTIES, property_id, "property")
    if not any(p.property_id == prop.id and p.ownership_type == "buy" for p in account.properties):
        raise PropertyNotHeldError("You do not own this property.")

    account.adjust("USD", prop.buy_price)
    record_transaction(account, "deposit", prop.buy_price, "USD", f"Sale of {prop.name}", at=now)
    _release_property(account, prop.id)
    return prop.buy_price


def vacate_property(account: Account, property_id: str) -> None:
    """End a rental; future rent stops, nothing is refunded"""
    prop = lookup(PROPERTIES, property_id, "property")
    if not any(p.property_id == prop.id and p.ownership_type == "rent" for p in account.properties):
        raise PropertyNotHeldError("You do not rent this property.")
    _release_property(account, prop.id)


def enroll(account: Account, course_id: str, now: datetime) -> float:
    """Enroll in a course. Returns the tuition owed to the fee pool."""
    course = lookup(COURSES, course_id, "course")
    if any(e.course_id == course.id for e in account.education):
        raise AlreadyEnrolledError("You are already enrolled in or have completed this course.")
    _require_funds(account, "USD", course.cost, "Insufficient funds for tuition.")

    account.adjust("USD", -course.cost)
    account.education.append(Enrollment(course_id=course.id, enrollment_date=now))
    record_transaction(
        account, "expense", course.cost, "USD", f"Tuition fee for {course.title}", category="Other", at=now
    )
    return course.cost


def select_job(account: Account, job_id: str, now: datetime) -> None:
    """
    Start a job; the first salary is paid on the first of next month.

    The salary watermark never moves backwards, so a `now` behind it keeps
    the existing date.
    """
    job = lookup(JOBS, job_id, "job")
    completed = {e.course_id for e in account.education if e.status == "completed"}
    if job.required_course_id and job.required_course_id not in completed:
        course = COURSES.get(job.required_course_id)
        title = course.title if course else job.required_course_id
        raise QualificationRequiredError(f"You need a {title} to apply for this job.")

    account.job_id = job.id
    account.last_salary_date = max(account.last_salary_date, now)


def deposit(account: Account, amount: float, currency: str, now: datetime) -> Transaction:
    """Platform-issued deposit"""
    _check_amount(amount)
    _check_currency(currency)
    account.adjust(currency, amount)
    return record_transaction(account, "deposit", amount, currency, "Admin Deposit", at=now)


def add_payee(account: Account, payee_account: Account, name: str) -> Payee:
    if payee_account.id == account.id:
        raise RecipientNotFoundError("Invalid account number.")
    if any(p.account_number == payee_account.account_number for p in account.payees):
        raise DuplicatePayeeError("Payee already exists.")
    payee = Payee(id=str(uuid.uuid4()), name=name or payee_account.username, account_number=payee_account.account_number)
    account.payees.append(payee)
    return payee


def remove_payee(account: Account, payee_id: str) -> None:
    account.payees = [p for p in account.payees if p.id != payee_id]
