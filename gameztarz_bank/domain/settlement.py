"""Recurring settlement engine - replays every elapsed recurring event up to a target time"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Protocol, Union

from gameztarz_bank.domain.catalog import COURSES, JOBS
from gameztarz_bank.domain.exceptions import FeePoolError
from gameztarz_bank.domain.ledger import record_transaction
from gameztarz_bank.domain.models import Account, Loan, RecurringExpense
from gameztarz_bank.utils.date_utils import add_months, add_years, first_of_next_month

logger = logging.getLogger(__name__)

SALARY_VAT_RATE = 0.02
MISCELLANEOUS_FEE = 10.0
MISCELLANEOUS_FEE_INTERVAL_YEARS = 10
LOAN_PAYMENT_CATEGORY = "Loans"

# Below this a loan balance counts as paid off (float residue from division)
LOAN_BALANCE_EPSILON = 1e-6


class FeeSink(Protocol):
    """Anything that can credit the shared fee pool"""

    def credit(self, amount: float, description: str) -> None: ...


@dataclass
class SettlementSummary:
    courses_completed: int = 0
    obligations_paid: int = 0
    obligations_missed: int = 0
    salary_cycles: int = 0
    flat_fees: int = 0
    fee_credit_failures: int = 0


@dataclass
class SettlementResult:
    account: Account
    modified: bool
    summary: SettlementSummary = field(default_factory=SettlementSummary)


@dataclass
class ExpenseObligation:
    """Recurring expense (rent or maintenance) stepping monthly or annually"""

    expense: RecurringExpense
    kind: str = "expense"

    @property
    def due_date(self) -> datetime:
        return self.expense.next_due_date

    @property
    def amount(self) -> float:
        return self.expense.amount

    @property
    def currency(self) -> str:
        return self.expense.currency

    @property
    def active(self) -> bool:
        return True

    def apply(self, account: Account) -> None:
        record_transaction(
            account,
            "expense",
            self.amount,
            self.currency,
            self.expense.name,
            category=self.expense.category,
            at=self.due_date,
        )
        if self.expense.interval == "annually":
            self.expense.next_due_date = add_years(self.due_date, 1)
        else:
            self.expense.next_due_date = add_months(self.due_date, 1)


@dataclass
class LoanObligation:
    """Monthly loan instalment; the last one is capped at what is left"""

    loan: Loan
    kind: str = "loan"

    @property
    def due_date(self) -> datetime:
        return self.loan.next_payment_date

    @property
    def amount(self) -> float:
        return min(self.loan.monthly_payment, self.loan.remaining_balance)

    @property
    def currency(self) -> str:
        return "USD"

    @property
    def active(self) -> bool:
        return self.loan.status == "active"

    def apply(self, account: Account) -> None:
        paid = self.amount
        record_transaction(
            account,
            "loan_repayment",
            paid,
            self.currency,
            f"{self.loan.name} Repayment",
            category=LOAN_PAYMENT_CATEGORY,
            at=self.due_date,
        )
        self.loan.remaining_balance -= paid
        self.loan.next_payment_date = add_months(self.due_date, 1)
        if self.loan.remaining_balance <= LOAN_BALANCE_EPSILON:
            self.loan.remaining_balance = 0.0
            self.loan.status = "repaid"


Obligation = Union[ExpenseObligation, LoanObligation]


def collect_obligations(account: Account) -> List[Obligation]:
    obligations: List[Obligation] = [ExpenseObligation(e) for e in account.recurring_expenses]
    obligations.extend(LoanObligation(loan) for loan in account.loans if loan.status == "active")
    return obligations


def _credit_fee(fee_pool: Optional[FeeSink], amount: float, description: str, summary: SettlementSummary) -> None:
    if fee_pool is None:
        return
    try:
        fee_pool.credit(amount, description)
    except FeePoolError as e:
        summary.fee_credit_failures += 1
        logger.error(f"Fee pool credit failed: {e}", extra={"amount": amount, "fee_description": description})


def _complete_courses(account: Account, now: datetime, summary: SettlementSummary) -> bool:
    changed = False
    for enrollment in account.education:
        if enrollment.status != "in-progress":
            continue
        course = COURSES.get(enrollment.course_id)
        if course is None:
            continue
        if (now - enrollment.enrollment_date).days >= course.duration_days:
            enrollment.status = "completed"
            summary.courses_completed += 1
            changed = True
    return changed


def _pay_obligations(account: Account, now: datetime, summary: SettlementSummary) -> bool:
    changed = False
    for obligation in collect_obligations(account):
        while obligation.active and obligation.due_date <= now:
            if account.balance(obligation.currency) < obligation.amount:
                # Stays due; retried on the next run once funds arrive
                summary.obligations_missed += 1
                break
            previous_due = obligation.due_date
            account.adjust(obligation.currency, -obligation.amount)
            obligation.apply(account)
            if obligation.due_date <= previous_due:
                raise RuntimeError(f"{obligation.kind} obligation did not advance past {previous_due.isoformat()}")
            summary.obligations_paid += 1
            changed = True
    return changed


def _pay_salary(account: Account, now: datetime, fee_pool: Optional[FeeSink], summary: SettlementSummary) -> bool:
    job = JOBS.get(account.job_id) if account.job_id else None
    if job is None:
        return False

    changed = False
    next_salary_date = first_of_next_month(account.last_salary_date)
    while next_salary_date <= now:
        monthly_salary = job.salary / 12
        vat = monthly_salary * SALARY_VAT_RATE
        net_salary = monthly_salary - vat

        account.adjust("USD", net_salary)
        record_transaction(
            account, "salary", net_salary, "USD", f"Monthly Salary: {job.title}", at=next_salary_date
        )
        record_transaction(account, "fee", vat, "USD", "2% VAT on Salary", at=next_salary_date)
        _credit_fee(fee_pool, vat, f"2% salary VAT from {account.username}", summary)

        account.last_salary_date = next_salary_date
        next_salary_date = first_of_next_month(next_salary_date)
        summary.salary_cycles += 1
        changed = True
    return changed


def _charge_flat_fee(
    account: Account,
    now: datetime,
    previous_login: datetime,
    fee_pool: Optional[FeeSink],
    summary: SettlementSummary,
) -> bool:
    if account.last_miscellaneous_fee_date is None:
        account.last_miscellaneous_fee_date = previous_login

    changed = False
    next_fee_date = add_years(account.last_miscellaneous_fee_date, MISCELLANEOUS_FEE_INTERVAL_YEARS)
    while next_fee_date <= now:
        # Mandatory: charged even if the balance goes negative
        account.adjust("USD", -MISCELLANEOUS_FEE)
        record_transaction(account, "fee", MISCELLANEOUS_FEE, "USD", "Miscellaneous Fee", at=next_fee_date)
        _credit_fee(fee_pool, MISCELLANEOUS_FEE, f"Miscellaneous Fee from {account.username}", summary)

        account.last_miscellaneous_fee_date = next_fee_date
        next_fee_date = add_years(next_fee_date, MISCELLANEOUS_FEE_INTERVAL_YEARS)
        summary.flat_fees += 1
        changed = True
    return changed


def settle_account(account: Account, now: datetime, fee_pool: Optional[FeeSink] = None) -> SettlementResult:
    """
    Apply every recurring event due at or before `now`.

    Order:
    1. Complete courses whose duration has elapsed
    2. Pay recurring expenses and loan instalments, looping through missed cycles
       (an unaffordable obligation stays due and is retried next time)
    3. Pay each missed monthly salary net of 2% VAT
    4. Charge the flat fee for each elapsed 10-year period
    5. Move last_login to `now`

    The caller's account is never mutated; the result carries a deep copy.
    `modified` reports financial changes only; last_login always advances.
    A `now` earlier than last_login (a clock that fell back to its epoch)
    settles nothing and leaves every watermark where it was.
    """
    updated = copy.deepcopy(account)
    summary = SettlementSummary()
    previous_login = updated.last_login
    if now < previous_login:
        logger.warning(
            "Settlement time is before last login, skipping",
            extra={"account_id": account.id, "now": now.isoformat(), "last_login": previous_login.isoformat()},
        )
        return SettlementResult(account=updated, modified=False, summary=summary)

    modified = _complete_courses(updated, now, summary)
    modified = _pay_obligations(updated, now, summary) or modified
    modified = _pay_salary(updated, now, fee_pool, summary) or modified
    modified = _charge_flat_fee(updated, now, previous_login, fee_pool, summary) or modified

    updated.last_login = now

    return SettlementResult(account=updated, modified=modified, summary=summary)
