"""Unit tests for point-in-time financial operations"""

import pytest
from datetime import datetime, timedelta, timezone

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
    StakeNotMaturedError,
    UnknownCatalogItemError,
    UnsupportedCurrencyError,
    ValidationError,
)
from gameztarz_bank.domain.models import INCOMING, OUTGOING, Enrollment
from gameztarz_bank.domain.operations import (
    acquire_property,
    add_payee,
    claim_stake,
    deposit,
    enroll,
    exchange,
    lock_stake,
    open_account,
    originate_loan,
    remove_payee,
    select_job,
    sell_property,
    transfer,
    vacate_property,
)
from gameztarz_bank.utils.date_utils import add_months, add_years

NOW = datetime(2030, 5, 20, 10, 0, tzinfo=timezone.utc)


def make_account(username="alice", number="1111111111", usd=1000.0):
    account = open_account(f"id-{username}", username, number, NOW)
    account.balances["USD"] = usd
    return account


@pytest.fixture
def alice():
    return make_account()


@pytest.fixture
def bob():
    return make_account("bob", "2222222222", usd=250.0)


def test_open_account_defaults():
    account = open_account("id", "carol", "3333333333", NOW)
    assert account.balances == {"USD": 1000.0, "NGN": 0.0, "EUR": 0.0}
    assert all(v == 0 for v in account.crypto.values())
    assert account.last_login == account.last_salary_date == account.last_miscellaneous_fee_date == NOW


def test_open_account_requires_username():
    with pytest.raises(ValidationError):
        open_account("id", "  ", "3333333333", NOW)


def test_transfer_moves_funds_and_charges_fee(alice, bob):
    result = transfer(alice, bob, 100, "USD", NOW)

    assert alice.balances["USD"] == 895
    assert bob.balances["USD"] == 350
    assert result.fee == 5
    assert [t.type for t in alice.transactions] == ["transfer", "fee"]
    assert [t.type for t in bob.transactions] == ["transfer"]
    assert result.sender_transaction.direction == OUTGOING
    assert result.recipient_transaction.direction == INCOMING
    assert result.sender_transaction.description == "Transfer to bob"


def test_transfer_insufficient_funds_has_no_side_effects(alice, bob):
    with pytest.raises(InsufficientFundsError):
        transfer(alice, bob, 960, "USD", NOW)

    assert alice.balances["USD"] == 1000
    assert bob.balances["USD"] == 250
    assert alice.transactions == [] and bob.transactions == []


def test_transfer_rejects_self_and_bad_input(alice, bob):
    with pytest.raises(RecipientNotFoundError):
        transfer(alice, alice, 10, "USD", NOW)
    with pytest.raises(InvalidAmountError):
        transfer(alice, bob, 0, "USD", NOW)
    with pytest.raises(InvalidAmountError):
        transfer(alice, bob, float("nan"), "USD", NOW)
    with pytest.raises(UnsupportedCurrencyError):
        transfer(alice, bob, 10, "GBP", NOW)


def test_transfer_with_category_updates_budget(alice, bob):
    transfer(alice, bob, 100, "USD", NOW, category="Food", description="Dinner")
    food = [b for b in alice.budgets if b.category == "Food"]
    assert food[0].spent == 100
    assert bob.budgets == []


def test_exchange_uses_static_rate(alice):
    result = exchange(alice, "USD", "EUR", 108, NOW)

    assert result.bought == pytest.approx(100)
    assert alice.balances["USD"] == pytest.approx(892)
    assert alice.balances["EUR"] == pytest.approx(100)
    assert [t.type for t in alice.transactions] == ["crypto_sell", "crypto_buy"]


def test_exchange_into_crypto(alice):
    exchange(alice, "USD", "ETH", 700, NOW)
    assert alice.crypto["ETH"] == pytest.approx(0.2)


def test_exchange_rejects_same_currency_and_overdraw(alice):
    with pytest.raises(ValidationError):
        exchange(alice, "USD", "USD", 10, NOW)
    with pytest.raises(InsufficientFundsError):
        exchange(alice, "EUR", "USD", 10, NOW)


def test_stake_lock_and_claim(alice):
    stake = lock_stake(alice, "plan_2", 200, "USD", NOW)
    assert alice.balances["USD"] == 800
    assert stake.end_time == NOW + timedelta(minutes=2)

    with pytest.raises(StakeNotMaturedError):
        claim_stake(alice, stake.id, NOW + timedelta(minutes=1))

    claim = claim_stake(alice, stake.id, stake.end_time)
    assert claim.reward == pytest.approx(20)
    assert claim.total == pytest.approx(220)
    assert alice.balances["USD"] == pytest.approx(1020)
    assert alice.stakes == []


def test_stake_rejects_unknown_plan(alice):
    with pytest.raises(UnknownCatalogItemError):
        lock_stake(alice, "plan_99", 10, "USD", NOW)


def test_originate_loan(alice):
    loan = originate_loan(alice, "loan1", NOW)

    assert alice.balances["USD"] == 6000
    assert loan.remaining_balance == pytest.approx(5500)
    assert loan.monthly_payment == pytest.approx(5500 / 12)
    assert loan.next_payment_date == add_months(NOW, 1)
    assert alice.transactions[-1].type == "loan_disbursement"


def test_duplicate_active_loan_rejected(alice):
    originate_loan(alice, "loan1", NOW)
    with pytest.raises(DuplicateLoanError):
        originate_loan(alice, "loan1", NOW)


def test_repaid_loan_can_be_taken_again(alice):
    loan = originate_loan(alice, "loan1", NOW)
    loan.status = "repaid"
    originate_loan(alice, "loan1", NOW)
    assert len(alice.loans) == 2


def test_buy_property_schedules_maintenance():
    account = make_account(usd=200_000)

    tax = acquire_property(account, "prop4", "buy", NOW)

    assert tax == pytest.approx(18_000)
    assert account.balances["USD"] == pytest.approx(200_000 - 198_000)
    expense = account.recurring_expenses[0]
    assert expense.amount == 300
    assert expense.interval == "monthly"
    assert expense.next_due_date == datetime(2030, 6, 1, tzinfo=timezone.utc)
    assert [t.type for t in account.transactions] == ["expense", "fee"]


def test_rent_property_schedules_annual_rent(alice):
    alice.balances["USD"] = 10_000
    acquire_property(alice, "prop4", "rent", NOW)

    expense = alice.recurring_expenses[0]
    assert alice.balances["USD"] == pytest.approx(10_000 - 1980)
    assert expense.interval == "annually"
    assert expense.next_due_date == add_years(NOW, 1)


def test_property_rejections(alice):
    with pytest.raises(InsufficientFundsError):
        acquire_property(alice, "prop1", "buy", NOW)
    assert alice.transactions == []

    alice.balances["USD"] = 10_000
    acquire_property(alice, "prop4", "rent", NOW)
    with pytest.raises(PropertyAlreadyAcquiredError):
        acquire_property(alice, "prop4", "buy", NOW)
    with pytest.raises(ValidationError):
        acquire_property(alice, "prop5", "lease", NOW)


def test_sell_owned_property():
    account = make_account(usd=200_000)
    acquire_property(account, "prop4", "buy", NOW)

    proceeds = sell_property(account, "prop4", NOW)

    assert proceeds == 180_000
    assert account.properties == []
    assert account.recurring_expenses == []


def test_cannot_sell_rented_property(alice):
    alice.balances["USD"] = 10_000
    acquire_property(alice, "prop4", "rent", NOW)
    with pytest.raises(PropertyNotHeldError):
        sell_property(alice, "prop4", NOW)

    vacate_property(alice, "prop4")
    assert alice.properties == []
    assert alice.recurring_expenses == []


def test_enroll_and_duplicate(alice):
    alice.balances["USD"] = 20_000
    tuition = enroll(alice, "edu5", NOW)

    assert tuition == 10_000
    assert alice.balances["USD"] == 10_000
    assert alice.education[0].status == "in-progress"
    with pytest.raises(AlreadyEnrolledError):
        enroll(alice, "edu5", NOW)


def test_enroll_insufficient_funds(alice):
    with pytest.raises(InsufficientFundsError):
        enroll(alice, "edu3", NOW)
    assert alice.education == []


def test_select_job_requires_completed_course(alice):
    with pytest.raises(QualificationRequiredError):
        select_job(alice, "job1", NOW)

    alice.balances["USD"] = 60_000
    enroll(alice, "edu3", NOW)
    with pytest.raises(QualificationRequiredError):
        select_job(alice, "job1", NOW)

    alice.education[0].status = "completed"
    later = add_years(NOW, 4)
    select_job(alice, "job1", later)
    assert alice.job_id == "job1"
    assert alice.last_salary_date == later


def test_deposit(alice):
    tx = deposit(alice, 500, "NGN", NOW)
    assert alice.balances["NGN"] == 500
    assert tx.type == "deposit"


def test_payees(alice, bob):
    payee = add_payee(alice, bob, "Bobby")
    assert alice.payees[0].account_number == "2222222222"

    with pytest.raises(DuplicatePayeeError):
        add_payee(alice, bob, "Bob again")
    with pytest.raises(RecipientNotFoundError):
        add_payee(alice, alice, "me")

    remove_payee(alice, payee.id)
    assert alice.payees == []


def test_select_job_never_moves_salary_date_back(alice):
    alice.education.append(Enrollment(course_id="edu3", enrollment_date=NOW, status="completed"))
    epoch = datetime(1900, 1, 1, tzinfo=timezone.utc)

    select_job(alice, "job1", epoch)

    assert alice.job_id == "job1"
    assert alice.last_salary_date == NOW
