"""Unit tests for the platform fee pool"""

import pytest
from sqlalchemy import event, text

from gameztarz_bank.domain.exceptions import (
    ConcurrentUpdateError,
    FeePoolContentionError,
    FeePoolError,
    NothingToClaimError,
)
from gameztarz_bank.domain.operations import open_account
from gameztarz_bank.domain.settlement import settle_account
from gameztarz_bank.infrastructure.database import repositories
from gameztarz_bank.infrastructure.database.repositories import (
    PLATFORM_OPENING_BALANCE,
    AccountRepository,
    FeePoolRepository,
)
from gameztarz_bank.utils.date_utils import add_months


def test_credit_accumulates(db, platform):
    pool = FeePoolRepository(db)
    pool.credit(5, "transfer fee")
    pool.credit(2.5, "salary VAT")
    db.commit()

    assert pool.balance() == pytest.approx(7.5)


def test_credit_ignores_non_positive_amounts(db, platform):
    pool = FeePoolRepository(db)
    pool.credit(0, "nothing")
    assert pool.balance() == 0


def test_credit_without_platform_account_fails(db):
    with pytest.raises(FeePoolError):
        FeePoolRepository(db).credit(5, "orphan fee")


def test_credit_does_not_touch_platform_document(db, platform):
    FeePoolRepository(db).credit(10, "fee")
    db.commit()

    reloaded = AccountRepository(db).get(platform.id)
    assert reloaded.fees_collected == 10
    assert reloaded.balances["USD"] == platform.balances["USD"]


def test_claim_moves_pool_into_platform_balance(db, platform, sim_now):
    pool = FeePoolRepository(db)
    pool.credit(42, "fees")
    db.commit()

    claimed = pool.claim(sim_now)
    db.commit()

    reloaded = AccountRepository(db).get(platform.id)
    assert claimed == 42
    assert pool.balance() == 0
    assert reloaded.balances["USD"] == platform.balances["USD"] + 42
    assert reloaded.transactions[-1].type == "revenue_claim"
    assert reloaded.transactions[-1].amount == 42


def test_claim_empty_pool(db, platform, sim_now):
    with pytest.raises(NothingToClaimError):
        FeePoolRepository(db).claim(sim_now)


def test_claim_twice_only_pays_once(db, platform, sim_now):
    pool = FeePoolRepository(db)
    pool.credit(10, "fees")
    pool.claim(sim_now)

    with pytest.raises(NothingToClaimError):
        pool.claim(sim_now)


def test_credit_racing_claim_is_not_lost(db, platform, sim_now, monkeypatch):
    """A credit landing between the claim's read and write forces a retry that includes it"""
    pool = FeePoolRepository(db)
    pool.credit(10, "fees")

    real_from_document = repositories.account_from_document
    calls = []

    def credit_during_claim(*args, **kwargs):
        if not calls:
            FeePoolRepository(db).credit(5, "concurrent fee")
        calls.append(1)
        return real_from_document(*args, **kwargs)

    monkeypatch.setattr(repositories, "account_from_document", credit_during_claim)

    claimed = pool.claim(sim_now)

    assert claimed == 15
    assert len(calls) == 2
    assert pool.balance() == 0


def test_claim_gives_up_after_max_retries(db, platform, sim_now, monkeypatch):
    pool = FeePoolRepository(db, max_retries=3)
    pool.credit(10, "fees")

    real_from_document = repositories.account_from_document

    def always_credit(*args, **kwargs):
        FeePoolRepository(db).credit(1, "concurrent fee")
        return real_from_document(*args, **kwargs)

    monkeypatch.setattr(repositories, "account_from_document", always_credit)

    with pytest.raises(FeePoolContentionError):
        pool.claim(sim_now)


def test_stale_platform_save_cannot_erase_claim(db, second_db, platform, sim_now):
    """A request holding the platform account from before a claim must not overwrite it"""
    FeePoolRepository(db).credit(100, "fees")
    db.commit()

    stale = AccountRepository(second_db).get(platform.id)

    assert FeePoolRepository(db).claim(sim_now) == 100
    db.commit()

    stale.adjust("EUR", 1)
    with pytest.raises(ConcurrentUpdateError):
        AccountRepository(second_db).save(stale)
    second_db.rollback()

    reloaded = AccountRepository(db).get(platform.id)
    assert reloaded.balances["USD"] == PLATFORM_OPENING_BALANCE + 100
    assert reloaded.balances["EUR"] == PLATFORM_OPENING_BALANCE
    assert [t.type for t in reloaded.transactions] == ["revenue_claim"]
    assert FeePoolRepository(db).balance() == 0


def test_platform_save_after_credit_still_succeeds(db, platform):
    """Credits only touch the pool column, so a loaded platform copy stays current"""
    loaded = AccountRepository(db).get(platform.id)
    FeePoolRepository(db).credit(7, "fees")

    loaded.adjust("EUR", 1)
    AccountRepository(db).save(loaded)
    db.commit()

    assert FeePoolRepository(db).balance() == 7
    assert AccountRepository(db).get(platform.id).balances["EUR"] == PLATFORM_OPENING_BALANCE + 1


def test_failed_credit_rolls_back_only_its_savepoint(db, platform, sim_now):
    """A database error on one credit leaves the settlement's transaction usable"""
    db.execute(
        text(
            "CREATE TRIGGER fee_pool_offline BEFORE UPDATE OF fees_collected ON account "
            "BEGIN SELECT RAISE(ABORT, 'fee pool offline'); END"
        )
    )
    db.commit()

    statements = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    bind = db.get_bind()
    event.listen(bind, "before_cursor_execute", capture)
    try:
        accounts = AccountRepository(db)
        account = open_account("acc-1", "alice", "1234567890", sim_now)
        account.balances["USD"] = 0
        account.job_id = "job1"
        account.last_salary_date = add_months(sim_now, -3)
        accounts.save(account)

        result = settle_account(account, sim_now, FeePoolRepository(db))
        accounts.save(result.account)
        db.commit()
    finally:
        event.remove(bind, "before_cursor_execute", capture)

    assert result.summary.salary_cycles == 3
    assert result.summary.fee_credit_failures == 3
    assert sum(s.startswith("ROLLBACK TO SAVEPOINT") for s in statements) == 3
    assert accounts.get("acc-1").balances["USD"] == 3 * 9800
    assert FeePoolRepository(db).balance() == 0
