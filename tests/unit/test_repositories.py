"""Unit tests for account documents and repositories"""

from datetime import datetime, timezone

import pytest

from gameztarz_bank.domain.exceptions import AccountNotFoundError, ConcurrentUpdateError
from gameztarz_bank.domain.models import INCOMING, OUTGOING, PlatformAccount
from gameztarz_bank.domain.operations import acquire_property, enroll, lock_stake, open_account, originate_loan
from gameztarz_bank.infrastructure.database.documents import account_from_document, account_to_document
from gameztarz_bank.infrastructure.database.models import AccountRecord
from gameztarz_bank.infrastructure.database.repositories import (
    AccountRepository,
    NotificationRepository,
    ensure_platform_account,
)

NOW = datetime(2030, 8, 1, 12, 0, tzinfo=timezone.utc)


def test_document_preserves_full_account():
    account = open_account("id-1", "alice", "1234567890", NOW)
    account.balances["USD"] = 500_000
    acquire_property(account, "prop4", "buy", NOW)
    originate_loan(account, "loan2", NOW)
    enroll(account, "edu1", NOW)
    lock_stake(account, "plan_1", 10, "USD", NOW)

    restored = account_from_document(account_to_document(account))

    assert restored == account


def test_legacy_transactions_get_direction_on_read():
    doc = account_to_document(open_account("id-1", "alice", "1234567890", NOW))
    doc["transactions"] = [
        {"id": "t1", "type": "transfer", "amount": 10, "currency": "USD",
         "timestamp": "2030-01-01T00:00:00Z", "description": "Transfer to bob"},
        {"id": "t2", "type": "transfer", "amount": 10, "currency": "USD",
         "timestamp": "2030-01-01T00:00:00Z", "description": "Transfer from bob"},
        {"id": "t3", "type": "expense", "amount": 10, "currency": "USD",
         "timestamp": "2030-01-01T00:00:00Z", "description": "Rent", "category": "Housing"},
    ]

    account = account_from_document(doc)

    assert [t.direction for t in account.transactions] == [OUTGOING, INCOMING, OUTGOING]


def test_sparse_document_defaults():
    account = account_from_document(
        {"id": "x", "username": "old", "accountNumber": "9999999999", "lastLogin": "2029-01-01T00:00:00+00:00"}
    )
    assert account.transactions == []
    assert account.last_salary_date == account.last_login
    assert account.last_miscellaneous_fee_date is None


def test_save_and_lookups(db):
    repo = AccountRepository(db)
    account = open_account("id-1", "alice", repo.generate_account_number(), NOW)
    repo.save(account)
    db.commit()

    assert repo.get("id-1").username == "alice"
    assert repo.get_by_username("alice").id == "id-1"
    assert repo.get_by_account_number(account.account_number).id == "id-1"
    assert repo.get("missing") is None
    assert len(account.account_number) == 10


def test_save_overwrites_document_and_bumps_version(db):
    repo = AccountRepository(db)
    account = open_account("id-1", "alice", "1234567890", NOW)
    repo.save(account)
    db.commit()

    account.balances["USD"] = 1
    repo.save(account)
    db.commit()

    record = db.get(AccountRecord, "id-1", populate_existing=True)
    assert record.version == 2
    assert repo.get("id-1").balances["USD"] == 1


def test_ensure_platform_account_is_idempotent(db):
    first = ensure_platform_account(db, NOW)
    db.commit()
    second = ensure_platform_account(db, NOW)

    assert isinstance(first, PlatformAccount)
    assert isinstance(second, PlatformAccount)
    assert db.query(AccountRecord).filter(AccountRecord.is_platform.is_(True)).count() == 1


def test_notifications(db):
    repo = NotificationRepository(db)
    first = repo.enqueue("acc-1", "Transfer received", "You received 10 USD", {"amount": 10})
    repo.enqueue("acc-1", "Transfer received", "You received 20 USD")
    repo.enqueue("acc-2", "Other", "Not yours")
    db.commit()

    assert len(repo.list_for_account("acc-1")) == 2
    assert repo.mark_read(first.id, "acc-1") is True
    assert repo.mark_read(first.id, "acc-2") is False
    db.commit()

    unread = repo.list_for_account("acc-1", unread_only=True)
    assert [n.message for n in unread] == ["You received 20 USD"]


def test_require_raises_for_unknown(db):
    with pytest.raises(AccountNotFoundError):
        AccountRepository(db).require("ghost")


def test_save_rejects_stale_copy(db):
    repo = AccountRepository(db)
    repo.save(open_account("id-1", "alice", "1234567890", NOW))
    db.commit()

    first = repo.get("id-1")
    second = repo.get("id-1")
    first.balances["USD"] = 10
    repo.save(first)
    db.commit()

    second.balances["USD"] = 20
    with pytest.raises(ConcurrentUpdateError):
        repo.save(second)
    db.rollback()

    assert repo.get("id-1").balances["USD"] == 10


def test_consecutive_saves_of_one_copy(db):
    repo = AccountRepository(db)
    account = open_account("id-1", "alice", "1234567890", NOW)
    repo.save(account)
    repo.save(account)
    repo.save(account)
    db.commit()

    assert account.version == 3
    assert repo.get("id-1").version == 3
