"""Data access layer for accounts, the simulated clock, the fee pool and notifications"""

import logging
import random
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gameztarz_bank.config import settings
from gameztarz_bank.domain.exceptions import (
    AccountNotFoundError,
    ConcurrentUpdateError,
    FeePoolContentionError,
    FeePoolError,
    NothingToClaimError,
)
from gameztarz_bank.domain.ledger import record_transaction
from gameztarz_bank.domain.models import Account, CRYPTO_CURRENCIES, FIAT_CURRENCIES, PlatformAccount
from gameztarz_bank.infrastructure.database.documents import account_from_document, account_to_document
from gameztarz_bank.infrastructure.database.models import (
    AccountRecord,
    NotificationRecord,
    SimulationClock,
    TimekeeperLease,
)
from gameztarz_bank.infrastructure.observability.metrics import (
    fee_pool_claim_counter,
    fee_pool_credit_counter,
    fee_pool_failure_counter,
)
from gameztarz_bank.utils.date_utils import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

PLATFORM_OPENING_BALANCE = 1e12


def _to_account(record: AccountRecord) -> Account:
    account = account_from_document(record.document, record.is_platform, record.fees_collected)
    account.version = record.version
    return account


class AccountRepository:
    """Repository for account documents"""

    def __init__(self, db: Session):
        self.db = db

    def _load(self, *criteria) -> Optional[AccountRecord]:
        stmt = select(AccountRecord).where(*criteria).execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def get(self, account_id: str) -> Optional[Account]:
        record = self._load(AccountRecord.id == account_id)
        return _to_account(record) if record else None

    def get_by_username(self, username: str) -> Optional[Account]:
        record = self._load(AccountRecord.username == username)
        return _to_account(record) if record else None

    def get_by_account_number(self, account_number: str) -> Optional[Account]:
        record = self._load(AccountRecord.account_number == account_number)
        return _to_account(record) if record else None

    def require(self, account_id: str) -> Account:
        account = self.get(account_id)
        if account is None:
            raise AccountNotFoundError(f"Account not found: {account_id}")
        return account

    def list_accounts(self, limit: int = 100) -> List[Account]:
        records = self.db.execute(
            select(AccountRecord).order_by(AccountRecord.created_at).limit(limit)
        ).scalars()
        return [_to_account(r) for r in records]

    def save(self, account: Account) -> None:
        """
        Insert a new account or overwrite the whole document of a loaded one.

        Overwrites are conditional on the version the account was loaded at,
        so a copy that went stale (for example the platform account while a
        fee claim committed) raises ConcurrentUpdateError instead of erasing
        the newer write. The fee pool column is never written here; only
        FeePoolRepository touches it.
        """
        document = account_to_document(account)
        if account.version == 0:
            self.db.add(
                AccountRecord(
                    id=account.id,
                    username=account.username,
                    account_number=account.account_number,
                    document=document,
                    is_platform=isinstance(account, PlatformAccount),
                    fees_collected=0.0,
                    version=1,
                    pool_version=1,
                )
            )
            self.db.flush()
            account.version = 1
            return

        result = self.db.execute(
            update(AccountRecord)
            .where(AccountRecord.id == account.id, AccountRecord.version == account.version)
            .values(document=document, username=account.username, version=account.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(
                "Stale account save rejected",
                extra={"account_id": account.id, "loaded_version": account.version},
            )
            raise ConcurrentUpdateError("Account was updated by another request. Please try again.")
        account.version += 1

    def generate_account_number(self) -> str:
        """Random unused 10-digit account number"""
        while True:
            candidate = str(random.randint(1_000_000_000, 9_999_999_999))
            taken = self.db.scalar(
                select(AccountRecord.id).where(AccountRecord.account_number == candidate)
            )
            if taken is None:
                return candidate


def ensure_platform_account(db: Session, now: datetime) -> PlatformAccount:
    """Create the platform account on first start"""
    repo = AccountRepository(db)
    existing = repo.get(settings.platform_account_id)
    if isinstance(existing, PlatformAccount):
        return existing

    platform = PlatformAccount(
        id=settings.platform_account_id,
        username=settings.platform_username,
        account_number=settings.platform_account_number,
        balances={c: PLATFORM_OPENING_BALANCE for c in FIAT_CURRENCIES},
        crypto={c: PLATFORM_OPENING_BALANCE for c in CRYPTO_CURRENCIES},
        last_login=now,
        last_salary_date=now,
        last_miscellaneous_fee_date=now,
    )
    repo.save(platform)
    logger.info("Platform account created", extra={"account_id": platform.id})
    return platform


class FeePoolRepository:
    """
    Shared platform fee pool.

    credit() is one atomic SQL increment inside a savepoint, so concurrent
    credits never lose updates and a failed credit leaves the caller's
    transaction usable. claim() is an optimistic read-then-conditional-write
    on both the pool version (bumped by every credit) and the document
    version (bumped by every account save), so a claim racing either one
    retries instead of discarding it.
    """

    def __init__(self, db: Session, platform_account_id: str | None = None, max_retries: int | None = None):
        self.db = db
        self.platform_account_id = platform_account_id or settings.platform_account_id
        self.max_retries = max_retries or settings.fee_pool_max_retries

    def credit(self, amount: float, description: str) -> None:
        if amount <= 0:
            return
        stmt = (
            update(AccountRecord)
            .where(AccountRecord.id == self.platform_account_id)
            .values(
                fees_collected=AccountRecord.fees_collected + amount,
                pool_version=AccountRecord.pool_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            # A failed statement aborts a PostgreSQL transaction; the savepoint
            # confines that to this credit
            with self.db.begin_nested():
                result = self.db.execute(stmt)
        except SQLAlchemyError as e:
            fee_pool_failure_counter.inc()
            raise FeePoolError(f"Fee pool credit failed: {e}") from e

        if result.rowcount != 1:
            fee_pool_failure_counter.inc()
            raise FeePoolError("Platform account does not exist")

        fee_pool_credit_counter.inc(amount)
        logger.info("Fee pool credited", extra={"amount": amount, "fee_description": description})

    def balance(self) -> float:
        value = self.db.scalar(
            select(AccountRecord.fees_collected).where(AccountRecord.id == self.platform_account_id)
        )
        if value is None:
            raise AccountNotFoundError("Platform account does not exist")
        return value

    def claim(self, now: datetime) -> float:
        """Move the whole pool into the platform USD balance and reset it to zero"""
        for attempt in range(1, self.max_retries + 1):
            row = self.db.execute(
                select(
                    AccountRecord.fees_collected,
                    AccountRecord.pool_version,
                    AccountRecord.version,
                    AccountRecord.document,
                ).where(AccountRecord.id == self.platform_account_id)
            ).one_or_none()
            if row is None:
                raise AccountNotFoundError("Platform account does not exist")

            fees, pool_version, version, document = row
            if fees <= 0:
                fee_pool_claim_counter.labels(outcome="empty").inc()
                raise NothingToClaimError("There are no collected fees to claim at this time.")

            platform = account_from_document(document, is_platform=True, fees_collected=fees)
            platform.adjust("USD", fees)
            record_transaction(platform, "revenue_claim", fees, "USD", "Claimed platform revenue", at=now)

            result = self.db.execute(
                update(AccountRecord)
                .where(
                    AccountRecord.id == self.platform_account_id,
                    AccountRecord.pool_version == pool_version,
                    AccountRecord.version == version,
                )
                .values(
                    fees_collected=0.0,
                    document=account_to_document(platform),
                    pool_version=pool_version + 1,
                    version=version + 1,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                fee_pool_claim_counter.labels(outcome="claimed").inc()
                logger.info("Fee pool claimed", extra={"amount": fees, "attempt": attempt})
                return fees

            logger.warning("Fee pool changed during claim, retrying", extra={"attempt": attempt})

        fee_pool_claim_counter.labels(outcome="contention").inc()
        raise FeePoolContentionError("Could not claim revenue. Please try again.")


class ClockRepository:
    """Persisted shared simulated clock"""

    CLOCK_ID = "global"

    def __init__(self, db: Session, epoch: datetime | None = None):
        self.db = db
        self.epoch = epoch or parse_timestamp(settings.clock_epoch)

    def read(self) -> datetime:
        """Current simulated time; initialized to the epoch when unset, the epoch when unreadable"""
        try:
            value = self.db.scalar(
                select(SimulationClock.current_date).where(SimulationClock.id == self.CLOCK_ID)
            )
            if value is None:
                self.db.add(SimulationClock(id=self.CLOCK_ID, current_date=format_timestamp(self.epoch)))
                self.db.flush()
                return self.epoch
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error reading global time: {e}")
            return self.epoch
        return parse_timestamp(value)

    def write(self, value: datetime) -> bool:
        try:
            row = self.db.get(SimulationClock, self.CLOCK_ID)
            if row is None:
                self.db.add(SimulationClock(id=self.CLOCK_ID, current_date=format_timestamp(value)))
            else:
                row.current_date = format_timestamp(value)
            self.db.flush()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating global time: {e}")
            return False

    def advance(self, expected: datetime, new_value: datetime) -> bool:
        """Conditional update: only moves the clock if it still reads `expected`"""
        try:
            result = self.db.execute(
                update(SimulationClock)
                .where(
                    SimulationClock.id == self.CLOCK_ID,
                    SimulationClock.current_date == format_timestamp(expected),
                )
                .values(current_date=format_timestamp(new_value))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                return True

            exists = self.db.scalar(select(SimulationClock.id).where(SimulationClock.id == self.CLOCK_ID))
            if exists is None and expected == self.epoch:
                self.db.add(SimulationClock(id=self.CLOCK_ID, current_date=format_timestamp(new_value)))
                self.db.flush()
                return True
            return False
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error advancing global time: {e}")
            return False


class TimekeeperLeaseRepository:
    """
    Lease-based leader election for the clock timekeeper.

    Each call commits immediately so the lease is visible to other processes.
    """

    LEASE_NAME = "timekeeper"

    def __init__(self, db: Session):
        self.db = db

    def try_acquire(self, holder: str, ttl_seconds: float, now_ts: float) -> bool:
        """Take or renew the lease; succeeds when free, expired or already ours"""
        expires_at = now_ts + ttl_seconds
        result = self.db.execute(
            update(TimekeeperLease)
            .where(
                TimekeeperLease.name == self.LEASE_NAME,
                or_(
                    TimekeeperLease.holder == holder,
                    TimekeeperLease.holder.is_(None),
                    TimekeeperLease.expires_at < now_ts,
                ),
            )
            .values(holder=holder, expires_at=expires_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            self.db.commit()
            return True

        exists = self.db.scalar(select(TimekeeperLease.name).where(TimekeeperLease.name == self.LEASE_NAME))
        if exists is not None:
            self.db.rollback()
            return False

        try:
            self.db.add(TimekeeperLease(name=self.LEASE_NAME, holder=holder, expires_at=expires_at))
            self.db.commit()
            return True
        except IntegrityError:
            # Another process created the lease first
            self.db.rollback()
            return False

    def release(self, holder: str) -> None:
        self.db.execute(
            update(TimekeeperLease)
            .where(TimekeeperLease.name == self.LEASE_NAME, TimekeeperLease.holder == holder)
            .values(holder=None, expires_at=0.0)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

    def current_holder(self, now_ts: float) -> Optional[str]:
        row = self.db.execute(
            select(TimekeeperLease.holder, TimekeeperLease.expires_at)
            .where(TimekeeperLease.name == self.LEASE_NAME)
        ).one_or_none()
        if row is None or row.holder is None or row.expires_at < now_ts:
            return None
        return row.holder


class NotificationRepository:
    """Repository for in-app notifications"""

    def __init__(self, db: Session):
        self.db = db

    def enqueue(self, user_id: str, title: str, message: str, payload: Dict[str, Any] | None = None) -> NotificationRecord:
        record = NotificationRecord(user_id=user_id, title=title, message=message, payload=payload or {})
        self.db.add(record)
        self.db.flush()
        return record

    def list_for_account(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[NotificationRecord]:
        stmt = select(NotificationRecord).where(NotificationRecord.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationRecord.read.is_(False))
        stmt = stmt.order_by(NotificationRecord.created_at.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars())

    def mark_read(self, notification_id: uuid.UUID, user_id: str) -> bool:
        result = self.db.execute(
            update(NotificationRecord)
            .where(NotificationRecord.id == notification_id, NotificationRecord.user_id == user_id)
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        self.db.flush()
        return result.rowcount == 1
