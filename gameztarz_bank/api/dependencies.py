"""Dependency injection and shared request helpers for FastAPI endpoints"""

import logging
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Tuple

from fastapi import HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gameztarz_bank.domain.exceptions import DomainException
from gameztarz_bank.domain.models import Account
from gameztarz_bank.domain.settlement import settle_account, SettlementResult
from gameztarz_bank.infrastructure.clients.notifications import NotificationClient
from gameztarz_bank.infrastructure.database.repositories import AccountRepository, ClockRepository, FeePoolRepository
from gameztarz_bank.infrastructure.observability.logging import log_settlement
from gameztarz_bank.infrastructure.observability.metrics import record_settlement


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_notification_client() -> NotificationClient:
    """Provide notification webhook client instance"""
    return NotificationClient()


@contextmanager
def unit_of_work(db: Session, request_id: str) -> Iterator[Session]:
    """
    Commit everything done in the block as one database transaction.

    Domain errors roll back and propagate to the app's exception handler;
    persistence errors roll back and surface as 503.
    """
    try:
        yield db
        db.commit()
    except DomainException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable, please try again")


def settle(db: Session, account: Account, now: datetime, request_id: str) -> SettlementResult:
    """Run the settlement engine and stage the result in the session"""
    start_time = time.time()
    result = settle_account(account, now, FeePoolRepository(db))
    if result.modified:
        AccountRepository(db).save(result.account)

    duration_ms = (time.time() - start_time) * 1000
    record_settlement(result.modified, result.summary)
    log_settlement(request_id, account.id, now, result.modified, result.summary, duration_ms)
    return result


def load_settled_account(db: Session, account_id: str, request_id: str) -> Tuple[Account, datetime]:
    """
    Load an account and bring it up to the current simulated time.

    Raises AccountNotFoundError for an unknown id.
    """
    now = ClockRepository(db).read()
    account = AccountRepository(db).require(account_id)
    return settle(db, account, now, request_id).account, now
