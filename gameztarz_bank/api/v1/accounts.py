"""Account registration, lookup, settlement and summary endpoints"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import get_request_id, load_settled_account, settle, unit_of_work
from gameztarz_bank.api.v1.schemas import (
    AccountLookupResponse,
    AccountResponse,
    RegisterRequest,
    SettlementResponse,
    SummaryResponse,
    TransactionSchema,
)
from gameztarz_bank.domain.exceptions import AccountNotFoundError, DuplicateAccountError
from gameztarz_bank.domain.ledger import calculate_net_worth, spending_by_category
from gameztarz_bank.domain.operations import open_account
from gameztarz_bank.infrastructure.database.repositories import AccountRepository, ClockRepository
from gameztarz_bank.infrastructure.database.session import get_db
from gameztarz_bank.utils.date_utils import ensure_utc

router = APIRouter()


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def register_account(body: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    """
    Open a new account at the current simulated time.

    The account starts with the opening USD balance and a fresh 10-digit
    account number.
    """
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        repo = AccountRepository(db)
        if repo.get_by_username(body.username) is not None:
            raise DuplicateAccountError(f"Username already taken: {body.username}")

        now = ClockRepository(db).read()
        account = open_account(str(uuid.uuid4()), body.username, repo.generate_account_number(), now)
        repo.save(account)

    logging.info("Account registered", extra={"request_id": request_id, "account_id": account.id})
    return AccountResponse.model_validate(account)


@router.get("/accounts/by-username/{username}", response_model=AccountLookupResponse)
def get_account_by_username(username: str, db: Session = Depends(get_db)):
    account = AccountRepository(db).get_by_username(username)
    if account is None:
        raise AccountNotFoundError(f"No account with username {username}")
    return AccountLookupResponse(id=account.id, username=account.username, account_number=account.account_number)


@router.get("/accounts/by-number/{account_number}", response_model=AccountLookupResponse)
def get_account_by_number(account_number: str, db: Session = Depends(get_db)):
    account = AccountRepository(db).get_by_account_number(account_number)
    if account is None:
        raise AccountNotFoundError(f"No account with number {account_number}")
    return AccountLookupResponse(id=account.id, username=account.username, account_number=account.account_number)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(account_id: str, request: Request, db: Session = Depends(get_db)):
    """Fetch an account, settling every recurring event due up to the simulated clock"""
    with unit_of_work(db, get_request_id(request)):
        account, _ = load_settled_account(db, account_id, get_request_id(request))
    return AccountResponse.model_validate(account)


@router.post("/accounts/{account_id}/settle", response_model=SettlementResponse)
def settle_account_now(account_id: str, request: Request, db: Session = Depends(get_db)):
    """Run settlement explicitly and report what it applied"""
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        now = ClockRepository(db).read()
        account = AccountRepository(db).require(account_id)
        result = settle(db, account, now, request_id)

    summary = result.summary
    return SettlementResponse(
        account_id=account_id,
        simulated_now=now,
        modified=result.modified,
        salary_cycles=summary.salary_cycles,
        obligations_paid=summary.obligations_paid,
        obligations_missed=summary.obligations_missed,
        flat_fees=summary.flat_fees,
        courses_completed=summary.courses_completed,
    )


@router.get("/accounts/{account_id}/summary", response_model=SummaryResponse)
def get_account_summary(account_id: str, request: Request, db: Session = Depends(get_db)):
    with unit_of_work(db, get_request_id(request)):
        account, now = load_settled_account(db, account_id, get_request_id(request))
    return SummaryResponse(
        account_id=account.id,
        simulated_now=now,
        net_worth_usd=calculate_net_worth(account),
        spending_by_category=spending_by_category(account),
    )


@router.get("/accounts/{account_id}/transactions", response_model=list[TransactionSchema])
def list_transactions(
    account_id: str,
    request: Request,
    since: Optional[datetime] = Query(None, description="Only transactions at or after this time"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Most recent transactions first"""
    with unit_of_work(db, get_request_id(request)):
        account, _ = load_settled_account(db, account_id, get_request_id(request))

    if since is not None:
        since = ensure_utc(since)
    transactions = [t for t in account.transactions if since is None or t.timestamp >= since]
    transactions.sort(key=lambda t: t.timestamp, reverse=True)
    return [TransactionSchema.model_validate(t) for t in transactions[:limit]]
