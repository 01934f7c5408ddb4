"""Administrative endpoints: deposits and the platform fee pool"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import get_request_id, load_settled_account, unit_of_work
from gameztarz_bank.api.v1.schemas import (
    AccountLookupResponse,
    ClaimResponse,
    DepositRequest,
    FeePoolResponse,
    TransactionSchema,
)
from gameztarz_bank.domain.operations import deposit
from gameztarz_bank.infrastructure.database.repositories import AccountRepository, ClockRepository, FeePoolRepository
from gameztarz_bank.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/admin/accounts", response_model=List[AccountLookupResponse])
def list_accounts(limit: int = Query(100, ge=1, le=1000), db: Session = Depends(get_db)):
    return [
        AccountLookupResponse(id=a.id, username=a.username, account_number=a.account_number)
        for a in AccountRepository(db).list_accounts(limit)
    ]


@router.post("/admin/accounts/{account_id}/deposit", response_model=TransactionSchema, status_code=201)
def admin_deposit(account_id: str, body: DepositRequest, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, now = load_settled_account(db, account_id, request_id)
        tx = deposit(account, body.amount, body.currency, now)
        AccountRepository(db).save(account)

    logging.info(
        "Admin deposit",
        extra={"request_id": request_id, "account_id": account_id, "amount": body.amount, "currency": body.currency},
    )
    return TransactionSchema.model_validate(tx)


@router.get("/admin/fee-pool", response_model=FeePoolResponse)
def get_fee_pool(db: Session = Depends(get_db)):
    return FeePoolResponse(fees_collected=FeePoolRepository(db).balance())


@router.post("/admin/fee-pool/claim", response_model=ClaimResponse)
def claim_fee_pool(request: Request, db: Session = Depends(get_db)):
    """Move all collected fees into the platform's USD balance"""
    with unit_of_work(db, get_request_id(request)):
        now = ClockRepository(db).read()
        claimed = FeePoolRepository(db).claim(now)
    return ClaimResponse(claimed=claimed)
