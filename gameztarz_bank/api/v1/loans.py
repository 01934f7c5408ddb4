"""Loan offers and origination endpoints"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import get_request_id, load_settled_account, unit_of_work
from gameztarz_bank.api.v1.schemas import LoanRequest, LoanSchema
from gameztarz_bank.domain.catalog import LOAN_OFFERS
from gameztarz_bank.domain.operations import originate_loan
from gameztarz_bank.infrastructure.database.repositories import AccountRepository
from gameztarz_bank.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/loans/offers")
def list_loan_offers():
    return [asdict(offer) for offer in LOAN_OFFERS.values()]


@router.post("/accounts/{account_id}/loans", response_model=LoanSchema, status_code=201)
def take_loan(account_id: str, body: LoanRequest, request: Request, db: Session = Depends(get_db)):
    """
    Originate a loan from the offer catalog.

    The principal is credited immediately; repayments are collected monthly
    by settlement starting one simulated month from now.
    """
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, now = load_settled_account(db, account_id, request_id)
        loan = originate_loan(account, body.offer_id, now)
        AccountRepository(db).save(account)
    return LoanSchema.model_validate(loan)
