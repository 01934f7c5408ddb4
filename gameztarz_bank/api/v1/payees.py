"""Saved payee endpoints"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import get_request_id, unit_of_work
from gameztarz_bank.api.v1.schemas import PayeeRequest, PayeeSchema
from gameztarz_bank.domain.exceptions import RecipientNotFoundError
from gameztarz_bank.domain.operations import add_payee, remove_payee
from gameztarz_bank.infrastructure.database.repositories import AccountRepository
from gameztarz_bank.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/accounts/{account_id}/payees", response_model=List[PayeeSchema])
def list_payees(account_id: str, db: Session = Depends(get_db)):
    account = AccountRepository(db).require(account_id)
    return [PayeeSchema.model_validate(p) for p in account.payees]


@router.post("/accounts/{account_id}/payees", response_model=PayeeSchema, status_code=201)
def create_payee(account_id: str, body: PayeeRequest, request: Request, db: Session = Depends(get_db)):
    with unit_of_work(db, get_request_id(request)):
        accounts = AccountRepository(db)
        account = accounts.require(account_id)
        target = accounts.get_by_account_number(body.account_number)
        if target is None:
            raise RecipientNotFoundError("Invalid account number.")
        payee = add_payee(account, target, body.name)
        accounts.save(account)
    return PayeeSchema.model_validate(payee)


@router.delete("/accounts/{account_id}/payees/{payee_id}", status_code=204)
def delete_payee(account_id: str, payee_id: str, request: Request, db: Session = Depends(get_db)):
    with unit_of_work(db, get_request_id(request)):
        accounts = AccountRepository(db)
        account = accounts.require(account_id)
        remove_payee(account, payee_id)
        accounts.save(account)
