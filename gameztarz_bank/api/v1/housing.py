"""Property catalog, purchase, rental, sale and vacate endpoints"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import get_request_id, load_settled_account, unit_of_work
from gameztarz_bank.api.v1.schemas import PropertyRequest, PropertyResponse, SaleResponse
from gameztarz_bank.domain.catalog import PROPERTIES
from gameztarz_bank.domain.operations import acquire_property, sell_property, vacate_property
from gameztarz_bank.infrastructure.database.repositories import AccountRepository, FeePoolRepository
from gameztarz_bank.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/properties")
def list_properties():
    return [asdict(prop) for prop in PROPERTIES.values()]


@router.post("/accounts/{account_id}/properties", response_model=PropertyResponse, status_code=201)
def acquire(account_id: str, body: PropertyRequest, request: Request, db: Session = Depends(get_db)):
    """Buy or rent a property; the 10% VAT goes to the fee pool"""
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, now = load_settled_account(db, account_id, request_id)
        tax = acquire_property(account, body.property_id, body.ownership_type, now)
        AccountRepository(db).save(account)
        FeePoolRepository(db).credit(tax, f"Housing VAT for {body.property_id}")
    return PropertyResponse(property_id=body.property_id, ownership_type=body.ownership_type, tax=tax)


@router.post("/accounts/{account_id}/properties/{property_id}/sell", response_model=SaleResponse)
def sell(account_id: str, property_id: str, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, now = load_settled_account(db, account_id, request_id)
        proceeds = sell_property(account, property_id, now)
        AccountRepository(db).save(account)
    return SaleResponse(property_id=property_id, proceeds=proceeds)


@router.delete("/accounts/{account_id}/properties/{property_id}", status_code=204)
def vacate(account_id: str, property_id: str, request: Request, db: Session = Depends(get_db)):
    """End a rental"""
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, _ = load_settled_account(db, account_id, request_id)
        vacate_property(account, property_id)
        AccountRepository(db).save(account)
