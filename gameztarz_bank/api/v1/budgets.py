"""Monthly budgets and category spending endpoints"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import get_request_id, load_settled_account, unit_of_work
from gameztarz_bank.api.v1.schemas import BudgetSchema, BudgetUpdateRequest, SpendingResponse
from gameztarz_bank.domain.exceptions import ValidationError
from gameztarz_bank.domain.ledger import month_budgets, set_budget_amount, spending_by_category
from gameztarz_bank.domain.models import BUDGET_CATEGORIES
from gameztarz_bank.infrastructure.database.repositories import AccountRepository
from gameztarz_bank.infrastructure.database.session import get_db
from gameztarz_bank.utils.date_utils import ensure_utc, month_key

router = APIRouter()


@router.get("/accounts/{account_id}/budgets", response_model=List[BudgetSchema])
def get_budgets(
    account_id: str,
    request: Request,
    month: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}$", description="Defaults to the simulated month"),
    db: Session = Depends(get_db),
):
    """One row per budget category, created empty on first view"""
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, now = load_settled_account(db, account_id, request_id)
        budgets = month_budgets(account, month or month_key(now))
        AccountRepository(db).save(account)
    return [BudgetSchema.model_validate(b) for b in budgets]


@router.put("/accounts/{account_id}/budgets/{category}", response_model=BudgetSchema)
def update_budget(
    account_id: str,
    category: str,
    body: BudgetUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    if category not in BUDGET_CATEGORIES:
        raise ValidationError(f"Unknown budget category: {category}")

    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, _ = load_settled_account(db, account_id, request_id)
        budget = set_budget_amount(account, category, body.month, body.amount)
        AccountRepository(db).save(account)
    return BudgetSchema.model_validate(budget)


@router.get("/accounts/{account_id}/spending", response_model=SpendingResponse)
def get_spending(
    account_id: str,
    request: Request,
    since: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, _ = load_settled_account(db, account_id, request_id)
    since = ensure_utc(since) if since else None
    return SpendingResponse(account_id=account.id, since=since, spending_by_category=spending_by_category(account, since))
