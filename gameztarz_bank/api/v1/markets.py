"""Currency exchange and crypto staking endpoints"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import get_request_id, load_settled_account, unit_of_work
from gameztarz_bank.api.v1.schemas import (
    ExchangeRequest,
    ExchangeResponse,
    StakeClaimResponse,
    StakeRequest,
    StakeSchema,
)
from gameztarz_bank.domain.catalog import CONVERSION_RATES, STAKING_PLANS
from gameztarz_bank.domain.operations import claim_stake, exchange, lock_stake
from gameztarz_bank.infrastructure.database.repositories import AccountRepository
from gameztarz_bank.infrastructure.database.session import get_db
from gameztarz_bank.utils.date_utils import utc_now

router = APIRouter()


@router.get("/exchange/rates")
def get_rates():
    """Static USD value of one unit of each currency"""
    return CONVERSION_RATES


@router.post("/accounts/{account_id}/exchange", response_model=ExchangeResponse)
def create_exchange(account_id: str, body: ExchangeRequest, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, now = load_settled_account(db, account_id, request_id)
        result = exchange(account, body.sell_currency, body.buy_currency, body.amount, now)
        AccountRepository(db).save(account)
    return ExchangeResponse(sold=result.sold, bought=result.bought, rate=result.rate)


@router.get("/staking/plans")
def list_staking_plans():
    return [
        {
            "id": plan.id,
            "name": plan.name,
            "duration_seconds": plan.duration.total_seconds(),
            "reward": plan.reward,
        }
        for plan in STAKING_PLANS.values()
    ]


# Staking plans last minutes of real time, so stakes run on the wall clock
# rather than the simulated one.

@router.post("/accounts/{account_id}/stakes", response_model=StakeSchema, status_code=201)
def create_stake(account_id: str, body: StakeRequest, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, _ = load_settled_account(db, account_id, request_id)
        stake = lock_stake(account, body.plan_id, body.amount, body.currency, utc_now())
        AccountRepository(db).save(account)
    return StakeSchema.model_validate(stake)


@router.post("/accounts/{account_id}/stakes/{stake_id}/claim", response_model=StakeClaimResponse)
def claim_matured_stake(account_id: str, stake_id: str, request: Request, db: Session = Depends(get_db)):
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        account, _ = load_settled_account(db, account_id, request_id)
        claim = claim_stake(account, stake_id, utc_now())
        AccountRepository(db).save(account)
    return StakeClaimResponse(principal=claim.principal, reward=claim.reward, total=claim.total)
