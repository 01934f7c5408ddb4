"""GET /v1/clock - observe the shared simulated clock"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gameztarz_bank.api.v1.schemas import ClockResponse
from gameztarz_bank.infrastructure.database.repositories import ClockRepository
from gameztarz_bank.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/clock", response_model=ClockResponse)
def get_clock(db: Session = Depends(get_db)):
    clock = ClockRepository(db)
    current = clock.read()
    db.commit()
    return ClockResponse(current_date=current)
