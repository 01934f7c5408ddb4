"""In-app notification endpoints"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import get_request_id, unit_of_work
from gameztarz_bank.api.v1.schemas import NotificationSchema
from gameztarz_bank.infrastructure.database.repositories import NotificationRepository
from gameztarz_bank.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/accounts/{account_id}/notifications", response_model=List[NotificationSchema])
def list_notifications(
    account_id: str,
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    records = NotificationRepository(db).list_for_account(account_id, unread_only=unread_only, limit=limit)
    return [NotificationSchema.model_validate(r) for r in records]


@router.post("/accounts/{account_id}/notifications/{notification_id}/read", status_code=204)
def mark_notification_read(
    account_id: str,
    notification_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
):
    with unit_of_work(db, get_request_id(request)):
        found = NotificationRepository(db).mark_read(notification_id, account_id)
    if not found:
        raise HTTPException(status_code=404, detail="Notification not found")
