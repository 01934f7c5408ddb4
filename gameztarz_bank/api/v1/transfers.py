"""POST /v1/accounts/{account_id}/transfers - peer-to-peer transfer endpoint"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from gameztarz_bank.api.dependencies import (
    get_notification_client,
    get_request_id,
    load_settled_account,
    settle,
    unit_of_work,
)
from gameztarz_bank.api.v1.schemas import TransferRequest, TransferResponse
from gameztarz_bank.domain.exceptions import RecipientNotFoundError
from gameztarz_bank.domain.operations import transfer
from gameztarz_bank.infrastructure.clients.notifications import NotificationClient
from gameztarz_bank.infrastructure.database.repositories import (
    AccountRepository,
    FeePoolRepository,
    NotificationRepository,
)
from gameztarz_bank.infrastructure.database.session import get_db
from gameztarz_bank.infrastructure.observability.logging import log_transfer
from gameztarz_bank.infrastructure.observability.metrics import transfer_counter

router = APIRouter()


@router.post("/accounts/{account_id}/transfers", response_model=TransferResponse, status_code=201)
def create_transfer(
    account_id: str,
    body: TransferRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notification_client: NotificationClient = Depends(get_notification_client),
):
    """
    Send funds to another account by its 10-digit number.

    Flow:
    1. Settle sender and recipient up to the simulated clock
    2. Apply the transfer and the 5% fee to both accounts
    3. Persist both accounts, the fee pool credit and the recipient
       notification in one database transaction
    4. Forward the notification to the webhook in the background
    """
    request_id = get_request_id(request)

    with unit_of_work(db, request_id):
        sender, now = load_settled_account(db, account_id, request_id)

        accounts = AccountRepository(db)
        recipient = accounts.get_by_account_number(body.recipient_account_number)
        if recipient is None:
            raise RecipientNotFoundError("Recipient account not found")
        if recipient.id != sender.id:
            recipient = settle(db, recipient, now, request_id).account

        result = transfer(
            sender,
            recipient,
            body.amount,
            body.currency,
            now,
            category=body.category,
            description=body.description,
        )

        accounts.save(sender)
        accounts.save(recipient)
        FeePoolRepository(db).credit(result.fee, f"Transfer fee from {sender.username}")

        message = f"You received {body.amount:.2f} {body.currency} from {sender.username}."
        payload = {
            "sender_id": sender.id,
            "amount": body.amount,
            "currency": body.currency,
            "transaction_id": result.recipient_transaction.id,
        }
        NotificationRepository(db).enqueue(recipient.id, "Transfer received", message, payload)

    transfer_counter.labels(currency=body.currency).inc()
    log_transfer(request_id, sender.id, recipient.id, body.amount, body.currency, result.fee)

    background_tasks.add_task(
        notification_client.send_event,
        "TRANSFER_RECEIVED",
        {"user_id": recipient.id, "message": message, **payload},
    )

    return TransferResponse(
        transaction_id=result.sender_transaction.id,
        recipient_id=recipient.id,
        amount=body.amount,
        currency=body.currency,
        fee=result.fee,
    )
