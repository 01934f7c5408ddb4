"""Conversion between Account dataclasses and their persisted JSON documents"""

from typing import Any, Dict, Optional

from gameztarz_bank.domain.ledger import infer_direction
from gameztarz_bank.domain.models import (
    Account,
    Budget,
    Enrollment,
    Loan,
    Payee,
    PlatformAccount,
    RecurringExpense,
    Stake,
    Transaction,
    UserProperty,
)
from gameztarz_bank.utils.date_utils import format_timestamp, parse_timestamp


def _ts(value: Optional[str]):
    return parse_timestamp(value) if value else None


def account_to_document(account: Account) -> Dict[str, Any]:
    """Serialize an account; fees_collected lives in its own column"""
    return {
        "id": account.id,
        "username": account.username,
        "accountNumber": account.account_number,
        "balances": dict(account.balances),
        "crypto": dict(account.crypto),
        "jobId": account.job_id,
        "lastLogin": format_timestamp(account.last_login),
        "lastSalaryDate": format_timestamp(account.last_salary_date),
        "lastMiscellaneousFeeDate": (
            format_timestamp(account.last_miscellaneous_fee_date)
            if account.last_miscellaneous_fee_date
            else None
        ),
        "transactions": [
            {
                "id": t.id,
                "type": t.type,
                "amount": t.amount,
                "currency": t.currency,
                "timestamp": format_timestamp(t.timestamp),
                "description": t.description,
                "direction": t.direction,
                "category": t.category,
            }
            for t in account.transactions
        ],
        "budgets": [
            {"id": b.id, "category": b.category, "month": b.month, "amount": b.amount, "spent": b.spent}
            for b in account.budgets
        ],
        "recurringExpenses": [
            {
                "id": e.id,
                "name": e.name,
                "amount": e.amount,
                "currency": e.currency,
                "category": e.category,
                "nextDueDate": format_timestamp(e.next_due_date),
                "interval": e.interval,
                "propertyId": e.property_id,
            }
            for e in account.recurring_expenses
        ],
        "loans": [
            {
                "id": loan.id,
                "name": loan.name,
                "amount": loan.amount,
                "interestRate": loan.interest_rate,
                "remainingBalance": loan.remaining_balance,
                "monthlyPayment": loan.monthly_payment,
                "nextPaymentDate": format_timestamp(loan.next_payment_date),
                "status": loan.status,
            }
            for loan in account.loans
        ],
        "stakes": [
            {
                "id": s.id,
                "planId": s.plan_id,
                "amount": s.amount,
                "currency": s.currency,
                "startTime": format_timestamp(s.start_time),
                "endTime": format_timestamp(s.end_time),
            }
            for s in account.stakes
        ],
        "properties": [
            {
                "propertyId": p.property_id,
                "ownershipType": p.ownership_type,
                "purchaseDate": format_timestamp(p.acquired_at),
            }
            for p in account.properties
        ],
        "education": [
            {
                "courseId": e.course_id,
                "enrollmentDate": format_timestamp(e.enrollment_date),
                "status": e.status,
            }
            for e in account.education
        ],
        "payees": [
            {"id": p.id, "name": p.name, "accountNumber": p.account_number}
            for p in account.payees
        ],
    }


def account_from_document(
    doc: Dict[str, Any],
    is_platform: bool = False,
    fees_collected: float = 0.0,
) -> Account:
    """
    Rebuild an account from its document.

    Missing collections default to empty, missing balances to zero, and
    transactions stored without a direction get the legacy inferred one.
    """
    fields = dict(
        id=doc["id"],
        username=doc["username"],
        account_number=doc["accountNumber"],
        balances={k: float(v or 0.0) for k, v in (doc.get("balances") or {}).items()},
        crypto={k: float(v or 0.0) for k, v in (doc.get("crypto") or {}).items()},
        last_login=parse_timestamp(doc["lastLogin"]),
        last_salary_date=parse_timestamp(doc.get("lastSalaryDate") or doc["lastLogin"]),
        last_miscellaneous_fee_date=_ts(doc.get("lastMiscellaneousFeeDate")),
        job_id=doc.get("jobId"),
        transactions=[
            Transaction(
                id=t["id"],
                type=t["type"],
                amount=float(t["amount"]),
                currency=t["currency"],
                timestamp=parse_timestamp(t["timestamp"]),
                description=t.get("description", ""),
                direction=t.get("direction") or infer_direction(t["type"], t.get("description", "")),
                category=t.get("category"),
            )
            for t in doc.get("transactions") or []
        ],
        budgets=[
            Budget(
                id=b["id"],
                category=b["category"],
                month=b["month"],
                amount=float(b.get("amount", 0.0)),
                spent=float(b.get("spent", 0.0)),
            )
            for b in doc.get("budgets") or []
        ],
        recurring_expenses=[
            RecurringExpense(
                id=e["id"],
                name=e["name"],
                amount=float(e["amount"]),
                currency=e.get("currency", "USD"),
                category=e.get("category", "Other"),
                next_due_date=parse_timestamp(e["nextDueDate"]),
                interval=e.get("interval", "monthly"),
                property_id=e.get("propertyId"),
            )
            for e in doc.get("recurringExpenses") or []
        ],
        loans=[
            Loan(
                id=loan["id"],
                name=loan["name"],
                amount=float(loan["amount"]),
                interest_rate=float(loan["interestRate"]),
                remaining_balance=float(loan["remainingBalance"]),
                monthly_payment=float(loan["monthlyPayment"]),
                next_payment_date=parse_timestamp(loan["nextPaymentDate"]),
                status=loan.get("status", "active"),
            )
            for loan in doc.get("loans") or []
        ],
        stakes=[
            Stake(
                id=s["id"],
                plan_id=s["planId"],
                amount=float(s["amount"]),
                currency=s["currency"],
                start_time=parse_timestamp(s["startTime"]),
                end_time=parse_timestamp(s["endTime"]),
            )
            for s in doc.get("stakes") or []
        ],
        properties=[
            UserProperty(
                property_id=p["propertyId"],
                ownership_type=p["ownershipType"],
                acquired_at=parse_timestamp(p["purchaseDate"]),
            )
            for p in doc.get("properties") or []
        ],
        education=[
            Enrollment(
                course_id=e["courseId"],
                enrollment_date=parse_timestamp(e["enrollmentDate"]),
                status=e.get("status", "in-progress"),
            )
            for e in doc.get("education") or []
        ],
        payees=[
            Payee(id=p["id"], name=p["name"], account_number=p["accountNumber"])
            for p in doc.get("payees") or []
        ],
    )
    if is_platform:
        return PlatformAccount(fees_collected=fees_collected, **fields)
    return Account(**fields)
