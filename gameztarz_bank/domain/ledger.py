"""Ledger primitives: append-only transaction log plus monthly category budgets"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from gameztarz_bank.domain.catalog import CONVERSION_RATES, PROPERTIES
from gameztarz_bank.domain.models import (
    Account,
    Budget,
    BUDGET_CATEGORIES,
    INCOMING,
    OUTGOING,
    Transaction,
    TRANSACTION_TYPES,
)
from gameztarz_bank.utils.date_utils import month_key, utc_now

TRANSACTION_LOG_LIMIT = 200

OUTGOING_TYPES = frozenset(
    {"withdrawal", "crypto_sell", "staking_lock", "fee", "expense", "loan_repayment"}
)


def default_direction(tx_type: str) -> str:
    """Direction implied by the type alone; transfers have none"""
    if tx_type == "transfer":
        raise ValueError("transfer transactions need an explicit direction")
    return OUTGOING if tx_type in OUTGOING_TYPES else INCOMING


def infer_direction(tx_type: str, description: str) -> str:
    """
    Legacy classification by (type, description).

    Only used when reading transactions persisted before direction was stored.
    """
    if tx_type in OUTGOING_TYPES:
        return OUTGOING
    if tx_type == "transfer" and description.startswith("Transfer to"):
        return OUTGOING
    return INCOMING


def is_outgoing(tx: Transaction) -> bool:
    return tx.direction == OUTGOING


def record_transaction(
    account: Account,
    tx_type: str,
    amount: float,
    currency: str,
    description: str,
    category: Optional[str] = None,
    direction: Optional[str] = None,
    at: Optional[datetime] = None,
) -> Transaction:
    """
    Append a transaction to the account log and update the month's budget.

    Mutates the account. The log keeps the most recent TRANSACTION_LOG_LIMIT
    entries. Outgoing categorized transactions increment the spent total of the
    (month of `at`, category) budget, creating the row if needed.
    """
    if tx_type not in TRANSACTION_TYPES:
        raise ValueError(f"Unknown transaction type: {tx_type}")
    if amount < 0:
        raise ValueError("Transaction amount must be a non-negative magnitude")
    if direction is None:
        direction = default_direction(tx_type)

    effective_date = at or utc_now()
    tx = Transaction(
        id=str(uuid.uuid4()),
        type=tx_type,
        amount=amount,
        currency=currency,
        timestamp=effective_date,
        description=description,
        direction=direction,
        category=category,
    )

    account.transactions.append(tx)
    overflow = len(account.transactions) - TRANSACTION_LOG_LIMIT
    if overflow > 0:
        del account.transactions[:overflow]

    if category and direction == OUTGOING:
        budget = _find_or_create_budget(account, category, month_key(effective_date))
        budget.spent += amount

    return tx


def _find_or_create_budget(account: Account, category: str, month: str) -> Budget:
    for budget in account.budgets:
        if budget.month == month and budget.category == category:
            return budget
    budget = Budget(id=str(uuid.uuid4()), category=category, month=month)
    account.budgets.append(budget)
    return budget


def month_budgets(account: Account, month: str) -> List[Budget]:
    """Budgets for a month, with a zero row for every fixed category"""
    for category in BUDGET_CATEGORIES:
        _find_or_create_budget(account, category, month)
    return [b for b in account.budgets if b.month == month]


def set_budget_amount(account: Account, category: str, month: str, amount: float) -> Budget:
    if category not in BUDGET_CATEGORIES:
        raise ValueError(f"Unknown budget category: {category}")
    if amount < 0:
        raise ValueError("Budget amount cannot be negative")
    budget = _find_or_create_budget(account, category, month)
    budget.amount = amount
    return budget


def spending_by_category(account: Account, since: Optional[datetime] = None) -> Dict[str, float]:
    """Sum outgoing categorized transactions per category"""
    totals: Dict[str, float] = {}
    for tx in account.transactions:
        if not tx.category or not is_outgoing(tx):
            continue
        if since is not None and tx.timestamp < since:
            continue
        totals[tx.category] = totals.get(tx.category, 0.0) + tx.amount
    return totals


def calculate_net_worth(account: Account) -> float:
    """USD value of balances and owned property, less outstanding loans"""
    total = 0.0
    for currency, amount in list(account.balances.items()) + list(account.crypto.items()):
        total += amount * CONVERSION_RATES.get(currency, 0.0)

    for held in account.properties:
        prop = PROPERTIES.get(held.property_id)
        if held.ownership_type == "buy" and prop:
            total += prop.buy_price

    for loan in account.loans:
        total -= loan.remaining_balance

    return total
