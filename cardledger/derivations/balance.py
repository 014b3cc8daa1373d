"""
Balance Calculator

Balances are DERIVED from the transaction log on every read.
Nothing in this module writes anywhere.
"""

from typing import Iterable, Optional, Sequence

from cardledger.constants import DELETED_CARD_LABEL
from cardledger.derivations.billing import last_payment_date
from cardledger.models.finance import (
    Card,
    CardWithBalance,
    CreditUsage,
    Transaction,
    TransactionType,
)


def card_balance(card: Card, transactions: Iterable[Transaction]) -> int:
    """
    Current balance of a card.

    initial_balance + sum(income) - sum(expense), over the transactions
    recorded against this card only.
    """
    income = 0
    expense = 0
    for tx in transactions:
        if tx.card_id != card.id:
            continue
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        else:
            expense += tx.amount
    return card.initial_balance + income - expense


def cards_with_balances(
    cards: Sequence[Card],
    transactions: Sequence[Transaction],
) -> list[CardWithBalance]:
    """Attach current balance and last payment date to every card, keeping order."""
    return [
        CardWithBalance(
            **card.model_dump(),
            current_balance=card_balance(card, transactions),
            last_payment_date=last_payment_date(card.id, transactions),
        )
        for card in cards
    ]


def total_balance(
    cards: Sequence[Card],
    transactions: Sequence[Transaction],
) -> int:
    """Sum of the current balance of every card."""
    return sum(card_balance(card, transactions) for card in cards)


def is_low_balance(card: CardWithBalance) -> bool:
    """True when the card has a threshold and its balance is under it."""
    if card.min_balance_threshold is None:
        return False
    return card.current_balance < card.min_balance_threshold


def credit_usage(card: CardWithBalance) -> CreditUsage:
    """
    How much of the card's limit has been spent.

    Credit cards measure against total_limit, falling back to the opening
    available credit. Other cards measure against their opening balance.
    """
    if card.is_credit:
        limit = card.total_limit or card.initial_balance
    else:
        limit = card.initial_balance

    spent = limit - card.current_balance
    if limit > 0:
        percentage = max(0.0, min(100.0, spent / limit * 100))
    else:
        percentage = 0.0

    return CreditUsage(
        limit=limit,
        available=card.current_balance,
        spent=spent,
        spent_percentage=percentage,
    )


def describe_card(card_id: str, cards: Sequence[Card]) -> str:
    """Name of the card a transaction points at, or a placeholder if it was deleted."""
    card: Optional[Card] = next((c for c in cards if c.id == card_id), None)
    return card.name if card else DELETED_CARD_LABEL
