"""
Billing Cycle Resolver

A credit card bill due on `payment_day` covers one calendar month of
spending:
- on or before the payment day, the bill being paid is LAST month's
- after the payment day, the next bill accumulates THIS month's

A manual `custom_monthly_bill_amount` replaces the computed sum.
"""

from datetime import date, datetime
from typing import Iterable, Optional

from cardledger.constants import BILL_PAYMENT_DESCRIPTION, month_name
from cardledger.models.finance import (
    BillingInfo,
    Card,
    Transaction,
    TransactionCategory,
    TransactionType,
)
from cardledger.models.forms import TransactionForm


def previous_month(year: int, month: int) -> tuple[int, int]:
    """(year, month) of the calendar month before the given one."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def billing_target_month(payment_day: int, today: date) -> tuple[int, int]:
    """(year, month) whose expenses make up the bill for this cycle."""
    if today.day <= payment_day:
        return previous_month(today.year, today.month)
    return today.year, today.month


def billing_info(
    card: Card,
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
    language: str = "es",
) -> Optional[BillingInfo]:
    """
    Amount due for a credit card in its current billing cycle.

    Returns None for non-credit cards and for credit cards without a
    payment day.
    """
    if not card.is_credit or not card.payment_day:
        return None

    today = today or date.today()
    year, month = billing_target_month(card.payment_day, today)

    expenses = sum(
        tx.amount
        for tx in transactions
        if tx.card_id == card.id
        and tx.type == TransactionType.EXPENSE
        and tx.date.year == year
        and tx.date.month == month
    )

    is_custom = card.custom_monthly_bill_amount is not None
    amount = card.custom_monthly_bill_amount if is_custom else expenses

    return BillingInfo(
        month=month_name(month, language),
        month_number=month,
        year=year,
        amount=amount,
        is_custom_amount=is_custom,
    )


def last_payment_date(
    card_id: str,
    transactions: Iterable[Transaction],
) -> Optional[datetime]:
    """
    Date of the latest bill payment recorded on the card.

    This is a projection of the transaction log, recomputed on every call.
    """
    payments = [
        tx.date
        for tx in transactions
        if tx.card_id == card_id and tx.is_monthly_payment
    ]
    return max(payments) if payments else None


def payment_prefill(
    card: Card,
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
    language: str = "es",
) -> TransactionForm:
    """
    Transaction form for paying a credit card's current bill.

    The amount is left empty when there is nothing to pay.
    """
    today = today or date.today()
    info = billing_info(card, transactions, today, language)
    amount = info.amount if info else 0
    month = info.month if info else ""
    template = BILL_PAYMENT_DESCRIPTION.get(language, BILL_PAYMENT_DESCRIPTION["en"])

    return TransactionForm(
        type=TransactionType.INCOME,
        card_id=card.id,
        description=template.format(month=month).strip(),
        category=TransactionCategory.BILLS.value,
        amount=str(amount) if amount > 0 else "",
        date=today.isoformat(),
        mark_as_paid=True,
    )
