"""
Recurrence Scheduler

Monthly occurrences (subscription billing days, credit card payment days)
are pinned to a day of month. The next occurrence is this month when the
day has not passed yet, otherwise next month, counting the real length of
the current month.

Yearly subscriptions use the same day-of-month rule.
"""

import calendar
from datetime import date
from typing import Iterable, Optional, Sequence

from cardledger.derivations.billing import billing_info, last_payment_date
from cardledger.models.finance import (
    BillingCycle,
    Card,
    PaymentState,
    PaymentStatus,
    Subscription,
    SubscriptionTotals,
    Transaction,
    UpcomingKind,
    UpcomingPayment,
)

URGENCY_THRESHOLD_DAYS = 3


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def days_until(day: int, today: Optional[date] = None) -> int:
    """
    Days from today until the next occurrence of `day` of month.

    >>> days_until(10, date(2024, 3, 5))
    5
    >>> days_until(2, date(2024, 3, 30))
    3
    """
    today = today or date.today()
    if day >= today.day:
        return day - today.day
    return days_in_month(today.year, today.month) - today.day + day


def due_label(days_left: int) -> str:
    if days_left == 0:
        return "today"
    return f"in {days_left} days"


def is_urgent(days_left: int, threshold: int = URGENCY_THRESHOLD_DAYS) -> bool:
    return days_left <= threshold


def sort_subscriptions_by_due(
    subscriptions: Iterable[Subscription],
    today: Optional[date] = None,
) -> list[Subscription]:
    """Subscriptions ordered by days until their next billing; ties keep input order."""
    today = today or date.today()
    return sorted(subscriptions, key=lambda s: days_until(s.billing_day, today))


def upcoming_payments(
    cards: Sequence[Card],
    subscriptions: Sequence[Subscription],
    today: Optional[date] = None,
    transactions: Sequence[Transaction] = (),
    threshold: int = URGENCY_THRESHOLD_DAYS,
    language: str = "es",
) -> list[UpcomingPayment]:
    """
    Merge active subscriptions and credit card payment days into one list.

    Card entries carry the current bill amount, custom override included.
    Ordered ascending by days left; ties keep subscriptions before cards.
    """
    today = today or date.today()
    entries: list[UpcomingPayment] = []

    for sub in subscriptions:
        if not sub.active:
            continue
        left = days_until(sub.billing_day, today)
        entries.append(UpcomingPayment(
            kind=UpcomingKind.SUBSCRIPTION,
            source_id=sub.id,
            name=sub.name,
            day_of_month=sub.billing_day,
            days_left=left,
            amount=sub.amount,
            is_urgent=is_urgent(left, threshold),
        ))

    for card in cards:
        if not card.is_credit or not card.payment_day:
            continue
        left = days_until(card.payment_day, today)
        info = billing_info(card, transactions, today, language)
        entries.append(UpcomingPayment(
            kind=UpcomingKind.CARD_BILL,
            source_id=card.id,
            name=card.name,
            day_of_month=card.payment_day,
            days_left=left,
            amount=info.amount if info else None,
            is_urgent=is_urgent(left, threshold),
        ))

    return sorted(entries, key=lambda e: e.days_left)


def card_payment_status(
    card: Card,
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
    threshold: int = URGENCY_THRESHOLD_DAYS,
) -> Optional[PaymentStatus]:
    """
    Payment badge for a card.

    A manual reminder date takes priority. Without one, a credit card with
    a payment day is "paid" when a bill payment was recorded this month,
    otherwise pending with the days left until the payment day.
    """
    today = today or date.today()

    if card.reminder_date is not None:
        left = (card.reminder_date - today).days
        if left < 0:
            state = PaymentState.OVERDUE
        elif left == 0:
            state = PaymentState.DUE_TODAY
        elif left <= threshold:
            state = PaymentState.SOON
        else:
            state = PaymentState.PENDING
        return PaymentStatus(
            state=state,
            days_left=left,
            is_urgent=left <= threshold,
            from_reminder=True,
        )

    if card.is_credit and card.payment_day:
        paid_on = last_payment_date(card.id, transactions)
        if paid_on and (paid_on.year, paid_on.month) == (today.year, today.month):
            return PaymentStatus(state=PaymentState.PAID)

        left = days_until(card.payment_day, today)
        return PaymentStatus(
            state=PaymentState.PENDING,
            days_left=left,
            is_urgent=is_urgent(left, threshold),
        )

    return None


def subscription_totals(subscriptions: Iterable[Subscription]) -> SubscriptionTotals:
    """Sum of active subscription amounts, per billing cycle."""
    totals = SubscriptionTotals()
    for sub in subscriptions:
        if not sub.active:
            continue
        if sub.billing_cycle == BillingCycle.YEARLY:
            totals.yearly += sub.amount
        else:
            totals.monthly += sub.amount
    return totals
