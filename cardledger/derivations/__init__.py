"""
Derivations Package

Pure functions that compute balances, billing cycles and schedules
from the in-memory collections. They never touch storage.
"""

from cardledger.derivations.balance import (
    card_balance,
    cards_with_balances,
    credit_usage,
    describe_card,
    is_low_balance,
    total_balance,
)
from cardledger.derivations.billing import (
    billing_info,
    billing_target_month,
    last_payment_date,
    payment_prefill,
    previous_month,
)
from cardledger.derivations.schedule import (
    URGENCY_THRESHOLD_DAYS,
    card_payment_status,
    days_in_month,
    days_until,
    due_label,
    is_urgent,
    sort_subscriptions_by_due,
    subscription_totals,
    upcoming_payments,
)

__all__ = [
    # Balance
    "card_balance",
    "cards_with_balances",
    "credit_usage",
    "describe_card",
    "is_low_balance",
    "total_balance",
    # Billing
    "billing_info",
    "billing_target_month",
    "last_payment_date",
    "payment_prefill",
    "previous_month",
    # Schedule
    "URGENCY_THRESHOLD_DAYS",
    "card_payment_status",
    "days_in_month",
    "days_until",
    "due_label",
    "is_urgent",
    "sort_subscriptions_by_due",
    "subscription_totals",
    "upcoming_payments",
]
