"""
Data Models Package

This package contains all Pydantic models used in Card Ledger.
All data flowing through the system must conform to these schemas.
"""

from cardledger.models.finance import (
    BillingCycle,
    BillingInfo,
    Card,
    CardType,
    CardWithBalance,
    CreditUsage,
    Installments,
    PaymentState,
    PaymentStatus,
    Profile,
    ReceiptInfo,
    Subscription,
    SubscriptionTotals,
    Transaction,
    TransactionCategory,
    TransactionType,
    UpcomingKind,
    UpcomingPayment,
)
from cardledger.models.forms import (
    CardForm,
    SubscriptionForm,
    TransactionForm,
    ValidationIssue,
    ValidationResult,
)
from cardledger.models.preferences import (
    Currency,
    EnabledUpdate,
    FrequencyUpdate,
    NotificationFrequency,
    NotificationKind,
    NotificationSetting,
    NotificationSettings,
    NotificationUpdate,
    UserPreferences,
    apply_notification_update,
    parse_notification_update,
)
from cardledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "BillingCycle",
    "BillingInfo",
    "Card",
    "CardType",
    "CardWithBalance",
    "CreditUsage",
    "Installments",
    "PaymentState",
    "PaymentStatus",
    "Profile",
    "ReceiptInfo",
    "Subscription",
    "SubscriptionTotals",
    "Transaction",
    "TransactionCategory",
    "TransactionType",
    "UpcomingKind",
    "UpcomingPayment",
    # Forms
    "CardForm",
    "SubscriptionForm",
    "TransactionForm",
    "ValidationIssue",
    "ValidationResult",
    # Preferences
    "Currency",
    "EnabledUpdate",
    "FrequencyUpdate",
    "NotificationFrequency",
    "NotificationKind",
    "NotificationSetting",
    "NotificationSettings",
    "NotificationUpdate",
    "UserPreferences",
    "apply_notification_update",
    "parse_notification_update",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
