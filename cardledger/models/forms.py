"""
Edit Form Models

A form holds the raw text the user typed, exactly as entered.
Parsing into entities happens in cardledger.validation, and the
dirty-check in cardledger.forms compares these snapshots.

DESIGN DECISION: Every numeric input is kept as a string here.
"" means "left empty", which is different from "0".
"""

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from cardledger.constants import (
    DEFAULT_CARD_COLOR,
    DEFAULT_CATEGORY,
    DEFAULT_SUBSCRIPTION_CATEGORY,
)
from cardledger.models.finance import (
    BillingCycle,
    Card,
    CardType,
    Subscription,
    Transaction,
    TransactionType,
)


def _optional_int_text(value: Optional[int]) -> str:
    # Zero is shown as empty, matching how the fields were first entered
    return str(value) if value else ""


class TransactionForm(BaseModel):
    """Transaction edit form."""

    amount: str = ""
    description: str = ""
    type: TransactionType = TransactionType.EXPENSE
    card_id: str = ""
    category: str = DEFAULT_CATEGORY
    date: str = Field(default="", description="YYYY-MM-DD")
    mark_as_paid: bool = False
    installments_total: str = ""
    installments_current: str = ""

    @classmethod
    def blank(
        cls,
        card_id: str = "",
        today: Optional[dt.date] = None,
    ) -> "TransactionForm":
        """Empty form for a new transaction."""
        today = today or dt.date.today()
        return cls(card_id=card_id, date=today.isoformat())

    @classmethod
    def from_entity(cls, tx: Transaction) -> "TransactionForm":
        return cls(
            amount=str(tx.amount),
            description=tx.description,
            type=tx.type,
            card_id=tx.card_id,
            category=tx.category or DEFAULT_CATEGORY,
            date=tx.date.date().isoformat(),
            mark_as_paid=tx.is_monthly_payment,
            installments_total=str(tx.installments.total) if tx.installments else "",
            installments_current=str(tx.installments.current) if tx.installments else "",
        )


class CardForm(BaseModel):
    """Card edit form."""

    name: str = ""
    type: CardType = CardType.DEBIT
    initial_balance: str = ""
    color: str = DEFAULT_CARD_COLOR
    last4: str = ""
    payment_day: str = ""
    custom_monthly_bill_amount: str = ""
    min_balance_threshold: str = ""
    total_limit: str = ""

    @classmethod
    def blank(cls) -> "CardForm":
        return cls()

    @classmethod
    def from_entity(cls, card: Card) -> "CardForm":
        return cls(
            name=card.name,
            type=card.type,
            initial_balance=str(card.initial_balance),
            color=card.color,
            last4=card.last4,
            payment_day=_optional_int_text(card.payment_day),
            custom_monthly_bill_amount=_optional_int_text(card.custom_monthly_bill_amount),
            min_balance_threshold=_optional_int_text(card.min_balance_threshold),
            total_limit=_optional_int_text(card.total_limit),
        )


class SubscriptionForm(BaseModel):
    """Subscription edit form."""

    name: str = ""
    amount: str = ""
    card_id: str = ""
    billing_day: str = "1"
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    category: str = DEFAULT_SUBSCRIPTION_CATEGORY
    active: bool = True
    color: str = DEFAULT_CARD_COLOR

    @classmethod
    def blank(cls, card_id: str = "") -> "SubscriptionForm":
        return cls(card_id=card_id)

    @classmethod
    def from_entity(cls, sub: Subscription) -> "SubscriptionForm":
        return cls(
            name=sub.name,
            amount=str(sub.amount),
            card_id=sub.card_id,
            billing_day=str(sub.billing_day),
            billing_cycle=sub.billing_cycle,
            category=sub.category,
            active=sub.active,
            color=sub.color,
        )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in a form."""

    field: str
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_number', 'invalid_date')"
    )
    message: str
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
    )
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of validating one form."""

    entity_type: str
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]
