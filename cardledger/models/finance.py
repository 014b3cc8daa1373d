"""
Core Data Models for Card Ledger

These models define the schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Amounts are plain integers in base currency units.
The product's main currency (CLP) has no minor unit, and integer
arithmetic keeps balances exact.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

from cardledger.constants import (
    DEFAULT_CARD_COLOR,
    DEFAULT_CATEGORY,
    DEFAULT_SUBSCRIPTION_CATEGORY,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class CardType(str, Enum):
    """Kinds of payment instrument."""
    DEBIT = "debit"
    CHECKING = "checking"
    CREDIT = "credit"


class TransactionType(str, Enum):
    """Direction of a transaction. Amounts are always stored unsigned."""
    EXPENSE = "expense"
    INCOME = "income"


class BillingCycle(str, Enum):
    """
    How often a subscription charges.

    NOTE: Yearly subscriptions are still scheduled by day-of-month only.
    There is no billing month in the model.
    """
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TransactionCategory(str, Enum):
    """
    Suggested categories.

    Transaction.category is free-form, this is the set offered to the user
    and used to normalise AI suggestions.
    """
    FOOD = "food"
    TRANSPORT = "transport"
    ENTERTAINMENT = "entertainment"
    BILLS = "bills"
    SHOPPING = "shopping"
    HEALTH = "health"
    EDUCATION = "education"
    TRAVEL = "travel"
    PETS = "pets"
    GYM = "gym"
    GIFTS = "gifts"
    SUBSCRIPTIONS = "subscriptions"
    SALARY = "salary"
    OTHERS = "others"


class PaymentState(str, Enum):
    """State of a card's payment badge."""
    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    SOON = "soon"
    PENDING = "pending"
    PAID = "paid"


class UpcomingKind(str, Enum):
    """Source of an upcoming payment."""
    SUBSCRIPTION = "subscription"
    CARD_BILL = "card_bill"


# =============================================================================
# CORE ENTITIES
# =============================================================================

class Installments(BaseModel):
    """Split of a single credit card expense across several periods."""

    current: int = Field(..., ge=1)
    total: int = Field(..., gt=1)

    @model_validator(mode='after')
    def validate_current_within_total(self) -> 'Installments':
        if self.current > self.total:
            raise ValueError("Current installment cannot exceed total installments")
        return self


class Card(BaseModel):
    """
    A payment instrument.

    NOTE: There is deliberately no last_payment_date field. The last
    payment is always projected from the transaction log
    (see derivations.billing.last_payment_date).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    type: CardType
    initial_balance: int = Field(
        ...,
        description="Opening balance (available credit for credit cards)"
    )
    color: str = Field(default=DEFAULT_CARD_COLOR)
    last4: str = Field(..., pattern=r"^\d{4}$")

    # Credit only
    payment_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Day of the month the bill is due"
    )
    custom_monthly_bill_amount: Optional[int] = Field(
        default=None,
        ge=0,
        description="Manual override for the computed bill amount"
    )
    total_limit: Optional[int] = Field(
        default=None,
        ge=0,
        description="Credit limit"
    )

    # Any type
    reminder_date: Optional[date] = None
    min_balance_threshold: Optional[int] = Field(
        default=None,
        description="Warn when the current balance drops below this"
    )

    @property
    def is_credit(self) -> bool:
        return self.type == CardType.CREDIT


class Transaction(BaseModel):
    """A single income or expense movement on a card."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    card_id: str = Field(
        ...,
        description="Reference to a card. The card may no longer exist."
    )
    amount: int = Field(..., ge=0)
    type: TransactionType
    description: str = Field(..., min_length=1, max_length=200)
    date: datetime
    category: str = Field(default=DEFAULT_CATEGORY)
    is_monthly_payment: bool = Field(
        default=False,
        description="Income that settles a credit card bill"
    )
    installments: Optional[Installments] = None

    @property
    def signed_amount(self) -> int:
        """Amount with the sign implied by the transaction type."""
        return self.amount if self.type == TransactionType.INCOME else -self.amount


class Subscription(BaseModel):
    """A recurring charge definition. It never generates transactions."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    amount: int = Field(..., ge=0)
    card_id: str
    billing_day: int = Field(..., ge=1, le=31)
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    category: str = Field(default=DEFAULT_SUBSCRIPTION_CATEGORY)
    active: bool = True
    color: str = Field(default=DEFAULT_CARD_COLOR)


class Profile(BaseModel):
    """Public profile of the signed-in user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str
    updated_at: Optional[datetime] = None
    username: Optional[str] = Field(default=None, max_length=50)
    full_name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = None
    website: Optional[str] = None


# =============================================================================
# DERIVED VIEWS - computed on read, never persisted
# =============================================================================

class CardWithBalance(Card):
    """A card together with the values derived from its transactions."""

    current_balance: int
    last_payment_date: Optional[datetime] = None


class BillingInfo(BaseModel):
    """Amount due on a credit card for its current billing cycle."""

    month: str = Field(..., description="Localized, capitalized month name")
    month_number: int = Field(..., ge=1, le=12)
    year: int
    amount: int
    is_custom_amount: bool = False


class CreditUsage(BaseModel):
    """How much of a card's limit (or opening balance) has been used."""

    limit: int
    available: int
    spent: int
    spent_percentage: float = Field(..., ge=0.0, le=100.0)


class PaymentStatus(BaseModel):
    """Payment badge for a card, from its reminder or its bill due day."""

    state: PaymentState
    days_left: Optional[int] = None
    is_urgent: bool = False
    from_reminder: bool = False


class UpcomingPayment(BaseModel):
    """One entry of the upcoming-payments list."""

    kind: UpcomingKind
    source_id: str
    name: str
    day_of_month: int
    days_left: int = Field(..., ge=0)
    amount: Optional[int] = None
    is_urgent: bool = False


class SubscriptionTotals(BaseModel):
    """Aggregate cost of active subscriptions per billing cycle."""

    monthly: int = 0
    yearly: int = 0


class ReceiptInfo(BaseModel):
    """
    Data extracted from a receipt image by the AI service.

    CRITICAL: This is PROPOSED data. It only prefills a transaction
    form, the user still saves it explicitly.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    amount: int = Field(..., ge=0)
    description: str
    category: str = Field(default=DEFAULT_CATEGORY)
