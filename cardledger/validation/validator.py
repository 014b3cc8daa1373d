"""
Form Validation

Turns the raw text of an edit form into an entity ready to persist.

DESIGN DECISION: Validation happens in two stages:

STAGE 1 - PRESENCE:
- Required fields are non-empty
- If this fails, nothing else is checked

STAGE 2 - PARSING:
- Numbers parse as integers, dates as YYYY-MM-DD
- Days of month fall in 1-31
- Entity model constraints hold

IMPORTANT: A rejected form never reaches storage. Optional fields that
do not apply (credit-only fields on a debit card, installments on an
income) are dropped, not reported.
"""

import random
from datetime import date, datetime, time
from typing import Optional, Sequence

from pydantic import ValidationError

from cardledger.constants import DEFAULT_CATEGORY, new_id
from cardledger.models.finance import (
    Card,
    CardType,
    Installments,
    Subscription,
    Transaction,
    TransactionType,
)
from cardledger.models.forms import (
    CardForm,
    SubscriptionForm,
    TransactionForm,
    ValidationIssue,
    ValidationResult,
)


def _missing(field: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type="missing", message=message)


def _parse_int(
    value: str,
    field: str,
    label: str,
    issues: list[ValidationIssue],
) -> Optional[int]:
    """Parse an integer field, recording an issue when it does not parse."""
    try:
        return int(value.strip())
    except ValueError:
        issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_number",
            message=f"{label} must be a whole number",
            suggested_fix="Use digits only, without separators",
        ))
        return None


def _parse_day_of_month(
    value: str,
    field: str,
    label: str,
    issues: list[ValidationIssue],
) -> Optional[int]:
    day = _parse_int(value, field, label, issues)
    if day is not None and not 1 <= day <= 31:
        issues.append(ValidationIssue(
            field=field,
            issue_type="out_of_range",
            message=f"{label} must be between 1 and 31",
        ))
        return None
    return day


def _model_issues(exc: ValidationError) -> list[ValidationIssue]:
    """Translate pydantic errors into form issues."""
    return [
        ValidationIssue(
            field=".".join(str(part) for part in err["loc"]) or "form",
            issue_type="invalid_value",
            message=err["msg"],
        )
        for err in exc.errors()
    ]


def random_last4() -> str:
    """Placeholder last digits for cards saved without them."""
    return str(random.randint(1000, 9999))


class FormValidator:
    """
    Builds entities from edit forms.

    Each build_* method returns (entity, result). The entity is None
    whenever result has errors.
    """

    def build_transaction(
        self,
        form: TransactionForm,
        cards: Sequence[Card],
        existing: Optional[Transaction] = None,
    ) -> tuple[Optional[Transaction], ValidationResult]:
        """
        Build a transaction from its form.

        Installments are kept only for credit card expenses split in more
        than one payment; the current installment defaults to 1. The
        bill-payment flag is kept only for income.
        """
        result = ValidationResult(entity_type="transaction")
        issues = result.issues

        # Stage 1: presence
        if not form.amount.strip():
            issues.append(_missing("amount", "Amount is required"))
        if not form.description.strip():
            issues.append(_missing("description", "Description is required"))
        if not form.card_id:
            issues.append(_missing("card_id", "Select a card"))
        if issues:
            return None, result

        # Stage 2: parsing
        amount = _parse_int(form.amount, "amount", "Amount", issues)

        tx_date: Optional[datetime] = None
        try:
            tx_date = datetime.combine(date.fromisoformat(form.date.strip()[:10]), time())
        except ValueError:
            issues.append(ValidationIssue(
                field="date",
                issue_type="invalid_date",
                message="The selected date is not valid",
                suggested_fix="Use the YYYY-MM-DD format",
            ))

        card = next((c for c in cards if c.id == form.card_id), None)
        installments: Optional[Installments] = None
        if (
            form.type == TransactionType.EXPENSE
            and card is not None
            and card.is_credit
            and form.installments_total.strip()
        ):
            installments = self._build_installments(form, issues)

        if result.has_errors:
            return None, result

        try:
            tx = Transaction(
                id=existing.id if existing else new_id(),
                card_id=form.card_id,
                amount=amount,
                type=form.type,
                description=form.description,
                date=tx_date,
                category=form.category or DEFAULT_CATEGORY,
                is_monthly_payment=(
                    form.mark_as_paid if form.type == TransactionType.INCOME else False
                ),
                installments=installments,
            )
        except ValidationError as exc:
            issues.extend(_model_issues(exc))
            return None, result

        return tx, result

    def _build_installments(
        self,
        form: TransactionForm,
        issues: list[ValidationIssue],
    ) -> Optional[Installments]:
        try:
            total = int(form.installments_total.strip())
        except ValueError:
            return None
        if total <= 1:
            return None

        current = 1
        if form.installments_current.strip():
            current = _parse_int(
                form.installments_current, "installments_current", "Current installment", issues
            )
            if current is None:
                return None

        if not 1 <= current <= total:
            issues.append(ValidationIssue(
                field="installments_current",
                issue_type="out_of_range",
                message=f"Current installment must be between 1 and {total}",
            ))
            return None
        return Installments(current=current, total=total)

    def build_card(
        self,
        form: CardForm,
        existing: Optional[Card] = None,
    ) -> tuple[Optional[Card], ValidationResult]:
        """
        Build a card from its form.

        Editing keeps the card's id and reminder date. Payment day, custom
        bill amount and total limit only apply to credit cards.
        """
        result = ValidationResult(entity_type="card")
        issues = result.issues

        if not form.name.strip():
            issues.append(_missing("name", "Name is required"))
        if not form.initial_balance.strip():
            issues.append(_missing("initial_balance", "Initial balance is required"))
        if issues:
            return None, result

        initial_balance = _parse_int(
            form.initial_balance, "initial_balance", "Initial balance", issues
        )

        is_credit = form.type == CardType.CREDIT
        payment_day = custom_bill = total_limit = None
        if is_credit and form.payment_day.strip():
            payment_day = _parse_day_of_month(form.payment_day, "payment_day", "Payment day", issues)
        if is_credit and form.custom_monthly_bill_amount.strip():
            custom_bill = _parse_int(
                form.custom_monthly_bill_amount,
                "custom_monthly_bill_amount",
                "Monthly bill amount",
                issues,
            )
        if is_credit and form.total_limit.strip():
            total_limit = _parse_int(form.total_limit, "total_limit", "Total limit", issues)

        threshold = None
        if form.min_balance_threshold.strip():
            threshold = _parse_int(
                form.min_balance_threshold, "min_balance_threshold", "Low balance alert", issues
            )

        last4 = form.last4.strip()
        if last4 and not (len(last4) == 4 and last4.isdigit()):
            issues.append(ValidationIssue(
                field="last4",
                issue_type="invalid_format",
                message="Last digits must be exactly 4 numbers",
            ))

        if result.has_errors:
            return None, result

        try:
            card = Card(
                id=existing.id if existing else new_id(),
                name=form.name,
                type=form.type,
                initial_balance=initial_balance,
                color=form.color,
                last4=last4 or random_last4(),
                payment_day=payment_day,
                custom_monthly_bill_amount=custom_bill,
                total_limit=total_limit,
                min_balance_threshold=threshold,
                reminder_date=existing.reminder_date if existing else None,
            )
        except ValidationError as exc:
            issues.extend(_model_issues(exc))
            return None, result

        return card, result

    def build_subscription(
        self,
        form: SubscriptionForm,
        existing: Optional[Subscription] = None,
    ) -> tuple[Optional[Subscription], ValidationResult]:
        result = ValidationResult(entity_type="subscription")
        issues = result.issues

        for field, label in (
            ("name", "Name"),
            ("amount", "Amount"),
            ("card_id", "Card"),
            ("billing_day", "Billing day"),
        ):
            if not getattr(form, field).strip():
                issues.append(_missing(field, f"{label} is required"))
        if issues:
            return None, result

        amount = _parse_int(form.amount, "amount", "Amount", issues)
        billing_day = _parse_day_of_month(form.billing_day, "billing_day", "Billing day", issues)
        if result.has_errors:
            return None, result

        try:
            sub = Subscription(
                id=existing.id if existing else new_id(),
                name=form.name,
                amount=amount,
                card_id=form.card_id,
                billing_day=billing_day,
                billing_cycle=form.billing_cycle,
                category=form.category,
                active=form.active,
                color=form.color,
            )
        except ValidationError as exc:
            issues.extend(_model_issues(exc))
            return None, result

        return sub, result

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what the notifier shows when a save is rejected.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []
        if result.has_errors:
            lines.append(f"❌ The {result.entity_type} could not be saved:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines).strip()
