"""Tests for the form dirty-checker and the form validator."""

from datetime import date, datetime

from cardledger.forms import is_card_form_dirty, is_transaction_form_dirty
from cardledger.models.finance import BillingCycle, CardType, Installments, TransactionType
from cardledger.models.forms import (
    CardForm,
    SubscriptionForm,
    TransactionForm,
    ValidationIssue,
    ValidationResult,
)
from cardledger.validation import FormValidator


class TestTransactionDirtyCheck:
    """Tests for is_transaction_form_dirty."""

    def test_new_blank_form_is_clean(self):
        """Test that prefilled fields alone do not make a new form dirty."""
        form = TransactionForm.blank(card_id="c1", today=date(2024, 3, 1))
        form = form.model_copy(update={"category": "food", "type": TransactionType.INCOME})
        assert is_transaction_form_dirty(form, None) is False

    def test_new_form_with_amount_is_dirty(self):
        form = TransactionForm.blank(card_id="c1").model_copy(update={"amount": "10"})
        assert is_transaction_form_dirty(form, None) is True

    def test_new_form_with_description_is_dirty(self):
        form = TransactionForm.blank().model_copy(update={"description": "Lunch"})
        assert is_transaction_form_dirty(form, None) is True

    def test_unchanged_existing_is_clean(self, make_tx):
        """Test that a freshly opened edit form is clean."""
        tx = make_tx("c1", 1000, date=datetime(2024, 3, 10, 15, 30))
        assert is_transaction_form_dirty(TransactionForm.from_entity(tx), tx) is False

    def test_each_tracked_field_makes_dirty(self, make_tx):
        """Test the tracked fields one by one."""
        tx = make_tx("c1", 1000)
        base = TransactionForm.from_entity(tx)
        changes = [
            {"amount": "1001"},
            {"description": "Other"},
            {"category": "food"},
            {"card_id": "c2"},
            {"date": "2024-03-11"},
            {"type": TransactionType.INCOME},
        ]
        for change in changes:
            assert is_transaction_form_dirty(base.model_copy(update=change), tx) is True, change

    def test_installments_and_payment_flag_not_tracked(self, make_tx):
        """Test that installments and the bill-payment flag do not make dirty."""
        tx = make_tx("c1", 1000)
        form = TransactionForm.from_entity(tx).model_copy(update={
            "installments_total": "3",
            "installments_current": "1",
            "mark_as_paid": True,
        })
        assert is_transaction_form_dirty(form, tx) is False


class TestCardDirtyCheck:
    """Tests for is_card_form_dirty."""

    def test_new_form(self):
        assert is_card_form_dirty(CardForm.blank(), None) is False
        assert is_card_form_dirty(CardForm(type=CardType.CREDIT, color="bg-red-600"), None) is False
        assert is_card_form_dirty(CardForm(last4="1111"), None) is True
        assert is_card_form_dirty(CardForm(initial_balance="0"), None) is True

    def test_existing_tracked_fields(self, make_card):
        card = make_card(name="Visa", initial_balance=500, total_limit=1000, type=CardType.CREDIT)
        base = CardForm.from_entity(card)
        assert is_card_form_dirty(base, card) is False
        for change in (
            {"name": "Master"},
            {"initial_balance": "501"},
            {"type": CardType.DEBIT},
            {"color": "bg-red-600"},
            {"last4": "9999"},
            {"total_limit": "2000"},
        ):
            assert is_card_form_dirty(base.model_copy(update=change), card) is True, change

    def test_untracked_fields(self, make_card):
        """Test that payment day and thresholds do not make dirty."""
        card = make_card(type=CardType.CREDIT, payment_day=5)
        form = CardForm.from_entity(card).model_copy(update={
            "payment_day": "20",
            "min_balance_threshold": "100",
            "custom_monthly_bill_amount": "50",
        })
        assert is_card_form_dirty(form, card) is False


class TestTransactionValidator:
    """Tests for FormValidator.build_transaction."""

    def setup_method(self):
        self.validator = FormValidator()

    def _form(self, **fields) -> TransactionForm:
        data = {
            "amount": "15000",
            "description": "Groceries",
            "card_id": "c1",
            "date": "2024-03-10",
        }
        data.update(fields)
        return TransactionForm(**data)

    def test_valid_expense(self, make_card):
        card = make_card(id="c1")
        tx, result = self.validator.build_transaction(self._form(), [card])
        assert result.is_valid
        assert tx.amount == 15000
        assert tx.date == datetime(2024, 3, 10)
        assert tx.installments is None
        assert tx.is_monthly_payment is False

    def test_missing_fields(self, make_card):
        """Test that each required field is reported."""
        tx, result = self.validator.build_transaction(
            self._form(amount="", description="", card_id=""), [make_card(id="c1")]
        )
        assert tx is None
        assert {i.field for i in result.issues} == {"amount", "description", "card_id"}

    def test_bad_amount_and_date(self, make_card):
        tx, result = self.validator.build_transaction(
            self._form(amount="12abc", date="2024-13-45"), [make_card(id="c1")]
        )
        assert tx is None
        assert {i.issue_type for i in result.issues} == {"invalid_number", "invalid_date"}

    def test_installments_for_credit_expense(self, make_card):
        """Test that installments default the current period to 1."""
        card = make_card(id="c1", type=CardType.CREDIT, payment_day=5)
        tx, _ = self.validator.build_transaction(self._form(installments_total="6"), [card])
        assert tx.installments == Installments(current=1, total=6)

    def test_installments_dropped_when_not_applicable(self, make_card):
        """Test debit cards, income and single payments drop installments."""
        debit = make_card(id="c1")
        tx, _ = self.validator.build_transaction(self._form(installments_total="6"), [debit])
        assert tx.installments is None

        credit = make_card(id="c1", type=CardType.CREDIT)
        tx, _ = self.validator.build_transaction(
            self._form(installments_total="6", type=TransactionType.INCOME), [credit]
        )
        assert tx.installments is None

        tx, _ = self.validator.build_transaction(self._form(installments_total="1"), [credit])
        assert tx.installments is None

    def test_installment_current_beyond_total_rejected(self, make_card):
        card = make_card(id="c1", type=CardType.CREDIT)
        tx, result = self.validator.build_transaction(
            self._form(installments_total="3", installments_current="5"), [card]
        )
        assert tx is None
        assert result.issues[0].field == "installments_current"

    def test_payment_flag_only_for_income(self, make_card):
        """Test that mark_as_paid is dropped on expenses."""
        card = make_card(id="c1", type=CardType.CREDIT)
        tx, _ = self.validator.build_transaction(self._form(mark_as_paid=True), [card])
        assert tx.is_monthly_payment is False

        tx, _ = self.validator.build_transaction(
            self._form(mark_as_paid=True, type=TransactionType.INCOME), [card]
        )
        assert tx.is_monthly_payment is True

    def test_editing_keeps_id(self, make_card, make_tx):
        existing = make_tx("c1", 10)
        tx, _ = self.validator.build_transaction(self._form(), [make_card(id="c1")], existing)
        assert tx.id == existing.id


class TestCardValidator:
    """Tests for FormValidator.build_card."""

    def setup_method(self):
        self.validator = FormValidator()

    def test_random_last4_when_empty(self):
        card, result = self.validator.build_card(CardForm(name="Visa", initial_balance="1000"))
        assert result.is_valid
        assert len(card.last4) == 4 and card.last4.isdigit()

    def test_required_fields(self):
        card, result = self.validator.build_card(CardForm())
        assert card is None
        assert {i.field for i in result.issues} == {"name", "initial_balance"}

    def test_credit_only_fields_dropped_for_debit(self):
        """Test that credit fields on a debit card are ignored."""
        card, _ = self.validator.build_card(CardForm(
            name="Debit",
            initial_balance="1000",
            type=CardType.DEBIT,
            payment_day="5",
            total_limit="9000",
            custom_monthly_bill_amount="100",
            min_balance_threshold="300",
        ))
        assert card.payment_day is None
        assert card.total_limit is None
        assert card.custom_monthly_bill_amount is None
        assert card.min_balance_threshold == 300

    def test_payment_day_out_of_range(self):
        card, result = self.validator.build_card(CardForm(
            name="Visa", initial_balance="0", type=CardType.CREDIT, payment_day="40"
        ))
        assert card is None
        assert result.issues[0].issue_type == "out_of_range"

    def test_editing_keeps_id_and_reminder(self, make_card):
        existing = make_card(reminder_date=date(2024, 5, 1))
        card, _ = self.validator.build_card(
            CardForm(name="Renamed", initial_balance="10", last4="4321"), existing
        )
        assert card.id == existing.id
        assert card.reminder_date == date(2024, 5, 1)
        assert card.name == "Renamed"

    def test_bad_last4(self):
        card, result = self.validator.build_card(
            CardForm(name="Visa", initial_balance="0", last4="12")
        )
        assert card is None
        assert result.issues[0].field == "last4"


class TestSubscriptionValidator:
    """Tests for FormValidator.build_subscription."""

    def test_valid(self):
        sub, result = FormValidator().build_subscription(SubscriptionForm(
            name="Music", amount="4990", card_id="c1", billing_day="15",
            billing_cycle=BillingCycle.YEARLY,
        ))
        assert result.is_valid
        assert sub.billing_day == 15
        assert sub.billing_cycle == BillingCycle.YEARLY
        assert sub.category == "subscriptions"

    def test_billing_day_range(self):
        sub, result = FormValidator().build_subscription(SubscriptionForm(
            name="Music", amount="4990", card_id="c1", billing_day="0",
        ))
        assert sub is None
        assert result.issues[0].field == "billing_day"

    def test_missing(self):
        sub, result = FormValidator().build_subscription(SubscriptionForm(billing_day=""))
        assert sub is None
        assert len(result.issues) == 4


class TestSummary:
    """Tests for the user-facing validation summary."""

    def test_summary_lists_errors(self):
        result = ValidationResult(entity_type="card", issues=[
            ValidationIssue(
                field="name", issue_type="missing", message="Name is required",
                suggested_fix="Type a name",
            ),
        ])
        summary = FormValidator().get_user_friendly_summary(result)
        assert "card could not be saved" in summary
        assert "Name is required" in summary
        assert "Type a name" in summary

    def test_summary_when_valid(self):
        summary = FormValidator().get_user_friendly_summary(ValidationResult(entity_type="card"))
        assert "passed" in summary
