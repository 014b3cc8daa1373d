"""
Tests for Card Ledger models

Test strategy:
1. Unit tests for individual components (models, derivations, validators)
2. Integration tests for session flows (in-memory storage, fake AI models)
3. No real API calls in tests
"""

import json
from datetime import datetime

import pytest
from pydantic import ValidationError

from cardledger.constants import format_amount, month_name, new_id
from cardledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from cardledger.models.finance import (
    CardType,
    CardWithBalance,
    Installments,
    Transaction,
    TransactionType,
)
from cardledger.models.forms import CardForm, TransactionForm
from cardledger.models.preferences import (
    EnabledUpdate,
    FrequencyUpdate,
    NotificationFrequency,
    NotificationKind,
    UserPreferences,
    apply_notification_update,
    parse_notification_update,
)


class TestFinanceModels:
    """Tests for card, transaction and subscription models."""

    def test_card_strips_whitespace(self, make_card):
        """Test that whitespace is stripped from the card name."""
        card = make_card(name="  Visa  ")
        assert card.name == "Visa"

    def test_card_rejects_bad_last4(self, make_card):
        """Test that last4 must be exactly four digits."""
        with pytest.raises(ValidationError):
            make_card(last4="12a4")
        with pytest.raises(ValidationError):
            make_card(last4="12345")

    def test_card_rejects_payment_day_out_of_range(self, make_card):
        """Test payment_day bounds."""
        with pytest.raises(ValidationError):
            make_card(type=CardType.CREDIT, payment_day=32)
        with pytest.raises(ValidationError):
            make_card(type=CardType.CREDIT, payment_day=0)

    def test_card_has_no_stored_last_payment_date(self, make_card):
        """Test that the last payment date only exists on the derived view."""
        card = make_card()
        assert "last_payment_date" not in card.model_dump()
        assert "last_payment_date" in CardWithBalance.model_fields

    def test_transaction_rejects_negative_amount(self, make_tx):
        """Test that amounts are unsigned magnitudes."""
        with pytest.raises(ValidationError):
            make_tx("c1", -100)

    def test_signed_amount(self, make_tx):
        """Test sign derived from the transaction type."""
        assert make_tx("c1", 500).signed_amount == -500
        assert make_tx("c1", 500, type=TransactionType.INCOME).signed_amount == 500

    def test_transaction_category_defaults_to_others(self):
        """Test default category."""
        tx = Transaction(
            id=new_id(),
            card_id="c1",
            amount=10,
            type=TransactionType.EXPENSE,
            description="Coffee",
            date=datetime(2024, 1, 1),
        )
        assert tx.category == "others"

    def test_installments_bounds(self):
        """Test 1 <= current <= total and total > 1."""
        assert Installments(current=2, total=3).current == 2
        with pytest.raises(ValidationError):
            Installments(current=4, total=3)
        with pytest.raises(ValidationError):
            Installments(current=1, total=1)
        with pytest.raises(ValidationError):
            Installments(current=0, total=3)


class TestForms:
    """Tests for edit form snapshots."""

    def test_transaction_form_from_entity(self, make_tx):
        """Test that a transaction renders into form text."""
        tx = make_tx("c1", 1500, installments=Installments(current=1, total=6))
        form = TransactionForm.from_entity(tx)
        assert form.amount == "1500"
        assert form.date == "2024-03-10"
        assert form.installments_total == "6"
        assert form.installments_current == "1"

    def test_card_form_renders_unset_numbers_as_empty(self, make_card):
        """Test that missing optional numbers become empty strings."""
        form = CardForm.from_entity(make_card(initial_balance=0))
        assert form.initial_balance == "0"
        assert form.payment_day == ""
        assert form.total_limit == ""


class TestPreferences:
    """Tests for user preferences and notification updates."""

    def test_defaults(self):
        """Test default notification settings."""
        prefs = UserPreferences()
        n = prefs.notifications
        assert n.bill_reminders.enabled is True
        assert n.bill_reminders.frequency == NotificationFrequency.WEEKLY
        assert n.low_balance.enabled is True
        assert n.low_balance.frequency == NotificationFrequency.DAILY
        assert n.weekly_report.enabled is False
        assert n.weekly_report.frequency == NotificationFrequency.WEEKLY

    def test_serializes_with_camel_case(self):
        """Test camelCase keys for the device file."""
        data = UserPreferences(default_card_id="abc").model_dump(by_alias=True, mode="json")
        assert data["defaultCardId"] == "abc"
        assert "billReminders" in data["notifications"]
        assert "lowBalance" in data["notifications"]

    def test_apply_enabled_update(self):
        """Test that an enabled update changes only that field."""
        prefs = UserPreferences()
        updated = apply_notification_update(
            prefs,
            EnabledUpdate(kind=NotificationKind.WEEKLY_REPORT, value=True),
        )
        assert updated.notifications.weekly_report.enabled is True
        assert updated.notifications.weekly_report.frequency == NotificationFrequency.WEEKLY
        # Original untouched
        assert prefs.notifications.weekly_report.enabled is False

    def test_apply_frequency_update(self):
        """Test a frequency update."""
        updated = apply_notification_update(
            UserPreferences(),
            FrequencyUpdate(kind=NotificationKind.LOW_BALANCE, value=NotificationFrequency.MONTHLY),
        )
        assert updated.notifications.low_balance.frequency == NotificationFrequency.MONTHLY
        assert updated.notifications.low_balance.enabled is True

    def test_parse_picks_variant_by_field(self):
        """Test the discriminated union."""
        update = parse_notification_update(
            {"kind": "bill_reminders", "field": "frequency", "value": "daily"}
        )
        assert isinstance(update, FrequencyUpdate)
        assert update.value == NotificationFrequency.DAILY

    def test_parse_rejects_mismatched_value(self):
        """Test that a value of the wrong type for the field is rejected."""
        with pytest.raises(ValidationError):
            parse_notification_update(
                {"kind": "bill_reminders", "field": "enabled", "value": "weekly"}
            )
        with pytest.raises(ValidationError):
            parse_notification_update(
                {"kind": "bill_reminders", "field": "frequency", "value": "hourly"}
            )
        with pytest.raises(ValidationError):
            parse_notification_update(
                {"kind": "bill_reminders", "field": "color", "value": True}
            )


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test basic AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.CARD_SAVED,
            description="Card saved",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_sheets_row(self):
        """Test conversion to a sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="card",
            entity_id="c1",
            description="Failed to save card",
            details={"attempt": 1},
            error_message="boom",
        )
        row = event.to_sheets_row()
        assert len(row) == 10
        assert row[2] == "save_failed"
        assert row[5] == "c1"
        assert json.loads(row[7]) == {"attempt": 1}
        assert row[9] == "False"

    def test_builder_entity_saved(self):
        """Test AuditEventBuilder.entity_saved."""
        event = AuditEventBuilder.entity_saved("transaction", "t1", amount=100)
        assert event.event_type == AuditEventType.TRANSACTION_SAVED
        assert event.details == {"amount": 100}
        assert event.is_user_action is True

    def test_builder_storage_failed(self):
        """Test failure events are errors."""
        event = AuditEventBuilder.storage_failed("delete", "subscription", "timeout", "s1")
        assert event.event_type == AuditEventType.DELETE_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "timeout"


class TestConstants:
    """Tests for formatting helpers."""

    def test_format_amount_clp(self):
        assert format_amount(150000) == "$150.000"
        assert format_amount(-2500) == "-$2.500"

    def test_format_amount_usd(self):
        assert format_amount(150000, "USD") == "$150,000"

    def test_month_name(self):
        assert month_name(1) == "Enero"
        assert month_name(12, "en") == "December"

    def test_new_id_is_unique(self):
        ids = {new_id() for _ in range(100)}
        assert len(ids) == 100
