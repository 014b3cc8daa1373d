"""Tests for balance, billing cycle and schedule derivations."""

from datetime import date, datetime

import pytest

from cardledger.derivations import (
    billing_info,
    billing_target_month,
    card_balance,
    card_payment_status,
    cards_with_balances,
    credit_usage,
    days_in_month,
    days_until,
    describe_card,
    due_label,
    is_low_balance,
    is_urgent,
    last_payment_date,
    payment_prefill,
    sort_subscriptions_by_due,
    subscription_totals,
    total_balance,
    upcoming_payments,
)
from cardledger.models.finance import (
    BillingCycle,
    CardType,
    PaymentState,
    TransactionType,
    UpcomingKind,
)

INCOME = TransactionType.INCOME


class TestBalance:
    """Tests for the balance calculator."""

    def test_no_transactions_gives_initial_balance(self, make_card):
        """Test balance with an empty log."""
        card = make_card(initial_balance=100000)
        assert card_balance(card, []) == 100000

    def test_income_adds_expense_subtracts(self, make_card, make_tx):
        """Test initial + income - expense."""
        card = make_card(initial_balance=100000)
        txs = [
            make_tx(card.id, 20000),
            make_tx(card.id, 5000, type=INCOME),
            make_tx(card.id, 30000),
        ]
        assert card_balance(card, txs) == 55000

    def test_only_own_transactions_count(self, make_card, make_tx):
        """Test that other cards' transactions are ignored."""
        card = make_card(initial_balance=1000)
        other = make_card(initial_balance=0)
        txs = [make_tx(other.id, 999), make_tx(card.id, 100)]
        assert card_balance(card, txs) == 900

    def test_total_balance(self, make_card, make_tx):
        """Test the sum over all cards."""
        a = make_card(initial_balance=1000)
        b = make_card(initial_balance=2000)
        txs = [make_tx(a.id, 100), make_tx(b.id, 500, type=INCOME)]
        assert total_balance([a, b], txs) == 3400

    def test_cards_with_balances_keeps_order_and_projects_payment(self, make_card, make_tx):
        """Test derived views carry balance and last payment date."""
        a = make_card(name="A", initial_balance=10)
        b = make_card(name="B", type=CardType.CREDIT, initial_balance=500, payment_day=5)
        paid = make_tx(
            b.id, 200, type=INCOME, is_monthly_payment=True, date=datetime(2024, 3, 4)
        )
        views = cards_with_balances([a, b], [paid])
        assert [v.name for v in views] == ["A", "B"]
        assert views[1].current_balance == 700
        assert views[1].last_payment_date == datetime(2024, 3, 4)
        assert views[0].last_payment_date is None

    def test_low_balance(self, make_card):
        """Test the low balance flag."""
        card = make_card(initial_balance=1000, min_balance_threshold=5000)
        view = cards_with_balances([card], [])[0]
        assert is_low_balance(view) is True

        no_threshold = cards_with_balances([make_card(initial_balance=0)], [])[0]
        assert is_low_balance(no_threshold) is False

    def test_credit_usage_clamped(self, make_card, make_tx):
        """Test the spent percentage against the credit limit."""
        card = make_card(type=CardType.CREDIT, initial_balance=100000, total_limit=200000)
        view = cards_with_balances([card], [make_tx(card.id, 500000)])[0]
        usage = credit_usage(view)
        assert usage.limit == 200000
        assert usage.spent_percentage == 100.0

    def test_credit_usage_zero_limit(self, make_card):
        """Test that a zero limit gives zero percent."""
        view = cards_with_balances([make_card(initial_balance=0)], [])[0]
        assert credit_usage(view).spent_percentage == 0.0

    def test_describe_deleted_card(self, make_card):
        """Test that a missing card resolves to a placeholder label."""
        card = make_card(name="Visa")
        assert describe_card(card.id, [card]) == "Visa"
        assert describe_card("gone", [card]) == "Deleted card"


class TestBillingCycle:
    """Tests for the billing cycle resolver."""

    def test_on_or_before_payment_day_uses_previous_month(self):
        assert billing_target_month(15, date(2024, 5, 15)) == (2024, 4)
        assert billing_target_month(15, date(2024, 5, 3)) == (2024, 4)

    def test_after_payment_day_uses_current_month(self):
        assert billing_target_month(15, date(2024, 5, 16)) == (2024, 5)

    def test_january_wraps_to_december(self):
        """Test the year boundary."""
        assert billing_target_month(10, date(2025, 1, 5)) == (2024, 12)

    def test_none_for_non_credit(self, make_card):
        """Test that debit cards have no bill."""
        assert billing_info(make_card(), [], date(2024, 5, 1)) is None

    def test_none_without_payment_day(self, make_card):
        card = make_card(type=CardType.CREDIT)
        assert billing_info(card, [], date(2024, 5, 1)) is None

    def test_sums_expenses_of_target_month(self, make_card, make_tx):
        """Test that only expenses of the target month count."""
        card = make_card(type=CardType.CREDIT, payment_day=10)
        txs = [
            make_tx(card.id, 1000, date=datetime(2024, 4, 3)),
            make_tx(card.id, 2000, date=datetime(2024, 4, 28)),
            make_tx(card.id, 9999, date=datetime(2024, 5, 2)),
            make_tx(card.id, 500, type=INCOME, date=datetime(2024, 4, 5)),
            make_tx("other", 7777, date=datetime(2024, 4, 5)),
        ]
        info = billing_info(card, txs, date(2024, 5, 5))
        assert info.amount == 3000
        assert info.month == "Abril"
        assert info.month_number == 4
        assert info.year == 2024
        assert info.is_custom_amount is False

    def test_custom_amount_overrides(self, make_card, make_tx):
        """Test the manual bill amount override, zero included."""
        card = make_card(type=CardType.CREDIT, payment_day=10, custom_monthly_bill_amount=0)
        txs = [make_tx(card.id, 1000, date=datetime(2024, 4, 3))]
        info = billing_info(card, txs, date(2024, 5, 5))
        assert info.amount == 0
        assert info.is_custom_amount is True

    def test_english_month_name(self, make_card):
        card = make_card(type=CardType.CREDIT, payment_day=10)
        info = billing_info(card, [], date(2024, 5, 5), language="en")
        assert info.month == "April"

    def test_last_payment_date_is_latest_flagged_income(self, make_tx):
        """Test the projection of the last bill payment."""
        txs = [
            make_tx("c1", 100, type=INCOME, is_monthly_payment=True, date=datetime(2024, 1, 5)),
            make_tx("c1", 100, type=INCOME, is_monthly_payment=True, date=datetime(2024, 3, 5)),
            make_tx("c1", 100, type=INCOME, date=datetime(2024, 4, 5)),
            make_tx("c2", 100, type=INCOME, is_monthly_payment=True, date=datetime(2024, 5, 5)),
        ]
        assert last_payment_date("c1", txs) == datetime(2024, 3, 5)
        assert last_payment_date("c3", txs) is None

    def test_payment_prefill(self, make_card, make_tx):
        """Test the pay-bill form."""
        card = make_card(type=CardType.CREDIT, payment_day=10)
        txs = [make_tx(card.id, 45000, date=datetime(2024, 4, 3))]
        form = payment_prefill(card, txs, date(2024, 5, 5))
        assert form.type == TransactionType.INCOME
        assert form.category == "bills"
        assert form.description == "Pago Facturación Abril"
        assert form.amount == "45000"
        assert form.mark_as_paid is True
        assert form.card_id == card.id
        assert form.date == "2024-05-05"

    def test_payment_prefill_leaves_zero_amount_empty(self, make_card):
        card = make_card(type=CardType.CREDIT, payment_day=10)
        form = payment_prefill(card, [], date(2024, 5, 5), language="en")
        assert form.amount == ""
        assert form.description == "Bill payment April"


class TestSchedule:
    """Tests for the recurrence scheduler."""

    def test_days_in_month(self):
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2023, 2) == 28
        assert days_in_month(2024, 4) == 30

    def test_days_until_same_month(self):
        assert days_until(10, date(2024, 3, 5)) == 5
        assert days_until(5, date(2024, 3, 5)) == 0

    def test_days_until_wraps_with_real_month_length(self):
        """Test wraparound counts the actual days of the current month."""
        assert days_until(2, date(2024, 3, 30)) == 3
        assert days_until(1, date(2024, 2, 28)) == 2
        assert days_until(1, date(2023, 2, 28)) == 1
        assert days_until(3, date(2024, 4, 29)) == 4

    def test_labels_and_urgency(self):
        assert due_label(0) == "today"
        assert due_label(4) == "in 4 days"
        assert is_urgent(3) is True
        assert is_urgent(4) is False

    def test_sort_subscriptions_is_stable(self, make_sub):
        """Test ascending order with ties in input order."""
        a = make_sub(20, name="A")
        b = make_sub(6, name="B")
        c = make_sub(20, name="C")
        d = make_sub(2, name="D")
        ordered = sort_subscriptions_by_due([a, b, c, d], date(2024, 3, 5))
        assert [s.name for s in ordered] == ["B", "A", "C", "D"]

    def test_upcoming_payments_merge(self, make_card, make_sub):
        """Test merging subscriptions and credit card payment days."""
        credit = make_card(name="Visa", type=CardType.CREDIT, payment_day=7)
        debit = make_card(name="Debit")
        active = make_sub(10, name="Music")
        inactive = make_sub(6, name="Old", active=False)

        items = upcoming_payments([credit, debit], [active, inactive], date(2024, 3, 5))
        assert [(i.kind, i.name, i.days_left) for i in items] == [
            (UpcomingKind.CARD_BILL, "Visa", 2),
            (UpcomingKind.SUBSCRIPTION, "Music", 5),
        ]
        assert items[0].is_urgent is True
        assert items[1].is_urgent is False

    def test_upcoming_card_bill_amount(self, make_card, make_tx):
        """Test the bill amount on card entries, override included."""
        custom = make_card(type=CardType.CREDIT, payment_day=10, custom_monthly_bill_amount=99999)
        items = upcoming_payments([custom], [], date(2024, 5, 5), transactions=())
        assert items[0].amount == 99999

        computed = make_card(type=CardType.CREDIT, payment_day=10)
        txs = [make_tx(computed.id, 4000, date=datetime(2024, 4, 20))]
        items = upcoming_payments([computed], [], date(2024, 5, 5), txs, language="en")
        assert items[0].amount == 4000

        items = upcoming_payments([computed], [], date(2024, 5, 5))
        assert items[0].amount == 0

    def test_payment_status_from_reminder(self, make_card):
        """Test the reminder badge states."""
        today = date(2024, 3, 10)
        cases = [
            (date(2024, 3, 9), PaymentState.OVERDUE),
            (date(2024, 3, 10), PaymentState.DUE_TODAY),
            (date(2024, 3, 13), PaymentState.SOON),
            (date(2024, 3, 20), PaymentState.PENDING),
        ]
        for reminder, expected in cases:
            status = card_payment_status(make_card(reminder_date=reminder), [], today)
            assert status.state == expected
            assert status.from_reminder is True

    def test_payment_status_paid_this_month(self, make_card, make_tx):
        """Test that a bill payment this month marks the card paid."""
        card = make_card(type=CardType.CREDIT, payment_day=15)
        paid = make_tx(card.id, 100, type=INCOME, is_monthly_payment=True, date=datetime(2024, 3, 2))
        status = card_payment_status(card, [paid], date(2024, 3, 10))
        assert status.state == PaymentState.PAID

    def test_payment_status_pending_uses_calendar(self, make_card, make_tx):
        """Test pending badge with calendar-accurate days left."""
        card = make_card(type=CardType.CREDIT, payment_day=2)
        old = make_tx(card.id, 100, type=INCOME, is_monthly_payment=True, date=datetime(2024, 1, 2))
        status = card_payment_status(card, [old], date(2024, 2, 28))
        assert status.state == PaymentState.PENDING
        assert status.days_left == 3
        assert status.is_urgent is True

    def test_payment_status_none_for_plain_debit(self, make_card):
        assert card_payment_status(make_card(), [], date(2024, 3, 1)) is None

    @pytest.mark.parametrize("cycle,expected", [
        (BillingCycle.MONTHLY, (12000, 0)),
        (BillingCycle.YEARLY, (0, 12000)),
    ])
    def test_subscription_totals(self, make_sub, cycle, expected):
        """Test totals per billing cycle, inactive excluded."""
        subs = [
            make_sub(1, amount=5000, billing_cycle=cycle),
            make_sub(2, amount=7000, billing_cycle=cycle),
            make_sub(3, amount=9999, billing_cycle=cycle, active=False),
        ]
        totals = subscription_totals(subs)
        assert (totals.monthly, totals.yearly) == expected
