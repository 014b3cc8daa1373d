"""Shared fixtures: entity factories and in-memory collaborators."""

from datetime import datetime

import pytest

from cardledger.constants import new_id
from cardledger.models.finance import (
    BillingCycle,
    Card,
    CardType,
    Subscription,
    Transaction,
    TransactionType,
)


@pytest.fixture
def make_card():
    def _make(**overrides) -> Card:
        data = {
            "id": new_id(),
            "name": "Test Card",
            "type": CardType.DEBIT,
            "initial_balance": 0,
            "last4": "1234",
        }
        data.update(overrides)
        return Card(**data)
    return _make


@pytest.fixture
def make_tx():
    def _make(card_id: str, amount: int, type=TransactionType.EXPENSE, **overrides) -> Transaction:
        data = {
            "id": new_id(),
            "card_id": card_id,
            "amount": amount,
            "type": type,
            "description": "Test movement",
            "date": datetime(2024, 3, 10),
        }
        data.update(overrides)
        return Transaction(**data)
    return _make


@pytest.fixture
def make_sub():
    def _make(billing_day: int, **overrides) -> Subscription:
        data = {
            "id": new_id(),
            "name": "Streaming",
            "amount": 5000,
            "card_id": "c1",
            "billing_day": billing_day,
            "billing_cycle": BillingCycle.MONTHLY,
        }
        data.update(overrides)
        return Subscription(**data)
    return _make
