"""
Application State

DESIGN DECISION: The session's data lives in one explicit container.
- Collections are exposed as tuples, so callers cannot mutate them
- Every change goes through a named method
- Derived values (balances, totals) are computed on demand from the
  current snapshot and never stored
"""

from typing import Iterable, Optional

from cardledger.derivations.balance import cards_with_balances, total_balance
from cardledger.models.finance import (
    Card,
    CardWithBalance,
    Profile,
    Subscription,
    Transaction,
)
from cardledger.models.preferences import UserPreferences


def _replace_or_append(items: tuple, item) -> tuple:
    """Replace the element with the same id, or append when there is none."""
    for i, existing in enumerate(items):
        if existing.id == item.id:
            return items[:i] + (item,) + items[i + 1:]
    return items + (item,)


def _without(items: tuple, item_id: str) -> tuple:
    return tuple(x for x in items if x.id != item_id)


class AppState:
    """In-memory snapshot of the signed-in user's data."""

    def __init__(self, preferences: Optional[UserPreferences] = None):
        self._cards: tuple[Card, ...] = ()
        self._transactions: tuple[Transaction, ...] = ()
        self._subscriptions: tuple[Subscription, ...] = ()
        self.preferences = preferences or UserPreferences()
        self.profile: Optional[Profile] = None
        self.selected_card_id: Optional[str] = None

    @property
    def cards(self) -> tuple[Card, ...]:
        return self._cards

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._transactions

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        return self._subscriptions

    def replace_all(
        self,
        cards: Iterable[Card],
        transactions: Iterable[Transaction],
        subscriptions: Iterable[Subscription],
    ) -> None:
        self._cards = tuple(cards)
        self._transactions = tuple(transactions)
        self._subscriptions = tuple(subscriptions)

    def find_card(self, card_id: str) -> Optional[Card]:
        return next((c for c in self._cards if c.id == card_id), None)

    def find_transaction(self, tx_id: str) -> Optional[Transaction]:
        return next((t for t in self._transactions if t.id == tx_id), None)

    def find_subscription(self, sub_id: str) -> Optional[Subscription]:
        return next((s for s in self._subscriptions if s.id == sub_id), None)

    # ----- mutators -----

    def put_card(self, card: Card) -> None:
        self._cards = _replace_or_append(self._cards, card)

    def remove_card(self, card_id: str) -> None:
        """Drop a card. Its transactions stay."""
        self._cards = _without(self._cards, card_id)
        if self.selected_card_id == card_id:
            self.selected_card_id = None

    def put_transaction(self, tx: Transaction) -> None:
        self._transactions = _replace_or_append(self._transactions, tx)

    def remove_transaction(self, tx_id: str) -> None:
        self._transactions = _without(self._transactions, tx_id)

    def put_subscription(self, sub: Subscription) -> None:
        self._subscriptions = _replace_or_append(self._subscriptions, sub)

    def remove_subscription(self, sub_id: str) -> None:
        self._subscriptions = _without(self._subscriptions, sub_id)

    def clear(self) -> None:
        """Forget the user's data (sign-out). Preferences stay on the device."""
        self.replace_all((), (), ())
        self.profile = None
        self.selected_card_id = None

    # ----- derived -----

    def cards_with_balances(self) -> list[CardWithBalance]:
        return cards_with_balances(self._cards, self._transactions)

    def total_balance(self) -> int:
        return total_balance(self._cards, self._transactions)

    def default_card_id(self) -> str:
        """
        Card preselected in a new transaction form.

        The selected card, else the preferred default card, else the
        first card, else "".
        """
        for candidate in (self.selected_card_id, self.preferences.default_card_id):
            if candidate and self.find_card(candidate):
                return candidate
        return self._cards[0].id if self._cards else ""
