"""
In-Memory Storage

Same contract as the Google Sheets storage, kept in dictionaries.
Used by the tests and for running the session without a network.
Rows are scoped per user exactly like the remote store.
"""

from datetime import datetime
from typing import Optional

from cardledger.models.audit import AuditEvent
from cardledger.models.finance import Card, Profile, Subscription, Transaction
from cardledger.services.storage.interface import (
    AuditStorageInterface,
    CardStorageInterface,
    NotAuthenticatedError,
    ProfileStorageInterface,
    SubscriptionStorageInterface,
    TransactionStorageInterface,
)


class InMemoryStore:
    """Shared backing dictionaries plus the signed-in user id."""

    def __init__(self, user_id: Optional[str] = None):
        self.user_id = user_id
        # table -> user_id -> entity_id -> entity
        self.tables: dict[str, dict[str, dict[str, object]]] = {}
        self.profiles: dict[str, Profile] = {}
        self.audit_events: list[AuditEvent] = []

    def set_user(self, user_id: Optional[str]) -> None:
        self.user_id = user_id

    def require_user(self) -> str:
        if not self.user_id:
            raise NotAuthenticatedError("User not authenticated")
        return self.user_id

    def rows(self, table: str, user_id: str) -> dict[str, object]:
        return self.tables.setdefault(table, {}).setdefault(user_id, {})


class _InMemoryTable:
    table = ""

    def __init__(self, store: Optional[InMemoryStore] = None):
        self._store = store or InMemoryStore()

    def _list(self) -> list:
        if not self._store.user_id:
            return []
        return list(self._store.rows(self.table, self._store.user_id).values())

    def _upsert(self, entity_id: str, entity):
        user_id = self._store.require_user()
        self._store.rows(self.table, user_id)[entity_id] = entity
        return entity

    def _delete(self, entity_id: str) -> bool:
        user_id = self._store.require_user()
        return self._store.rows(self.table, user_id).pop(entity_id, None) is not None


class InMemoryCardStorage(_InMemoryTable, CardStorageInterface):
    table = "cards"

    async def list_cards(self) -> list[Card]:
        return self._list()

    async def upsert_card(self, card: Card) -> Card:
        return self._upsert(card.id, card)

    async def delete_card(self, card_id: str) -> bool:
        return self._delete(card_id)


class InMemoryTransactionStorage(_InMemoryTable, TransactionStorageInterface):
    table = "transactions"

    async def list_transactions(self) -> list[Transaction]:
        return self._list()

    async def upsert_transaction(self, tx: Transaction) -> Transaction:
        return self._upsert(tx.id, tx)

    async def delete_transaction(self, tx_id: str) -> bool:
        return self._delete(tx_id)


class InMemorySubscriptionStorage(_InMemoryTable, SubscriptionStorageInterface):
    table = "subscriptions"

    async def list_subscriptions(self) -> list[Subscription]:
        return self._list()

    async def upsert_subscription(self, sub: Subscription) -> Subscription:
        return self._upsert(sub.id, sub)

    async def delete_subscription(self, sub_id: str) -> bool:
        return self._delete(sub_id)


class InMemoryProfileStorage(ProfileStorageInterface):
    def __init__(self, store: Optional[InMemoryStore] = None):
        self._store = store or InMemoryStore()

    async def get_profile(self) -> Optional[Profile]:
        if not self._store.user_id:
            return None
        return self._store.profiles.get(self._store.user_id)

    async def upsert_profile(self, updates: dict) -> Profile:
        user_id = self._store.require_user()
        current = self._store.profiles.get(user_id)
        base = current.model_dump() if current else {}
        profile = Profile(**{
            **base,
            **updates,
            "id": user_id,
            "updated_at": datetime.utcnow(),
        })
        self._store.profiles[user_id] = profile
        return profile


class InMemoryAuditStorage(AuditStorageInterface):
    def __init__(self, store: Optional[InMemoryStore] = None):
        self._store = store or InMemoryStore()

    async def append_event(self, event: AuditEvent) -> bool:
        self._store.audit_events.append(event)
        return True

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._store.audit_events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
