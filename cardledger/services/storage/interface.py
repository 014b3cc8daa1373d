"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep Google Sheets as the remote store today and swap it later
2. Use in-memory storage for testing
3. Keep the session flows decoupled from the storage implementation

Every storage is scoped to the signed-in user:
- list_* returns [] when nobody is signed in
- writes raise NotAuthenticatedError when nobody is signed in
- other failures raise StorageError

There are no retries here. A failed call is reported once.
"""

from abc import ABC, abstractmethod
from typing import Optional

from cardledger.models.audit import AuditEvent
from cardledger.models.finance import Card, Profile, Subscription, Transaction


class CardStorageInterface(ABC):
    """Persistence of the user's cards."""

    @abstractmethod
    async def list_cards(self) -> list[Card]:
        """
        All cards of the signed-in user.

        Returns:
            List of cards, [] when nobody is signed in
        """
        pass

    @abstractmethod
    async def upsert_card(self, card: Card) -> Card:
        """
        Insert the card, or replace the stored card with the same id.

        Returns:
            The card as stored

        Raises:
            NotAuthenticatedError: If nobody is signed in
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_card(self, card_id: str) -> bool:
        """
        Delete a card by id. Its transactions are left in place.

        Returns:
            True if a card was deleted
        """
        pass


class TransactionStorageInterface(ABC):
    """Persistence of the user's transactions."""

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        pass

    @abstractmethod
    async def upsert_transaction(self, tx: Transaction) -> Transaction:
        pass

    @abstractmethod
    async def delete_transaction(self, tx_id: str) -> bool:
        pass


class SubscriptionStorageInterface(ABC):
    """Persistence of the user's subscriptions."""

    @abstractmethod
    async def list_subscriptions(self) -> list[Subscription]:
        pass

    @abstractmethod
    async def upsert_subscription(self, sub: Subscription) -> Subscription:
        pass

    @abstractmethod
    async def delete_subscription(self, sub_id: str) -> bool:
        pass


class ProfileStorageInterface(ABC):
    """Persistence of the signed-in user's profile."""

    @abstractmethod
    async def get_profile(self) -> Optional[Profile]:
        """
        Profile of the signed-in user.

        Returns:
            The profile, or None when it does not exist yet or nobody
            is signed in
        """
        pass

    @abstractmethod
    async def upsert_profile(self, updates: dict) -> Profile:
        """
        Merge `updates` into the user's profile and stamp updated_at.

        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class NotAuthenticatedError(StorageError):
    """A write was attempted with nobody signed in."""
    pass
