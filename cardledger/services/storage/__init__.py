"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the remote backend; the in-memory backend serves tests
and offline use.
"""

from cardledger.services.storage.interface import (
    AuditStorageInterface,
    CardStorageInterface,
    ConnectionError,
    NotAuthenticatedError,
    NotFoundError,
    ProfileStorageInterface,
    StorageError,
    SubscriptionStorageInterface,
    TransactionStorageInterface,
)
from cardledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsCardStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsSubscriptionStorage,
    GoogleSheetsTransactionStorage,
)
from cardledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryCardStorage,
    InMemoryProfileStorage,
    InMemoryStore,
    InMemorySubscriptionStorage,
    InMemoryTransactionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "CardStorageInterface",
    "ProfileStorageInterface",
    "SubscriptionStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotAuthenticatedError",
    "NotFoundError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsCardStorage",
    "GoogleSheetsClient",
    "GoogleSheetsProfileStorage",
    "GoogleSheetsSubscriptionStorage",
    "GoogleSheetsTransactionStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryCardStorage",
    "InMemoryProfileStorage",
    "InMemoryStore",
    "InMemorySubscriptionStorage",
    "InMemoryTransactionStorage",
]
