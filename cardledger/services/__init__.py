"""Services package."""

from cardledger.services.images import ImageProcessingError, prepare_image
from cardledger.services.preferences import (
    LocalPreferencesStore,
    migrate_legacy_preferences,
)
from cardledger.services.storage import (
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

__all__ = [
    # Image preparation
    "ImageProcessingError",
    "prepare_image",
    # Local preferences
    "LocalPreferencesStore",
    "migrate_legacy_preferences",
    # Storage services
    "AuditStorageInterface",
    "CardStorageInterface",
    "ConnectionError",
    "NotAuthenticatedError",
    "NotFoundError",
    "ProfileStorageInterface",
    "StorageError",
    "SubscriptionStorageInterface",
    "TransactionStorageInterface",
]
