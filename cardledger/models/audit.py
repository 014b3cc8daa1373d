"""
Audit Models for Card Ledger

Every mutation of the user's data, and every failure on the way,
produces an audit event. This provides:
1. Traceability of what changed and when
2. Diagnostics when the store or the AI service misbehaves

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Persistence
    CARD_SAVED = "card_saved"
    CARD_DELETED = "card_deleted"
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_DELETED = "transaction_deleted"
    SUBSCRIPTION_SAVED = "subscription_saved"
    SUBSCRIPTION_DELETED = "subscription_deleted"
    PROFILE_UPDATED = "profile_updated"
    DATA_LOADED = "data_loaded"
    LOAD_FAILED = "load_failed"
    SAVE_FAILED = "save_failed"
    DELETE_FAILED = "delete_failed"

    # User interaction
    VALIDATION_FAILED = "validation_failed"
    USER_CANCELLED = "user_cancelled"
    CHANGES_DISCARDED = "changes_discarded"

    # AI service
    RECEIPT_EXTRACTED = "receipt_extracted"
    AI_FALLBACK_USED = "ai_fallback_used"

    # Local preferences
    PREFERENCES_MIGRATED = "preferences_migrated"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'card', 'transaction', 'subscription')"
    )
    entity_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entity_saved("card", card.id, name=card.name)
        await audit_logger.log(event)
    """

    _SAVED_TYPES = {
        "card": AuditEventType.CARD_SAVED,
        "transaction": AuditEventType.TRANSACTION_SAVED,
        "subscription": AuditEventType.SUBSCRIPTION_SAVED,
        "profile": AuditEventType.PROFILE_UPDATED,
    }

    _DELETED_TYPES = {
        "card": AuditEventType.CARD_DELETED,
        "transaction": AuditEventType.TRANSACTION_DELETED,
        "subscription": AuditEventType.SUBSCRIPTION_DELETED,
    }

    @classmethod
    def entity_saved(
        cls,
        entity_type: str,
        entity_id: str,
        **details: Any,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=cls._SAVED_TYPES[entity_type],
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} saved",
            details=details,
            is_user_action=True,
        )

    @classmethod
    def entity_deleted(
        cls,
        entity_type: str,
        entity_id: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=cls._DELETED_TYPES[entity_type],
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} deleted",
            is_user_action=True,
        )

    @staticmethod
    def data_loaded(
        cards: int,
        transactions: int,
        subscriptions: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_LOADED,
            description="User data loaded from the store",
            details={
                "cards": cards,
                "transactions": transactions,
                "subscriptions": subscriptions,
            },
        )

    @staticmethod
    def storage_failed(
        operation: str,
        entity_type: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        """Build a load/save/delete failure event."""
        event_type = {
            "load": AuditEventType.LOAD_FAILED,
            "save": AuditEventType.SAVE_FAILED,
            "delete": AuditEventType.DELETE_FAILED,
        }[operation]
        return AuditEvent(
            event_type=event_type,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"Failed to {operation} {entity_type}",
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            description=f"{entity_type.capitalize()} form rejected: {len(issues)} issue(s)",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def user_cancelled(
        action: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CANCELLED,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"User cancelled: {action}",
            is_user_action=True,
        )

    @staticmethod
    def changes_discarded(entity_type: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHANGES_DISCARDED,
            entity_type=entity_type,
            description=f"Unsaved {entity_type} changes discarded",
            is_user_action=True,
        )

    @staticmethod
    def receipt_extracted(amount: int, category: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_EXTRACTED,
            entity_type="receipt",
            description="Receipt data proposed by AI",
            details={"amount": amount, "category": category},
        )

    @staticmethod
    def ai_fallback_used(operation: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AI_FALLBACK_USED,
            severity=AuditSeverity.WARNING,
            description=f"AI {operation} unavailable, fallback shown",
            details={"operation": operation},
        )

    @staticmethod
    def preferences_migrated(path: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PREFERENCES_MIGRATED,
            description="Legacy notification preferences migrated",
            details={"path": path},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
