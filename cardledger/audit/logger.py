"""
Audit Logger

Saves, deletes, rejected forms, cancelled confirmations, storage
failures and AI fallbacks all end up here as AuditEvents.

structlog is configured once, on import of this module. Writing to
the audit store never raises into the flow that produced the event.
"""

from typing import Optional

import structlog

from cardledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from cardledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


_SEVERITY_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "error",
}


class AuditLogger:
    """
    Records what happened to the user's ledger.

    Every event goes to the structured local log. When an audit store is
    attached (the AuditLog worksheet), the event is appended there too.
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False only when an attached store rejected the event.
        """
        emit = getattr(self._logger, _SEVERITY_METHODS[event.severity])
        emit("audit_event", **event.to_log_dict())

        if self._storage is None:
            return True

        try:
            return await self._storage.append_event(event)
        except Exception as e:
            # The flow that produced the event carries on
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
                event_type=event.event_type.value,
            )
            return False

    async def log_saved(self, entity_type: str, entity_id: str, **details) -> None:
        await self.log(AuditEventBuilder.entity_saved(entity_type, entity_id, **details))

    async def log_deleted(self, entity_type: str, entity_id: str) -> None:
        await self.log(AuditEventBuilder.entity_deleted(entity_type, entity_id))

    async def log_storage_failed(
        self,
        operation: str,
        entity_type: str,
        error: Exception,
        entity_id: Optional[str] = None,
    ) -> None:
        """Log a failed load, save or delete."""
        event = AuditEventBuilder.storage_failed(
            operation=operation,
            entity_type=entity_type,
            error_message=str(error),
            entity_id=entity_id,
        )
        await self.log(event)

    async def log_validation_failed(self, entity_type: str, issues: list[dict]) -> None:
        await self.log(AuditEventBuilder.validation_failed(entity_type, issues))

    async def log_user_cancelled(
        self,
        action: str,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.user_cancelled(action, entity_type, entity_id))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        )
        await self.log(event)
