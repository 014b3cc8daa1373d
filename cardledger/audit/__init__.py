"""Audit logging package."""

from cardledger.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
