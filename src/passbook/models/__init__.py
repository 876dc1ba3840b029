"""Database models for Passbook Backend."""

from passbook.models.audit import AuditLog
from passbook.models.base import Base, TimestampMixin
from passbook.models.redemption import RedemptionEvent
from passbook.models.ticket import (
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_USED,
    Ticket,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Business models
    "Ticket",
    "RedemptionEvent",
    "STATUS_ACTIVE",
    "STATUS_USED",
    "STATUS_EXPIRED",
    # Monitoring models
    "AuditLog",
]
