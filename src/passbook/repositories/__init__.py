"""Repository layer for database operations.

This module provides async repository implementations using SQLAlchemy 2.x.
All repositories follow the Repository pattern with consistent CRUD operations.
"""

from passbook.repositories.audit_log import AuditLogRepository
from passbook.repositories.base import BaseRepository
from passbook.repositories.redemption import RedemptionEventRepository
from passbook.repositories.ticket import TicketRepository

__all__ = [
    "BaseRepository",
    "TicketRepository",
    "RedemptionEventRepository",
    "AuditLogRepository",
]
