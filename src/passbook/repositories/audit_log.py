"""Repository for audit log operations."""

from typing import Sequence

from sqlalchemy import desc, select

from passbook.models.audit import AuditLog
from passbook.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    """Repository for AuditLog database operations."""

    model = AuditLog

    async def get_by_resource(
        self,
        resource_type: str,
        resource_id: str | None = None,
        *,
        skip: int = 0,
        limit: int = 100,
    ) -> Sequence[AuditLog]:
        """Get logs by resource.

        @param resource_type - Resource type
        @param resource_id - Optional specific resource ID
        @param skip - Pagination offset
        @param limit - Maximum results
        @returns List of audit logs
        """
        stmt = select(self.model).where(self.model.resource_type == resource_type)
        if resource_id:
            stmt = stmt.where(self.model.resource_id == resource_id)
        stmt = (
            stmt.order_by(desc(self.model.created_at), desc(self.model.id))
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def log_action(
        self,
        *,
        action: str,
        resource_type: str,
        actor_type: str,
        resource_id: str | None = None,
        actor_id: str | None = None,
        store_id: int | None = None,
        old_value: dict | None = None,
        new_value: dict | None = None,
    ) -> AuditLog:
        """Create audit log entry.

        @param action - Action performed
        @param resource_type - Type of resource affected
        @param actor_type - member, staff or system
        @param resource_id - ID of resource
        @param actor_id - Acting party ID
        @param store_id - Store the action happened at
        @param old_value - Previous value (for updates)
        @param new_value - New value (for creates/updates)
        @returns Created audit log
        """
        return await self.create(
            {
                "action": action,
                "resource_type": resource_type,
                "resource_id": resource_id,
                "actor_type": actor_type,
                "actor_id": actor_id,
                "store_id": store_id,
                "old_value": old_value,
                "new_value": new_value,
            }
        )
