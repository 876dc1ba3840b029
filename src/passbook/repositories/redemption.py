"""Repository for the redemption ledger."""

from datetime import datetime, time, timedelta
from typing import Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import and_, desc, func, select

from passbook.core.clock import as_utc
from passbook.models.redemption import RedemptionEvent
from passbook.repositories.base import BaseRepository


def local_day_bounds(now: datetime, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC [start, end) of the calendar day containing `now` in `tz`."""
    local_date = as_utc(now).astimezone(tz).date()
    start = datetime.combine(local_date, time.min, tzinfo=tz)
    end = datetime.combine(local_date + timedelta(days=1), time.min, tzinfo=tz)
    return as_utc(start), as_utc(end)


class RedemptionEventRepository(BaseRepository[RedemptionEvent]):
    """Append-only ledger of RedemptionEvent rows.

    Handles:
    - Appending events inside the redemption transaction
    - Member history (paged, newest first)
    - Store history for a time window
    """

    model = RedemptionEvent

    async def append(self, event: RedemptionEvent) -> RedemptionEvent:
        """Insert a history row in the caller's transaction.

        @param event - Event to persist
        @returns Persisted event with its ID
        """
        return await self.create(event)

    async def list_for_member(
        self,
        member_id: int,
        *,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[Sequence[RedemptionEvent], int]:
        """Get a member's redemption history.

        @param member_id - Ticket owner
        @param page - Page number (1-based)
        @param page_size - Items per page
        @returns (events newest first, total event count)
        """
        total = await self.count(member_id=member_id)

        stmt = (
            select(self.model)
            .where(self.model.member_id == member_id)
            .order_by(desc(self.model.redeemed_at), desc(self.model.id))
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all(), total

    async def list_for_store_between(
        self,
        store_id: int,
        start: datetime,
        end: datetime,
        *,
        limit: int = 50,
    ) -> Sequence[RedemptionEvent]:
        """Get a store's events with start <= redeemed_at < end.

        @param store_id - Store reference
        @param start - Inclusive lower bound
        @param end - Exclusive upper bound
        @param limit - Maximum results
        @returns Events newest first
        """
        stmt = (
            select(self.model)
            .where(
                and_(
                    self.model.store_id == store_id,
                    self.model.redeemed_at >= as_utc(start),
                    self.model.redeemed_at < as_utc(end),
                )
            )
            .order_by(desc(self.model.redeemed_at), desc(self.model.id))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_for_store_today(
        self,
        store_id: int,
        now: datetime,
        tz: ZoneInfo,
        *,
        limit: int = 50,
    ) -> Sequence[RedemptionEvent]:
        """Get a store's events for its current local calendar day.

        @param store_id - Store reference
        @param now - Reference time
        @param tz - Store time zone
        @param limit - Maximum results
        @returns Events newest first
        """
        start, end = local_day_bounds(now, tz)
        return await self.list_for_store_between(store_id, start, end, limit=limit)

    async def count_for_ticket(self, ticket_id: int) -> int:
        """Count events recorded for a ticket.

        @param ticket_id - Ticket ID
        @returns Number of events
        """
        stmt = select(func.count(self.model.id)).where(
            self.model.ticket_id == ticket_id
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0
