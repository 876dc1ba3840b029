"""Repository for ticket operations."""

from datetime import datetime, timedelta
from typing import Sequence

from sqlalchemy import and_, or_, select, update

from passbook.core.clock import as_utc
from passbook.models.ticket import Ticket
from passbook.repositories.base import BaseRepository


class TicketRepository(BaseRepository[Ticket]):
    """Repository for Ticket database operations.

    Handles:
    - Ownership-scoped lookups
    - Member ticket listings
    - The atomic decrement-and-stamp used by redemption
    """

    model = Ticket

    async def get_for_member(self, ticket_id: int, member_id: int) -> Ticket | None:
        """Get a ticket only if it belongs to the member.

        @param ticket_id - Ticket ID
        @param member_id - Expected owner
        @returns Ticket or None when missing or owned by someone else
        """
        stmt = select(self.model).where(
            and_(
                self.model.id == ticket_id,
                self.model.member_id == member_id,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_member(
        self,
        member_id: int,
        *,
        active_only: bool = False,
        now: datetime | None = None,
    ) -> Sequence[Ticket]:
        """Get a member's tickets, soonest expiry first.

        @param member_id - Owner
        @param active_only - Only tickets with uses left that are not expired
        @param now - Reference time for the expiry filter
        @returns List of tickets
        """
        stmt = select(self.model).where(self.model.member_id == member_id)
        if active_only:
            if now is None:
                raise ValueError("now is required when active_only is set")
            stmt = stmt.where(
                and_(
                    self.model.remaining_uses > 0,
                    self.model.expires_at > as_utc(now),
                )
            )
        stmt = stmt.order_by(self.model.expires_at, self.model.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def decrement_and_stamp(
        self,
        ticket_id: int,
        now: datetime,
        *,
        cooldown: timedelta,
        member_id: int | None = None,
    ) -> Ticket | None:
        """Consume one use if, and only if, the ticket is redeemable at `now`.

        Eligibility and the write are one conditional UPDATE, so concurrent
        callers on the same row serialize on its write lock and the losers
        re-evaluate the predicate against the winner's committed row.

        @param ticket_id - Ticket ID
        @param now - Redemption time
        @param cooldown - Minimum gap since last_redeemed_at
        @param member_id - Owner guard; skipped when None
        @returns Updated ticket, or None when no row qualified
        """
        now = as_utc(now)
        conditions = [
            self.model.id == ticket_id,
            self.model.remaining_uses > 0,
            self.model.expires_at > now,
            or_(
                self.model.last_redeemed_at.is_(None),
                self.model.last_redeemed_at <= now - cooldown,
            ),
        ]
        if member_id is not None:
            conditions.append(self.model.member_id == member_id)

        stmt = (
            update(self.model)
            .where(and_(*conditions))
            .values(
                remaining_uses=self.model.remaining_uses - 1,
                last_redeemed_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return None

        return await self.session.get(
            self.model, ticket_id, populate_existing=True
        )
