"""Ticket redemption service with database persistence.

Provides the member and staff facing operations around tickets:
- Ticket listings (grouped by status) and detail view
- Eligibility check and redemption (delegated to RedemptionEngine)
- Redemption history for a member and for a store's current day
- Ticket grants for the external purchase/subscription flow
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Sequence
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from passbook.core.clock import Clock, as_utc, utc_now
from passbook.core.config import Settings, get_settings
from passbook.infrastructure.database.session import AsyncSessionLocal
from passbook.models.redemption import RedemptionEvent
from passbook.models.ticket import Ticket
from passbook.repositories.audit_log import AuditLogRepository
from passbook.repositories.redemption import RedemptionEventRepository
from passbook.repositories.ticket import TicketRepository
from passbook.services.auth.dependencies import ActorContext
from passbook.services.redemption.engine import (
    PrepareOutcome,
    RedemptionEngine,
    RedemptionOutcome,
)
from passbook.services.redemption.schemas import (
    Eligibility,
    MemberTicketsResponse,
    PaginationMeta,
    RedemptionEventItem,
    RedemptionHistoryResponse,
    StoreHistoryResponse,
    TicketListResponse,
    TicketSnapshot,
    TicketStatus,
    TicketSummary,
    TicketView,
)

logger = logging.getLogger(__name__)


class RedemptionService:
    """Service for ticket views, grants and redemptions.

    Uses Repository pattern for database operations and a RedemptionEngine
    for everything that consumes a ticket use.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] | None = None,
        *,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ):
        """Initialize redemption service.

        @param session_factory - Optional factory for creating database sessions
        @param clock - Optional time source (defaults to UTC now)
        @param settings - Optional settings override
        """
        self._session_factory = session_factory or AsyncSessionLocal
        self._clock = clock or utc_now
        self.settings = settings or get_settings()
        self.engine = RedemptionEngine(
            self.settings.redemption_cooldown,
            session_factory=self._session_factory,
        )

    def now(self) -> datetime:
        return as_utc(self._clock())

    @property
    def store_timezone(self) -> ZoneInfo:
        return ZoneInfo(self.settings.store_timezone)

    # Views

    def snapshot(self, ticket: Ticket, now: datetime) -> TicketSnapshot:
        """Convert a ticket to its stored-state schema."""
        return TicketSnapshot(
            id=ticket.id,
            member_id=ticket.member_id,
            ticket_type=ticket.ticket_type,
            total_uses=ticket.total_uses,
            remaining_uses=ticket.remaining_uses,
            status=TicketStatus(ticket.status_at(now)),
            expires_at=as_utc(ticket.expires_at),
            last_redeemed_at=(
                as_utc(ticket.last_redeemed_at) if ticket.last_redeemed_at else None
            ),
        )

    def view(self, ticket: Ticket, now: datetime) -> TicketView:
        """Convert a ticket to its schema with eligibility at `now`."""
        classification = self.engine.classify(ticket, now)
        expires_at = as_utc(ticket.expires_at)
        expiring_window = timedelta(days=self.settings.expiring_soon_days)
        return TicketView(
            **self.snapshot(ticket, now).model_dump(),
            eligibility=classification.eligibility,
            is_redeemable=classification.eligibility == Eligibility.REDEEMABLE,
            is_in_cooldown=classification.eligibility == Eligibility.COOLDOWN,
            cooldown_remaining_seconds=classification.cooldown_remaining_seconds,
            is_expiring_soon=now < expires_at <= now + expiring_window,
        )

    @staticmethod
    def event_item(
        event: RedemptionEvent, ticket_types: dict[int, str] | None = None
    ) -> RedemptionEventItem:
        """Convert a ledger row to its schema."""
        return RedemptionEventItem(
            id=event.id,
            ticket_id=event.ticket_id,
            ticket_type=(ticket_types or {}).get(event.ticket_id),
            member_id=event.member_id,
            staff_id=event.staff_id,
            store_id=event.store_id,
            actor_type=event.actor_type,
            redeemed_by=event.redeemed_by,
            redeemed_at=as_utc(event.redeemed_at),
        )

    async def _ticket_types(
        self, session: AsyncSession, events: Sequence[RedemptionEvent]
    ) -> dict[int, str]:
        ticket_ids = {e.ticket_id for e in events}
        if not ticket_ids:
            return {}
        result = await session.execute(
            select(Ticket.id, Ticket.ticket_type).where(Ticket.id.in_(ticket_ids))
        )
        return dict(result.all())

    # Tickets

    async def list_member_tickets(self, member_id: int) -> TicketListResponse:
        """List a member's tickets grouped into active and inactive.

        @param member_id - Ticket owner
        @returns Grouped tickets with a summary over active ones
        """
        now = self.now()
        async with self._session_factory() as session:
            tickets = await TicketRepository(session).list_for_member(member_id)

        active: list[TicketView] = []
        inactive: list[TicketView] = []
        for ticket in tickets:
            view = self.view(ticket, now)
            (active if view.status == TicketStatus.ACTIVE else inactive).append(view)

        return TicketListResponse(
            active=active,
            inactive=inactive,
            summary=TicketSummary(
                total_remaining=sum(t.remaining_uses for t in active),
                active_count=len(active),
            ),
        )

    async def list_active_tickets(self, member_id: int) -> MemberTicketsResponse:
        """List a member's active tickets for staff at the counter.

        @param member_id - Located member
        @returns Active tickets, soonest expiry first
        """
        now = self.now()
        async with self._session_factory() as session:
            tickets = await TicketRepository(session).list_for_member(
                member_id, active_only=True, now=now
            )
        return MemberTicketsResponse(
            member_id=member_id,
            tickets=[self.view(t, now) for t in tickets],
        )

    async def get_ticket(self, ticket_id: int, member_id: int) -> TicketView | None:
        """Get one of a member's tickets.

        @param ticket_id - Ticket ID
        @param member_id - Expected owner
        @returns Ticket view or None if not found for this member
        """
        now = self.now()
        async with self._session_factory() as session:
            ticket = await TicketRepository(session).get_for_member(ticket_id, member_id)
        if ticket is None:
            return None
        return self.view(ticket, now)

    async def grant_ticket(
        self,
        member_id: int,
        *,
        total_uses: int,
        expires_at: datetime,
        ticket_type: str = "standard",
        granted_by: str | None = None,
    ) -> Ticket:
        """Create a ticket for a member (purchase or subscription grant).

        @param member_id - New owner
        @param total_uses - Uses granted; remaining_uses starts equal
        @param expires_at - Expiry time
        @param ticket_type - Category label
        @param granted_by - Identifier of the granting system or admin
        @returns Created ticket
        @raises ValueError if total_uses is not positive
        """
        if total_uses < 1:
            raise ValueError(f"total_uses must be positive, got {total_uses}")

        async with self._session_factory() as session:
            ticket = await TicketRepository(session).create({
                "member_id": member_id,
                "ticket_type": ticket_type,
                "total_uses": total_uses,
                "remaining_uses": total_uses,
                "expires_at": as_utc(expires_at),
            })

            await AuditLogRepository(session).log_action(
                action="ticket.granted",
                resource_type="ticket",
                resource_id=str(ticket.id),
                actor_type="system",
                actor_id=granted_by,
                new_value={
                    "member_id": member_id,
                    "ticket_type": ticket_type,
                    "total_uses": total_uses,
                    "expires_at": as_utc(expires_at).isoformat(),
                },
            )

            await session.commit()
            logger.info(
                f"Granted ticket {ticket.id} ({ticket_type}, {total_uses} uses) "
                f"to member {member_id}"
            )
            return ticket

    # Redemption

    async def prepare_redeem(
        self,
        ticket_id: int,
        actor: ActorContext,
        *,
        member_id: int | None = None,
    ) -> PrepareOutcome:
        """Side-effect-free eligibility check.

        @param ticket_id - Ticket ID
        @param actor - Requesting actor
        @param member_id - Located member (staff only)
        @returns Prepare outcome from the engine
        """
        return await self.engine.prepare_redeem(
            ticket_id, actor, self.now(), member_id=member_id
        )

    async def redeem(
        self,
        ticket_id: int,
        actor: ActorContext,
        *,
        member_id: int | None = None,
        store_id: int | None = None,
    ) -> RedemptionOutcome:
        """Redeem one use of a ticket.

        @param ticket_id - Ticket ID
        @param actor - Member (self) or staff on behalf of a member
        @param member_id - Located member (staff only)
        @param store_id - Store reference for member self-redemption
        @returns Typed redemption outcome
        """
        return await self.engine.redeem(
            ticket_id,
            actor,
            self.now(),
            member_id=member_id,
            store_id=store_id,
        )

    # History

    async def get_member_history(
        self,
        member_id: int,
        page: int = 1,
        page_size: int | None = None,
    ) -> RedemptionHistoryResponse:
        """Get a member's redemption history, newest first.

        @param member_id - Ticket owner
        @param page - Page number (1-based)
        @param page_size - Items per page
        @returns Paginated history
        @raises ValueError if page or page_size is below 1
        """
        if page_size is None:
            page_size = self.settings.history_page_size
        if page < 1:
            raise ValueError(f"page must be at least 1, got {page}")
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")
        async with self._session_factory() as session:
            events, total_items = await RedemptionEventRepository(
                session
            ).list_for_member(member_id, page=page, page_size=page_size)
            ticket_types = await self._ticket_types(session, events)

        total_pages = (
            (total_items + page_size - 1) // page_size if total_items > 0 else 0
        )
        return RedemptionHistoryResponse(
            items=[self.event_item(e, ticket_types) for e in events],
            meta=PaginationMeta(
                page=page,
                page_size=page_size,
                total_items=total_items,
                total_pages=total_pages,
            ),
        )

    async def get_store_today_history(self, store_id: int) -> StoreHistoryResponse:
        """Get a store's redemptions for its current local calendar day.

        @param store_id - Store reference
        @returns Today's events, newest first
        """
        now = self.now()
        tz = self.store_timezone
        async with self._session_factory() as session:
            events = await RedemptionEventRepository(session).list_for_store_today(
                store_id, now, tz, limit=self.settings.store_history_limit
            )
            ticket_types = await self._ticket_types(session, events)

        business_date: date = now.astimezone(tz).date()
        return StoreHistoryResponse(
            store_id=store_id,
            business_date=business_date,
            items=[self.event_item(e, ticket_types) for e in events],
            total_today=len(events),
        )

    async def count_ticket_events(self, ticket_id: int) -> int:
        """Number of ledger rows recorded for a ticket."""
        async with self._session_factory() as session:
            return await RedemptionEventRepository(session).count_for_ticket(ticket_id)


# Service singleton with dependency injection support
_redemption_service: RedemptionService | None = None


def get_redemption_service() -> RedemptionService:
    """Get or create redemption service singleton.

    @returns RedemptionService instance
    """
    global _redemption_service
    if _redemption_service is None:
        _redemption_service = RedemptionService()
    return _redemption_service


def reset_redemption_service() -> None:
    """Reset redemption service singleton (for testing)."""
    global _redemption_service
    _redemption_service = None
