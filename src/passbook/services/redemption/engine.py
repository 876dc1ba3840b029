"""Redemption engine: eligibility and at-most-once consumption.

A ticket's eligibility is never stored; it is recomputed from
``remaining_uses``, ``expires_at`` and ``last_redeemed_at`` on every request:

- expired: now >= expires_at
- used: remaining_uses == 0
- cooldown: now - last_redeemed_at < cooldown
- redeemable: otherwise

``redeem`` writes first and asks questions later. The eligibility predicate
is folded into one conditional UPDATE (see
``TicketRepository.decrement_and_stamp``); only when that update matches no
row is the ticket reloaded to explain why. The decrement, the ledger row and
the audit row commit together or not at all.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from passbook.core.clock import as_utc
from passbook.infrastructure.database.session import AsyncSessionLocal
from passbook.models.redemption import RedemptionEvent
from passbook.models.ticket import Ticket
from passbook.repositories.audit_log import AuditLogRepository
from passbook.repositories.redemption import RedemptionEventRepository
from passbook.repositories.ticket import TicketRepository
from passbook.services.auth.dependencies import ActorContext
from passbook.services.redemption.schemas import Eligibility, FailureReason

logger = logging.getLogger(__name__)


class StorageFault(Exception):
    """The atomic redemption step could not be completed; safe to retry."""


@dataclass(frozen=True)
class Classification:
    """Eligibility of a ticket at one instant."""

    eligibility: Eligibility
    cooldown_remaining_seconds: int = 0

    @property
    def failure_reason(self) -> FailureReason | None:
        return _FAILURE_BY_ELIGIBILITY.get(self.eligibility)


_FAILURE_BY_ELIGIBILITY = {
    Eligibility.EXPIRED: FailureReason.EXPIRED,
    Eligibility.USED: FailureReason.EXHAUSTED,
    Eligibility.COOLDOWN: FailureReason.COOLDOWN,
}


@dataclass
class PrepareOutcome:
    """Result of the side-effect-free eligibility check."""

    ticket: Ticket | None
    classification: Classification | None

    @property
    def found(self) -> bool:
        return self.ticket is not None


@dataclass
class RedemptionOutcome:
    """Typed result of a redemption attempt."""

    success: bool
    ticket: Ticket | None = None
    event: RedemptionEvent | None = None
    failure: FailureReason | None = None
    cooldown_remaining_seconds: int = 0

    @property
    def retryable(self) -> bool:
        return self.failure == FailureReason.COOLDOWN

    @classmethod
    def rejected(
        cls, reason: FailureReason, ticket: Ticket | None = None, cooldown: int = 0
    ) -> "RedemptionOutcome":
        return cls(
            success=False,
            ticket=ticket,
            failure=reason,
            cooldown_remaining_seconds=cooldown,
        )


def classify(ticket: Ticket, now: datetime, cooldown: timedelta) -> Classification:
    """Classify a ticket's eligibility at `now`."""
    now = as_utc(now)
    if now >= as_utc(ticket.expires_at):
        return Classification(Eligibility.EXPIRED)
    if ticket.remaining_uses <= 0:
        return Classification(Eligibility.USED)
    if ticket.last_redeemed_at is not None:
        elapsed = now - as_utc(ticket.last_redeemed_at)
        if elapsed < cooldown:
            remaining = math.ceil((cooldown - elapsed).total_seconds())
            return Classification(Eligibility.COOLDOWN, max(remaining, 1))
    return Classification(Eligibility.REDEEMABLE)


class RedemptionEngine:
    """Validates and executes single ticket redemptions.

    Each call runs in its own session and transaction. Contention is scoped
    to the ticket row being redeemed; unrelated tickets never wait on each
    other.
    """

    def __init__(
        self,
        cooldown: timedelta,
        session_factory: Callable[[], AsyncSession] | None = None,
    ):
        """Initialize redemption engine.

        @param cooldown - Minimum gap between two redemptions of a ticket
        @param session_factory - Optional factory for creating database sessions
        """
        self.cooldown = cooldown
        self._session_factory = session_factory or AsyncSessionLocal

    def classify(self, ticket: Ticket, now: datetime) -> Classification:
        return classify(ticket, now, self.cooldown)

    @staticmethod
    def resolve_owner(actor: ActorContext, member_id: int | None) -> int:
        """Member the ticket must belong to for this actor.

        Members may only touch their own tickets; staff must name the member
        they located.
        """
        if actor.is_member:
            return actor.actor_id
        if member_id is None:
            raise ValueError("member_id is required when staff act on behalf of a member")
        return member_id

    async def prepare_redeem(
        self,
        ticket_id: int,
        actor: ActorContext,
        now: datetime,
        *,
        member_id: int | None = None,
    ) -> PrepareOutcome:
        """Report eligibility without mutating anything.

        @param ticket_id - Ticket ID
        @param actor - Requesting actor
        @param now - Reference time
        @param member_id - Located member (staff only)
        @returns Ticket and classification, or an empty outcome if not found
        """
        owner_id = self.resolve_owner(actor, member_id)
        async with self._session_factory() as session:
            ticket = await TicketRepository(session).get_for_member(ticket_id, owner_id)
            if ticket is None:
                return PrepareOutcome(ticket=None, classification=None)
            return PrepareOutcome(ticket=ticket, classification=self.classify(ticket, now))

    async def redeem(
        self,
        ticket_id: int,
        actor: ActorContext,
        now: datetime,
        *,
        member_id: int | None = None,
        store_id: int | None = None,
    ) -> RedemptionOutcome:
        """Consume one use of a ticket, at most once per eligible unit.

        @param ticket_id - Ticket ID
        @param actor - Member redeeming their own ticket, or staff on behalf
        @param now - Redemption time
        @param member_id - Located member (staff only)
        @param store_id - Store reference; staff always use their own store
        @returns Outcome with the updated ticket and event on success
        @raises StorageFault if the ticket changed underneath the attempt
        """
        owner_id = self.resolve_owner(actor, member_id)
        if actor.is_staff:
            store_id = actor.store_id
        now = as_utc(now)

        async with self._session_factory() as session:
            tickets = TicketRepository(session)

            ticket = await tickets.decrement_and_stamp(
                ticket_id, now, cooldown=self.cooldown, member_id=owner_id
            )
            if ticket is not None:
                event = await RedemptionEventRepository(session).append(
                    RedemptionEvent(
                        ticket_id=ticket.id,
                        member_id=ticket.member_id,
                        staff_id=actor.staff_id,
                        store_id=store_id,
                        redeemed_at=now,
                    )
                )
                await AuditLogRepository(session).log_action(
                    action="ticket.redeemed",
                    resource_type="ticket",
                    resource_id=str(ticket.id),
                    actor_type=actor.kind,
                    actor_id=str(actor.actor_id),
                    store_id=store_id,
                    old_value={"remaining_uses": ticket.remaining_uses + 1},
                    new_value={
                        "remaining_uses": ticket.remaining_uses,
                        "redemption_event_id": event.id,
                    },
                )
                await session.commit()
                logger.info(
                    f"Ticket {ticket.id} redeemed by {actor.kind} {actor.actor_id}, "
                    f"{ticket.remaining_uses} uses left"
                )
                return RedemptionOutcome(success=True, ticket=ticket, event=event)

            await session.rollback()
            ticket = await tickets.get_for_member(ticket_id, owner_id)

        if ticket is None:
            logger.info(f"Redemption of ticket {ticket_id} rejected: not found for {owner_id}")
            return RedemptionOutcome.rejected(FailureReason.NOT_FOUND)

        classification = self.classify(ticket, now)
        reason = classification.failure_reason
        if reason is None:
            # Tickets only move towards used/expired/later cooldown, so a
            # failed guard followed by a redeemable reload means the row
            # changed in a way this engine does not produce.
            raise StorageFault(f"Ticket {ticket_id} changed during redemption")

        logger.info(f"Redemption of ticket {ticket_id} rejected: {reason.value}")
        return RedemptionOutcome.rejected(
            reason,
            ticket=ticket,
            cooldown=classification.cooldown_remaining_seconds,
        )
