"""Member ticket API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from passbook.api.v1.responses import (
    REJECTION_RESPONSES,
    eligibility_response,
    outcome_response,
    rejection_response,
)
from passbook.services.auth import MemberActor
from passbook.services.redemption import (
    EligibilityResponse,
    FailureReason,
    MemberRedeemRequest,
    RedemptionHistoryResponse,
    RedemptionResponse,
    RedemptionService,
    TicketListResponse,
    TicketView,
    get_redemption_service,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/member", tags=["Member Tickets"])


@router.get("/tickets", response_model=TicketListResponse)
async def list_tickets(
    actor: MemberActor,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> TicketListResponse:
    """List the member's tickets, grouped into active and inactive."""
    return await service.list_member_tickets(actor.actor_id)


@router.get("/redemption-history", response_model=RedemptionHistoryResponse)
async def redemption_history(
    actor: MemberActor,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int | None = Query(None, ge=1, le=100, description="Items per page"),
) -> RedemptionHistoryResponse:
    """Get the member's redemption history, newest first."""
    return await service.get_member_history(
        actor.actor_id, page=page, page_size=page_size
    )


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketView,
    responses={404: REJECTION_RESPONSES[404]},
)
async def get_ticket(
    ticket_id: int,
    actor: MemberActor,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> TicketView | JSONResponse:
    """Get one of the member's tickets."""
    ticket = await service.get_ticket(ticket_id, actor.actor_id)
    if ticket is None:
        return rejection_response(FailureReason.NOT_FOUND)
    return ticket


@router.get(
    "/tickets/{ticket_id}/prepare-redeem",
    response_model=EligibilityResponse,
    responses={404: REJECTION_RESPONSES[404]},
)
async def prepare_redeem(
    ticket_id: int,
    actor: MemberActor,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> EligibilityResponse | JSONResponse:
    """Report whether the ticket can be redeemed right now.

    Read-only; used to decide whether to show the redemption control.
    """
    outcome = await service.prepare_redeem(ticket_id, actor)
    return eligibility_response(outcome, service)


@router.post(
    "/tickets/{ticket_id}/redeem",
    response_model=RedemptionResponse,
    responses=REJECTION_RESPONSES,
)
async def redeem_ticket(
    ticket_id: int,
    actor: MemberActor,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
    request: MemberRedeemRequest | None = None,
) -> RedemptionResponse | JSONResponse:
    """Redeem one use of the member's own ticket.

    The optional ``store_id`` is self-reported: member tokens carry no store,
    so it is recorded as given and the event appears in that store's daily
    history with ``actor_type`` "member". Only staff redemptions bind the
    store to the authenticated actor.
    """
    store_id = request.store_id if request else None
    outcome = await service.redeem(ticket_id, actor, store_id=store_id)
    return outcome_response(outcome, service)
