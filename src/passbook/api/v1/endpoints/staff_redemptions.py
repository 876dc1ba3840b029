"""Staff redemption API endpoints.

Staff act on behalf of a member they located at the counter; the store is
always the one bound to the staff token.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from passbook.api.v1.responses import (
    REJECTION_RESPONSES,
    eligibility_response,
    outcome_response,
)
from passbook.services.auth import StaffActor
from passbook.services.redemption import (
    EligibilityResponse,
    MemberTicketsResponse,
    RedemptionResponse,
    RedemptionService,
    StaffRedeemRequest,
    StoreHistoryResponse,
    get_redemption_service,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/staff", tags=["Staff Redemptions"])


@router.get("/members/{member_id}/tickets", response_model=MemberTicketsResponse)
async def list_member_tickets(
    member_id: int,
    actor: StaffActor,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> MemberTicketsResponse:
    """List a located member's active tickets."""
    return await service.list_active_tickets(member_id)


@router.get(
    "/tickets/{ticket_id}/prepare-redeem",
    response_model=EligibilityResponse,
    responses={404: REJECTION_RESPONSES[404]},
)
async def prepare_redeem(
    ticket_id: int,
    actor: StaffActor,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
    member_id: int = Query(..., description="Member the ticket must belong to"),
) -> EligibilityResponse | JSONResponse:
    """Report whether the member's ticket can be redeemed right now."""
    outcome = await service.prepare_redeem(ticket_id, actor, member_id=member_id)
    return eligibility_response(outcome, service)


@router.post(
    "/tickets/{ticket_id}/redeem",
    response_model=RedemptionResponse,
    responses=REJECTION_RESPONSES,
)
async def redeem_for_member(
    ticket_id: int,
    request: StaffRedeemRequest,
    actor: StaffActor,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> RedemptionResponse | JSONResponse:
    """Redeem one use of a member's ticket at the staff's store."""
    outcome = await service.redeem(ticket_id, actor, member_id=request.member_id)
    return outcome_response(outcome, service)


@router.get("/redemptions/today", response_model=StoreHistoryResponse)
async def today_history(
    actor: StaffActor,
    service: Annotated[RedemptionService, Depends(get_redemption_service)],
) -> StoreHistoryResponse:
    """Get today's redemptions at the staff's store."""
    return await service.get_store_today_history(actor.store_id)
