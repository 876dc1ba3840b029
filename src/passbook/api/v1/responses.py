"""Translation of redemption outcomes into HTTP responses."""

from fastapi import status
from fastapi.responses import JSONResponse

from passbook.services.redemption import (
    Eligibility,
    EligibilityResponse,
    FailureReason,
    PrepareOutcome,
    RedemptionOutcome,
    RedemptionRejection,
    RedemptionResponse,
)
from passbook.services.redemption.schemas import (
    CONFIRMATION_MESSAGE,
    FAILURE_MESSAGES,
    STORAGE_FAULT_MESSAGE,
)
from passbook.services.redemption.service import RedemptionService

REJECTION_STATUS = {
    FailureReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureReason.EXPIRED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    FailureReason.EXHAUSTED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    FailureReason.COOLDOWN: status.HTTP_429_TOO_MANY_REQUESTS,
}

REJECTION_RESPONSES = {
    404: {"model": RedemptionRejection, "description": "Ticket not available"},
    422: {"model": RedemptionRejection, "description": "Ticket expired or exhausted"},
    429: {"model": RedemptionRejection, "description": "Ticket in cooldown"},
    503: {"model": RedemptionRejection, "description": "Storage fault, retry"},
}


def rejection_response(
    reason: FailureReason, cooldown_remaining_seconds: int = 0
) -> JSONResponse:
    """Build the rejection body for a failure reason."""
    body = RedemptionRejection(
        reason=reason.value,
        message=FAILURE_MESSAGES[reason],
        retryable=reason == FailureReason.COOLDOWN,
        cooldown_remaining_seconds=(
            cooldown_remaining_seconds if reason == FailureReason.COOLDOWN else None
        ),
    )
    return JSONResponse(
        status_code=REJECTION_STATUS[reason],
        content=body.model_dump(),
    )


def storage_fault_response() -> JSONResponse:
    body = RedemptionRejection(
        reason="storage_fault",
        message=STORAGE_FAULT_MESSAGE,
        retryable=True,
    )
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )


def outcome_response(
    outcome: RedemptionOutcome, service: RedemptionService
) -> RedemptionResponse | JSONResponse:
    """Map an engine outcome to the caller-facing result."""
    if not outcome.success:
        return rejection_response(outcome.failure, outcome.cooldown_remaining_seconds)

    now = service.now()
    return RedemptionResponse(
        ticket=service.snapshot(outcome.ticket, now),
        redemption=RedemptionService.event_item(
            outcome.event, {outcome.ticket.id: outcome.ticket.ticket_type}
        ),
    )


def eligibility_response(
    outcome: PrepareOutcome, service: RedemptionService
) -> EligibilityResponse | JSONResponse:
    """Map a prepare-redeem outcome to the eligibility body, or 404."""
    if not outcome.found:
        return rejection_response(FailureReason.NOT_FOUND)

    classification = outcome.classification
    return EligibilityResponse(
        ticket_id=outcome.ticket.id,
        eligibility=classification.eligibility,
        cooldown_remaining_seconds=classification.cooldown_remaining_seconds,
        ticket=service.snapshot(outcome.ticket, service.now()),
        confirmation_message=(
            CONFIRMATION_MESSAGE
            if classification.eligibility == Eligibility.REDEEMABLE
            else None
        ),
    )
