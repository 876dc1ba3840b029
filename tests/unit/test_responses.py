"""Tests for outcome-to-HTTP translation."""

from datetime import timedelta

import pytest
from fastapi.responses import JSONResponse

from passbook.api.v1.responses import eligibility_response, rejection_response
from passbook.services.auth import ActorContext
from passbook.services.redemption import (
    Eligibility,
    EligibilityResponse,
    FailureReason,
    PrepareOutcome,
)

MEMBER = ActorContext.member(1)


class TestEligibilityResponse:
    """Tests for the shared prepare-redeem body."""

    @pytest.mark.asyncio
    async def test_redeemable_carries_confirmation(self, service, make_ticket):
        ticket = await make_ticket()
        outcome = await service.prepare_redeem(ticket.id, MEMBER)

        body = eligibility_response(outcome, service)

        assert isinstance(body, EligibilityResponse)
        assert body.ticket_id == ticket.id
        assert body.eligibility == Eligibility.REDEEMABLE
        assert body.confirmation_message is not None
        assert body.ticket.remaining_uses == 3

    @pytest.mark.asyncio
    async def test_cooldown_has_no_confirmation(self, service, make_ticket, clock):
        ticket = await make_ticket(last_redeemed_at=clock.current - timedelta(seconds=10))
        outcome = await service.prepare_redeem(ticket.id, MEMBER)

        body = eligibility_response(outcome, service)

        assert body.eligibility == Eligibility.COOLDOWN
        assert body.cooldown_remaining_seconds == 290
        assert body.confirmation_message is None

    def test_missing_ticket_is_not_found(self, service):
        body = eligibility_response(PrepareOutcome(ticket=None, classification=None), service)

        assert isinstance(body, JSONResponse)
        assert body.status_code == 404


class TestRejectionResponse:
    """Tests for rejection status mapping."""

    @pytest.mark.parametrize(
        ("reason", "status_code"),
        [
            (FailureReason.NOT_FOUND, 404),
            (FailureReason.EXPIRED, 422),
            (FailureReason.EXHAUSTED, 422),
            (FailureReason.COOLDOWN, 429),
        ],
    )
    def test_status_codes(self, reason, status_code):
        assert rejection_response(reason, 30).status_code == status_code
