"""Tests for member ticket API endpoints."""

from datetime import timedelta
from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from passbook.services.redemption import StorageFault

PREFIX = "/api/v1/member"


class TestAuthentication:
    """Tests for bearer token handling on member routes."""

    def test_requires_token(self, client):
        response = client.get(f"{PREFIX}/tickets")

        assert response.status_code == 401

    def test_rejects_invalid_token(self, client):
        response = client.get(
            f"{PREFIX}/tickets", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401

    def test_rejects_staff_token(self, client, staff_headers):
        response = client.get(f"{PREFIX}/tickets", headers=staff_headers())

        assert response.status_code == 403


class TestListTickets:
    """Tests for GET /member/tickets."""

    def test_grouped_tickets(self, client, seed_ticket, member_headers, clock):
        active = seed_ticket(total_uses=3)
        used = seed_ticket(total_uses=2, remaining_uses=0)
        seed_ticket(member_id=2)

        response = client.get(f"{PREFIX}/tickets", headers=member_headers(1))

        assert response.status_code == 200
        data = response.json()
        assert [t["id"] for t in data["active"]] == [active.id]
        assert [t["id"] for t in data["inactive"]] == [used.id]
        assert data["summary"] == {"total_remaining": 3, "active_count": 1}
        assert data["active"][0]["eligibility"] == "redeemable"
        assert data["inactive"][0]["status"] == "used"

    def test_ticket_detail(self, client, seed_ticket, member_headers):
        ticket = seed_ticket()

        response = client.get(f"{PREFIX}/tickets/{ticket.id}", headers=member_headers(1))

        assert response.status_code == 200
        assert response.json()["remaining_uses"] == 3

    def test_other_members_ticket_not_found(self, client, seed_ticket, member_headers):
        ticket = seed_ticket(member_id=2)

        response = client.get(f"{PREFIX}/tickets/{ticket.id}", headers=member_headers(1))

        assert response.status_code == 404
        assert response.json()["reason"] == "not_found"


class TestPrepareRedeem:
    """Tests for GET /member/tickets/{id}/prepare-redeem."""

    def test_redeemable(self, client, seed_ticket, member_headers):
        ticket = seed_ticket()

        response = client.get(
            f"{PREFIX}/tickets/{ticket.id}/prepare-redeem", headers=member_headers(1)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["eligibility"] == "redeemable"
        assert data["confirmation_message"]
        assert data["ticket"]["remaining_uses"] == 3

    def test_cooldown(self, client, seed_ticket, member_headers, clock):
        ticket = seed_ticket(last_redeemed_at=clock.current - timedelta(seconds=30))

        response = client.get(
            f"{PREFIX}/tickets/{ticket.id}/prepare-redeem", headers=member_headers(1)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["eligibility"] == "cooldown"
        assert data["cooldown_remaining_seconds"] == 270
        assert data["confirmation_message"] is None

    def test_not_found(self, client, member_headers, seed_ticket):
        response = client.get(f"{PREFIX}/tickets/999/prepare-redeem", headers=member_headers(1))

        assert response.status_code == 404


class TestRedeem:
    """Tests for POST /member/tickets/{id}/redeem."""

    def test_success_then_cooldown(self, client, seed_ticket, member_headers, clock):
        ticket = seed_ticket()
        url = f"{PREFIX}/tickets/{ticket.id}/redeem"

        response = client.post(url, json={"store_id": 3}, headers=member_headers(1))

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Ticket redeemed."
        assert data["ticket"]["remaining_uses"] == 2
        assert data["redemption"]["store_id"] == 3
        assert data["redemption"]["actor_type"] == "member"

        response = client.post(url, headers=member_headers(1))

        assert response.status_code == 429
        data = response.json()
        assert data["reason"] == "cooldown"
        assert data["retryable"] is True
        assert data["cooldown_remaining_seconds"] == 300
        assert data["message"]

        clock.advance(minutes=5)
        response = client.post(url, headers=member_headers(1))

        assert response.status_code == 200
        assert response.json()["ticket"]["remaining_uses"] == 1
        assert response.json()["redemption"]["store_id"] is None

    def test_expired(self, client, seed_ticket, member_headers, clock):
        ticket = seed_ticket(expires_at=clock.current - timedelta(days=1))

        response = client.post(f"{PREFIX}/tickets/{ticket.id}/redeem", headers=member_headers(1))

        assert response.status_code == 422
        data = response.json()
        assert data["reason"] == "expired"
        assert data["retryable"] is False
        assert data["cooldown_remaining_seconds"] is None

    def test_exhausted(self, client, seed_ticket, member_headers):
        ticket = seed_ticket(total_uses=1, remaining_uses=0)

        response = client.post(f"{PREFIX}/tickets/{ticket.id}/redeem", headers=member_headers(1))

        assert response.status_code == 422
        assert response.json()["reason"] == "exhausted"

    def test_other_members_ticket(self, client, seed_ticket, member_headers):
        ticket = seed_ticket(member_id=2)

        response = client.post(f"{PREFIX}/tickets/{ticket.id}/redeem", headers=member_headers(1))

        assert response.status_code == 404
        assert response.json()["retryable"] is False

    def test_storage_fault(self, client, api_service, seed_ticket, member_headers):
        ticket = seed_ticket()
        api_service.redeem = AsyncMock(side_effect=StorageFault("row changed"))

        response = client.post(f"{PREFIX}/tickets/{ticket.id}/redeem", headers=member_headers(1))

        assert response.status_code == 503
        assert response.json()["reason"] == "storage_fault"
        assert response.json()["retryable"] is True

    def test_database_error(self, client, api_service, seed_ticket, member_headers):
        ticket = seed_ticket()
        api_service.redeem = AsyncMock(
            side_effect=OperationalError("UPDATE tickets", {}, Exception("database is locked"))
        )

        response = client.post(f"{PREFIX}/tickets/{ticket.id}/redeem", headers=member_headers(1))

        assert response.status_code == 503
        assert response.json()["reason"] == "storage_fault"


class TestRedemptionHistory:
    """Tests for GET /member/redemption-history."""

    def test_history_after_redeem(self, client, seed_ticket, member_headers):
        ticket = seed_ticket(ticket_type="monthly")
        client.post(f"{PREFIX}/tickets/{ticket.id}/redeem", headers=member_headers(1))

        response = client.get(f"{PREFIX}/redemption-history", headers=member_headers(1))

        assert response.status_code == 200
        data = response.json()
        assert data["meta"]["total_items"] == 1
        assert data["items"][0]["ticket_id"] == ticket.id
        assert data["items"][0]["ticket_type"] == "monthly"

    def test_history_only_own_events(self, client, seed_ticket, member_headers):
        ticket = seed_ticket(member_id=2)
        client.post(f"{PREFIX}/tickets/{ticket.id}/redeem", headers=member_headers(2))

        response = client.get(f"{PREFIX}/redemption-history", headers=member_headers(1))

        assert response.json()["meta"]["total_items"] == 0

    def test_invalid_page(self, client, member_headers, seed_ticket):
        response = client.get(
            f"{PREFIX}/redemption-history", params={"page": 0}, headers=member_headers(1)
        )

        assert response.status_code == 422


class TestSystemRoutes:
    """Tests for health and API root."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_api_root(self, client):
        response = client.get("/api/v1/")

        assert response.status_code == 200
        assert response.json()["name"] == "passbook-backend"
