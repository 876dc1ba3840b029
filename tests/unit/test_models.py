"""Tests for ticket models and their derived state."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from passbook.core.clock import as_utc
from passbook.models import (
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_USED,
    Base,
    RedemptionEvent,
    Ticket,
)
from passbook.repositories.redemption import local_day_bounds

NOW = datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc)


def build_ticket(**overrides) -> Ticket:
    fields = {
        "id": 1,
        "member_id": 1,
        "ticket_type": "standard",
        "total_uses": 3,
        "remaining_uses": 3,
        "expires_at": NOW + timedelta(days=30),
        "last_redeemed_at": None,
    }
    fields.update(overrides)
    return Ticket(**fields)


class TestTicketStatus:
    """Tests for the derived ticket status."""

    def test_active(self):
        assert build_ticket().status_at(NOW) == STATUS_ACTIVE

    def test_used_when_no_uses_left(self):
        assert build_ticket(remaining_uses=0).status_at(NOW) == STATUS_USED

    def test_expired_at_boundary(self):
        """A ticket is expired from the instant expires_at is reached."""
        ticket = build_ticket(expires_at=NOW)
        assert ticket.status_at(NOW) == STATUS_EXPIRED
        assert ticket.status_at(NOW - timedelta(microseconds=1)) == STATUS_ACTIVE

    def test_expiry_wins_over_exhaustion(self):
        ticket = build_ticket(remaining_uses=0, expires_at=NOW - timedelta(days=1))
        assert ticket.status_at(NOW) == STATUS_EXPIRED

    def test_naive_expiry_is_treated_as_utc(self):
        """SQLite returns naive datetimes; they are compared as UTC."""
        ticket = build_ticket(expires_at=(NOW + timedelta(hours=1)).replace(tzinfo=None))
        assert ticket.status_at(NOW) == STATUS_ACTIVE

    def test_repr(self):
        assert repr(build_ticket(remaining_uses=2)) == "<Ticket id=1 member=1 remaining=2/3>"


class TestRedemptionEvent:
    """Tests for redemption event helpers."""

    def test_member_self_redemption(self):
        event = RedemptionEvent(ticket_id=1, member_id=5, staff_id=None, redeemed_at=NOW)

        assert event.actor_type == "member"
        assert event.redeemed_by == 5

    def test_staff_redemption(self):
        event = RedemptionEvent(ticket_id=1, member_id=5, staff_id=100, store_id=7, redeemed_at=NOW)

        assert event.actor_type == "staff"
        assert event.redeemed_by == 100


class TestSchemaMetadata:
    """Tests for table definitions."""

    def test_tables_registered(self):
        assert {"tickets", "redemption_events", "audit_logs"} <= set(Base.metadata.tables)

    def test_remaining_uses_check_constraint_named(self):
        names = {c.name for c in Base.metadata.tables["tickets"].constraints}
        assert "ck_tickets_remaining_uses" in names
        assert "ck_tickets_total_uses" in names


class TestTimeHelpers:
    """Tests for clock and day-boundary helpers."""

    def test_as_utc_tags_naive(self):
        naive = datetime(2026, 1, 1, 12, 0)
        assert as_utc(naive) == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_as_utc_converts_aware(self):
        tokyo = datetime(2026, 1, 1, 9, 0, tzinfo=ZoneInfo("Asia/Tokyo"))
        assert as_utc(tokyo) == datetime(2026, 1, 1, 0, 0, tzinfo=timezone.utc)

    def test_local_day_bounds_tokyo(self):
        """12:00 in Tokyo belongs to the day starting 15:00 UTC the day before."""
        start, end = local_day_bounds(NOW, ZoneInfo("Asia/Tokyo"))

        assert start == datetime(2026, 10, 18, 15, 0, tzinfo=timezone.utc)
        assert end == datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)

    def test_local_day_bounds_after_local_midnight(self):
        """16:00 UTC is already the next calendar day in Tokyo."""
        start, _ = local_day_bounds(
            datetime(2026, 10, 19, 16, 0, tzinfo=timezone.utc), ZoneInfo("Asia/Tokyo")
        )

        assert start == datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)
