"""Ticket model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from passbook.core.clock import as_utc
from passbook.models.base import Base, TimestampMixin

STATUS_ACTIVE = "active"
STATUS_USED = "used"
STATUS_EXPIRED = "expired"


class Ticket(Base, TimestampMixin):
    """A member's grant of a bounded number of uses."""

    __tablename__ = "tickets"

    # Primary key
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    # Ownership
    member_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    ticket_type: Mapped[str] = mapped_column(
        String(100), default="standard", nullable=False
    )

    # Uses
    total_uses: Mapped[int] = mapped_column(Integer, nullable=False)
    remaining_uses: Mapped[int] = mapped_column(Integer, nullable=False)

    # Time info
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    last_redeemed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint(
            "remaining_uses >= 0 AND remaining_uses <= total_uses",
            name="remaining_uses",
        ),
        CheckConstraint("total_uses > 0", name="total_uses"),
        Index("ix_tickets_member_expires", "member_id", "expires_at"),
    )

    def status_at(self, now: datetime) -> str:
        """Derived status: expiry wins over exhaustion."""
        if now >= as_utc(self.expires_at):
            return STATUS_EXPIRED
        if self.remaining_uses <= 0:
            return STATUS_USED
        return STATUS_ACTIVE

    def __repr__(self) -> str:
        return (
            f"<Ticket id={self.id} member={self.member_id} "
            f"remaining={self.remaining_uses}/{self.total_uses}>"
        )
