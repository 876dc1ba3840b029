"""Redemption event model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from passbook.models.base import Base


class RedemptionEvent(Base):
    """Append-only record of one consumed ticket use."""

    __tablename__ = "redemption_events"

    # Primary key
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    # References
    ticket_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tickets.id"), nullable=False, index=True
    )
    member_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    staff_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    store_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    redeemed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    __table_args__ = (
        Index("ix_redemption_events_member_redeemed", "member_id", "redeemed_at"),
        Index("ix_redemption_events_store_redeemed", "store_id", "redeemed_at"),
    )

    @property
    def actor_type(self) -> str:
        return "staff" if self.staff_id is not None else "member"

    @property
    def redeemed_by(self) -> int:
        """Id of the acting party: staff on behalf, else the member."""
        return self.staff_id if self.staff_id is not None else self.member_id
