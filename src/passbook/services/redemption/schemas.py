"""Redemption API schemas."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TicketStatus(str, Enum):
    """Derived ticket status."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"


class Eligibility(str, Enum):
    """Read-only eligibility classification of a ticket."""

    REDEEMABLE = "redeemable"
    COOLDOWN = "cooldown"
    USED = "used"
    EXPIRED = "expired"


class FailureReason(str, Enum):
    """Machine-distinguishable redemption rejection reason."""

    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    COOLDOWN = "cooldown"


FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.NOT_FOUND: "This ticket is not available.",
    FailureReason.EXPIRED: "This ticket has expired.",
    FailureReason.EXHAUSTED: "No uses remain on this ticket.",
    FailureReason.COOLDOWN: "This ticket was just used. Please wait before redeeming again.",
}

REDEEMED_MESSAGE = "Ticket redeemed."
CONFIRMATION_MESSAGE = "One use of this ticket will be consumed. Continue?"
STORAGE_FAULT_MESSAGE = "Redemption could not be completed. Please try again."


class TicketSnapshot(BaseModel):
    """Ticket state as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Ticket ID")
    member_id: int = Field(..., description="Owner member ID")
    ticket_type: str = Field(..., description="Ticket category label")
    total_uses: int = Field(..., ge=1, description="Uses granted")
    remaining_uses: int = Field(..., ge=0, description="Uses left")
    status: TicketStatus = Field(..., description="Derived status")
    expires_at: datetime = Field(..., description="Expiry time")
    last_redeemed_at: datetime | None = Field(None, description="Last redemption time")


class TicketView(TicketSnapshot):
    """Ticket with its eligibility at request time."""

    eligibility: Eligibility = Field(..., description="Eligibility classification")
    is_redeemable: bool = Field(..., description="Can be redeemed now")
    is_in_cooldown: bool = Field(..., description="Within the cooldown window")
    cooldown_remaining_seconds: int = Field(
        0, ge=0, description="Seconds until the cooldown ends"
    )
    is_expiring_soon: bool = Field(..., description="Expires within the warning window")


class TicketSummary(BaseModel):
    """Totals across a member's active tickets."""

    total_remaining: int = Field(..., ge=0, description="Uses left on active tickets")
    active_count: int = Field(..., ge=0, description="Number of active tickets")


class TicketListResponse(BaseModel):
    """A member's tickets grouped by status."""

    active: list[TicketView] = Field(default_factory=list)
    inactive: list[TicketView] = Field(default_factory=list)
    summary: TicketSummary


class MemberTicketsResponse(BaseModel):
    """Active tickets of a member located by staff."""

    member_id: int = Field(..., description="Member ID")
    tickets: list[TicketView] = Field(default_factory=list)


class EligibilityResponse(BaseModel):
    """Result of the read-only prepare-redeem check."""

    ticket_id: int = Field(..., description="Ticket ID")
    eligibility: Eligibility = Field(..., description="Eligibility classification")
    cooldown_remaining_seconds: int = Field(0, ge=0)
    ticket: TicketSnapshot
    confirmation_message: str | None = Field(
        None, description="Prompt to show before committing"
    )


class RedemptionEventItem(BaseModel):
    """One row of redemption history."""

    id: int = Field(..., description="Event ID")
    ticket_id: int = Field(..., description="Redeemed ticket")
    ticket_type: str | None = Field(None, description="Ticket category label")
    member_id: int = Field(..., description="Ticket owner")
    staff_id: int | None = Field(None, description="Staff who redeemed on behalf")
    store_id: int | None = Field(None, description="Store reference")
    actor_type: str = Field(..., description="member or staff")
    redeemed_by: int = Field(..., description="Acting party ID")
    redeemed_at: datetime = Field(..., description="Redemption time")


class PaginationMeta(BaseModel):
    """Pagination metadata."""

    page: int = Field(..., ge=1, description="Current page")
    page_size: int = Field(..., ge=1, le=100, description="Page size")
    total_items: int = Field(..., ge=0, description="Total items")
    total_pages: int = Field(..., ge=0, description="Total pages")


class RedemptionHistoryResponse(BaseModel):
    """Paginated redemption history."""

    items: list[RedemptionEventItem] = Field(..., description="History rows")
    meta: PaginationMeta = Field(..., description="Pagination metadata")


class StoreHistoryResponse(BaseModel):
    """A store's redemptions for its current local day."""

    store_id: int = Field(..., description="Store reference")
    business_date: date = Field(..., description="Store-local calendar day")
    items: list[RedemptionEventItem] = Field(default_factory=list)
    total_today: int = Field(..., ge=0)


class MemberRedeemRequest(BaseModel):
    """Self-redemption by a member."""

    store_id: int | None = Field(None, description="Store where the use happens")


class StaffRedeemRequest(BaseModel):
    """Redemption by staff on behalf of a located member."""

    member_id: int = Field(..., description="Member the ticket must belong to")


class RedemptionResponse(BaseModel):
    """Successful redemption."""

    message: str = Field(REDEEMED_MESSAGE)
    ticket: TicketSnapshot
    redemption: RedemptionEventItem


class RedemptionRejection(BaseModel):
    """Rejected redemption or eligibility check."""

    reason: str = Field(..., description="Machine-readable reason")
    message: str = Field(..., description="Human-readable reason")
    retryable: bool = Field(..., description="Whether retrying can succeed")
    cooldown_remaining_seconds: int | None = Field(
        None, description="Seconds to wait (cooldown only)"
    )
