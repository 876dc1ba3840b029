"""Ticket redemption service module."""

from passbook.services.redemption.engine import (
    Classification,
    PrepareOutcome,
    RedemptionEngine,
    RedemptionOutcome,
    StorageFault,
    classify,
)
from passbook.services.redemption.schemas import (
    Eligibility,
    EligibilityResponse,
    FailureReason,
    MemberRedeemRequest,
    MemberTicketsResponse,
    RedemptionEventItem,
    RedemptionHistoryResponse,
    RedemptionRejection,
    RedemptionResponse,
    StaffRedeemRequest,
    StoreHistoryResponse,
    TicketListResponse,
    TicketSnapshot,
    TicketStatus,
    TicketView,
)
from passbook.services.redemption.service import (
    RedemptionService,
    get_redemption_service,
    reset_redemption_service,
)

__all__ = [
    # Enums
    "TicketStatus",
    "Eligibility",
    "FailureReason",
    # Schemas
    "TicketSnapshot",
    "TicketView",
    "TicketListResponse",
    "MemberTicketsResponse",
    "EligibilityResponse",
    "RedemptionEventItem",
    "RedemptionHistoryResponse",
    "StoreHistoryResponse",
    "MemberRedeemRequest",
    "StaffRedeemRequest",
    "RedemptionResponse",
    "RedemptionRejection",
    # Engine
    "Classification",
    "PrepareOutcome",
    "RedemptionOutcome",
    "RedemptionEngine",
    "StorageFault",
    "classify",
    # Service
    "RedemptionService",
    "get_redemption_service",
    "reset_redemption_service",
]
