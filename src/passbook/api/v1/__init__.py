"""API v1 module."""

from fastapi import APIRouter

from passbook.api.v1.endpoints import member_tickets, staff_redemptions

api_router = APIRouter()

# Include routers
api_router.include_router(member_tickets.router)
api_router.include_router(staff_redemptions.router)
