"""Authentication services module."""

from passbook.services.auth.dependencies import (
    ROLE_MEMBER,
    ROLE_STAFF,
    ActorContext,
    MemberActor,
    StaffActor,
    get_current_actor,
    require_member,
    require_staff,
)
from passbook.services.auth.jwt_service import (
    JWTService,
    TokenPayload,
    get_jwt_service,
)

__all__ = [
    # JWT
    "JWTService",
    "TokenPayload",
    "get_jwt_service",
    # Dependencies
    "ActorContext",
    "ROLE_MEMBER",
    "ROLE_STAFF",
    "get_current_actor",
    "require_member",
    "require_staff",
    # Type aliases
    "MemberActor",
    "StaffActor",
]
