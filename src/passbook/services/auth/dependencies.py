"""Authentication dependencies for FastAPI."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from passbook.services.auth.jwt_service import JWTService, get_jwt_service

logger = logging.getLogger(__name__)

ROLE_MEMBER = "member"
ROLE_STAFF = "staff"

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


class ActorContext:
    """Request-scoped identity of whoever is making the call.

    Passed explicitly into the redemption engine; there is no ambient
    "current store" or "current member" state.
    """

    def __init__(self, actor_id: int, kind: str, store_id: int | None = None):
        """Initialize actor context.

        Args:
            actor_id: Member id or staff id
            kind: "member" or "staff"
            store_id: Staff's store (None for members)
        """
        self.actor_id = actor_id
        self.kind = kind
        self.store_id = store_id

    @classmethod
    def member(cls, member_id: int) -> "ActorContext":
        return cls(member_id, ROLE_MEMBER)

    @classmethod
    def staff(cls, staff_id: int, store_id: int) -> "ActorContext":
        return cls(staff_id, ROLE_STAFF, store_id=store_id)

    @property
    def is_member(self) -> bool:
        return self.kind == ROLE_MEMBER

    @property
    def is_staff(self) -> bool:
        return self.kind == ROLE_STAFF

    @property
    def staff_id(self) -> int | None:
        return self.actor_id if self.is_staff else None

    def __repr__(self) -> str:
        return f"<ActorContext {self.kind}:{self.actor_id} store={self.store_id}>"


async def get_current_actor(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
) -> ActorContext:
    """Build the actor context from the bearer token.

    Args:
        credentials: Bearer token from request
        jwt_service: JWT service for token verification

    Returns:
        ActorContext for a member or a staff member with a store

    Raises:
        HTTPException: If token is missing, invalid or carries no usable role
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = jwt_service.verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        actor_id = int(payload.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if ROLE_STAFF in payload.roles:
        if payload.store_id is None:
            logger.warning(f"Staff token for {actor_id} has no store_id")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Staff token is not bound to a store",
            )
        return ActorContext.staff(actor_id, payload.store_id)

    if ROLE_MEMBER in payload.roles:
        return ActorContext.member(actor_id)

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Requires member or staff role",
    )


async def require_member(
    actor: Annotated[ActorContext, Depends(get_current_actor)],
) -> ActorContext:
    """Dependency requiring a member actor."""
    if not actor.is_member:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Member access required",
        )
    return actor


async def require_staff(
    actor: Annotated[ActorContext, Depends(get_current_actor)],
) -> ActorContext:
    """Dependency requiring a staff actor."""
    if not actor.is_staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required",
        )
    return actor


# Type aliases for dependency injection
MemberActor = Annotated[ActorContext, Depends(require_member)]
StaffActor = Annotated[ActorContext, Depends(require_staff)]
